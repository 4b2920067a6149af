"""Flask routes."""
from datetime import datetime, timezone

from flask import g, jsonify, request

from .errors import RemoteApiError
from .shared.observability import get_correlation_id, get_logger

logger = get_logger('interactions-gateway.routes')


def register_routes(app, gateway):
    """Register all Flask routes against a built Gateway."""

    @app.before_request
    def assign_correlation_id():
        g.correlation_id = get_correlation_id(request)

    @app.after_request
    def echo_correlation_id(response):
        correlation_id = getattr(g, 'correlation_id', None)
        if correlation_id:
            response.headers['X-Correlation-ID'] = correlation_id
        return response

    @app.route("/health")
    def health():
        """Health check endpoint."""
        config = gateway.config
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'service': 'interactions-gateway',
            'environment': {
                'public_key_set': bool(config.DISCORD_PUBLIC_KEY),
                'bot_token_set': bool(config.DISCORD_BOT_TOKEN),
                'app_id_set': bool(config.DISCORD_APPLICATION_ID)
            },
            'commands': gateway.registry.names()
        })

    # Every method is routed here so the dispatcher can answer non-POST with 404
    @app.route("/discord/interactions", methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'])
    def discord_interactions():
        """Handle Discord interactions endpoint."""
        body, status_code = gateway.dispatcher.dispatch(
            request.method,
            request.headers,
            request.get_data(cache=True),
            correlation_id=g.correlation_id
        )
        return jsonify(body), status_code

    @app.route("/register-commands", methods=['POST'])
    def register_commands():
        """Create the gateway's command definitions on Discord."""
        missing = [
            name for name in gateway.config.missing_settings()
            if name in ('DISCORD_BOT_TOKEN', 'DISCORD_APPLICATION_ID')
        ]
        if missing:
            return jsonify({
                'error': 'Internal Server Error',
                'message': f"{' and '.join(missing)} must be configured"
            }), 500

        results = gateway.command_api.sync(gateway.definitions, correlation_id=g.correlation_id)
        return jsonify({
            'message': 'Registration completed',
            'results': results,
            'note': 'Commands may take a few minutes to appear in Discord'
        })

    @app.route("/commands", methods=['GET'])
    def list_commands():
        """List the global commands currently known to Discord."""
        try:
            commands = gateway.command_api.list()
        except RemoteApiError as e:
            logger.error("Failed to list commands", error=e, correlation_id=g.correlation_id)
            return jsonify({
                'error': 'Bad Gateway',
                'message': 'Could not list commands from Discord',
                'status': e.status
            }), 502
        return jsonify({
            'commands': [c.to_dict() for c in commands],
            'total': len(commands)
        })
