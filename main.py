"""Functions Framework entry point for Discord interactions.

Deploy with ``--entry-point discord_interactions``. Discord requires the
initial response within 3 seconds; handlers that need longer should respond
early (or defer) and finish with follow-up messages.
"""
from flask import Request, jsonify
from functions_framework import http

from interactions_gateway.app import build_gateway
from interactions_gateway.shared.correlation import with_correlation
from interactions_gateway.shared.observability import init_observability, traced_function

logger, tracing = init_observability('interactions-gateway')

gateway = build_gateway()


@http
@with_correlation(logger)
@traced_function("discord_interactions")
def discord_interactions(request: Request):
    """Handle one Discord interaction request."""
    body, status_code = gateway.dispatcher.dispatch(
        request.method,
        request.headers,
        request.get_data(cache=True),
        correlation_id=getattr(request, 'correlation_id', None)
    )
    return jsonify(body), status_code
