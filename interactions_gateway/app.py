"""Gateway assembly and Flask application factory."""
import atexit
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from flask import Flask

from .builtin_commands import BUILTIN_COMMANDS, register_builtin_commands
from .command_api import CommandApiClient
from .command_registry import CommandRegistry
from .config import Config
from .discord_service import DiscordService
from .discord_utils import SignatureVerifier
from .errors import RemoteApiError
from .interaction_handler import InteractionDispatcher
from .lifecycle import utcnow
from .routes import register_routes
from .shared.observability import get_logger, init_observability

logger = get_logger('interactions-gateway.app')


class Gateway:
    """The wired-up components serving one bot application."""

    def __init__(self, config: Config, registry: CommandRegistry, service: DiscordService,
                 dispatcher: InteractionDispatcher, command_api: CommandApiClient,
                 definitions: Optional[list] = None, executor: Optional[Executor] = None):
        self.config = config
        self.registry = registry
        self.service = service
        self.dispatcher = dispatcher
        self.command_api = command_api
        self.definitions = list(definitions if definitions is not None else BUILTIN_COMMANDS)
        self.executor = executor

    def close(self, wait: bool = True) -> None:
        """Stop the handler pool, letting running handlers finish their follow-ups."""
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
            logger.info("Handler pool shut down")


def build_gateway(
    config: Optional[Config] = None,
    registry: Optional[CommandRegistry] = None,
    session=None,
    clock=utcnow,
    definitions: Optional[list] = None
) -> Gateway:
    """Wire the verifier, registry, REST client and dispatcher from configuration.

    Args:
        config: Configuration (defaults to the current environment)
        registry: Registry with handlers already bound; the built-in
            /ping and /help commands are added to a fresh one when omitted
        session: requests.Session for platform API calls (optional)
        clock: Time source for receipt stamps and token expiry
        definitions: Command definitions created by /register-commands
    """
    config = config or Config.from_env()
    if registry is None:
        registry = register_builtin_commands(CommandRegistry())

    service = DiscordService.from_config(config, session=session)
    executor = None
    if config.HANDLER_WORKERS > 0:
        executor = ThreadPoolExecutor(max_workers=config.HANDLER_WORKERS,
                                      thread_name_prefix='interaction-handler')

    dispatcher = InteractionDispatcher(
        SignatureVerifier(config.DISCORD_PUBLIC_KEY),
        registry,
        service,
        clock=clock,
        executor=executor,
        response_timeout=config.INITIAL_RESPONSE_TIMEOUT,
        include_diagnostics=config.DEBUG_ERRORS
    )
    gateway = Gateway(config, registry, service, dispatcher, CommandApiClient(service, registry),
                      definitions, executor=executor)
    if executor is not None:
        atexit.register(gateway.close)
    return gateway


def create_app(config: Optional[Config] = None, gateway: Optional[Gateway] = None) -> Flask:
    """Create the Flask application serving the interactions endpoint."""
    gateway = gateway or build_gateway(config)

    app = Flask(__name__)
    logger, _ = init_observability('interactions-gateway', app=app)
    app.extensions['interactions_gateway'] = gateway
    register_routes(app, gateway)

    if gateway.config.AUTO_REGISTER_COMMANDS and gateway.config.is_configured():
        try:
            gateway.command_api.list()
        except RemoteApiError as e:
            logger.error("Could not sync declared commands at startup", error=e)
        else:
            results = gateway.command_api.sync(gateway.definitions)
            failed = [r['command'] for r in results if r['status'] != 'success']
            logger.info("Startup command registration finished",
                        total=len(results), failed=failed)

    return app
