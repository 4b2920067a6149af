"""Handler for Discord interactions."""
import json
import traceback
from concurrent.futures import Executor
from datetime import datetime
from typing import Callable, Mapping, Optional, Tuple, Union

from .command_registry import CommandHandler, CommandRegistry
from .discord_service import DiscordService
from .discord_utils import SignatureVerifier
from .embed_utils import error_response
from .errors import AlreadyRespondedError, AuthenticationError, InteractionsError, ValidationError
from .lifecycle import InteractionLifecycle, ResponseSlot, utcnow
from .models import Interaction, InteractionResponseType, InteractionType
from .shared.observability import get_logger, traced_function

logger = get_logger('interactions-gateway.dispatcher')

SIGNATURE_HEADER = 'X-Signature-Ed25519'
TIMESTAMP_HEADER = 'X-Signature-Timestamp'

PONG = {'type': int(InteractionResponseType.PONG)}


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


class InteractionDispatcher:
    """Turns one inbound interaction request into one HTTP response.

    The request goes through a method gate, signature verification and a
    switch on the interaction type. Application commands are routed to the
    handler bound to the command name, or failing that its id; commands
    nobody handles are acknowledged with a bare Pong.

    Handlers run inline when no executor is given. With an executor the
    handler runs on a worker thread and the dispatcher returns as soon as the
    handler sends its initial response, or auto-acknowledges once
    ``response_timeout`` seconds pass without one. The handler may keep
    going afterwards with follow-up calls.
    """

    def __init__(
        self,
        verifier: SignatureVerifier,
        registry: CommandRegistry,
        service: Optional[DiscordService] = None,
        clock: Callable[[], datetime] = utcnow,
        executor: Optional[Executor] = None,
        response_timeout: float = 2.5,
        include_diagnostics: bool = False
    ):
        self.verifier = verifier
        self.registry = registry
        self.service = service
        self.clock = clock
        self.executor = executor
        self.response_timeout = response_timeout
        self.include_diagnostics = include_diagnostics

    @traced_function("dispatch_interaction")
    def dispatch(
        self,
        method: str,
        headers: Mapping[str, str],
        raw_body: Union[bytes, str, None],
        correlation_id: Optional[str] = None
    ) -> Tuple[dict, int]:
        """Process one request and return ``(response_body, status_code)``.

        Args:
            method: HTTP method of the request
            headers: Request headers (needs the signature headers)
            raw_body: Request body exactly as received, before any parsing
            correlation_id: Optional correlation ID for logging
        """
        received_at = self.clock()
        try:
            self._check_method(method)
            self._check_signature(headers, raw_body, correlation_id)
            payload = self._parse(raw_body)
            return self._route(payload, received_at, correlation_id)
        except ValidationError as e:
            logger.warning(
                "Rejected interaction request",
                correlation_id=correlation_id,
                status_code=e.status,
                reason=e.message
            )
            return e.to_response()
        except AuthenticationError as e:
            logger.warning("Invalid Discord signature", correlation_id=correlation_id)
            return e.to_response(include_diagnostic=self.include_diagnostics)

    @staticmethod
    def _check_method(method: str) -> None:
        if (method or '').upper() != 'POST':
            raise ValidationError('This endpoint only accepts POST method', status=404, error='Not Found')

    def _check_signature(self, headers, raw_body, correlation_id) -> None:
        try:
            verified = self.verifier.verify(
                _header(headers, SIGNATURE_HEADER),
                _header(headers, TIMESTAMP_HEADER),
                raw_body
            )
        except Exception as e:
            logger.error("Signature verification raised", error=e, correlation_id=correlation_id)
            raise AuthenticationError(diagnostic=traceback.format_exc()) from e
        if not verified:
            raise AuthenticationError()

    @staticmethod
    def _parse(raw_body) -> dict:
        try:
            payload = json.loads(raw_body)
        except (TypeError, ValueError):
            raise ValidationError('Request body is not valid JSON') from None
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')
        return payload

    def _route(self, payload: dict, received_at: datetime, correlation_id: Optional[str]) -> Tuple[dict, int]:
        interaction_type = payload.get('type')
        if isinstance(interaction_type, bool):
            interaction_type = None

        if interaction_type == InteractionType.PING:
            logger.debug("PING interaction received", correlation_id=correlation_id)
            return dict(PONG), 200

        if interaction_type == InteractionType.APPLICATION_COMMAND:
            try:
                interaction = Interaction.from_payload(payload, received_at)
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Malformed application command: {e}") from None
            return self.handle_application_command(interaction, correlation_id)

        raise ValidationError(
            f"Invalid `InteractionType` {interaction_type!r} specified in body property `type`"
        )

    def handle_application_command(self, interaction: Interaction,
                                   correlation_id: Optional[str] = None) -> Tuple[dict, int]:
        slot = ResponseSlot()
        lifecycle = InteractionLifecycle(
            interaction, self.service, slot, clock=self.clock, correlation_id=correlation_id
        )

        handler = None
        if interaction.data is not None:
            handler = self.registry.resolve(interaction.data.name, interaction.data.id)

        logger.info(
            "Processing application command",
            correlation_id=correlation_id,
            interaction_id=interaction.id,
            user_id=interaction.user_id,
            command_name=interaction.data.name if interaction.data else None,
            command_id=interaction.data.id if interaction.data else None,
            matched=handler is not None
        )

        if handler is None:
            lifecycle.acknowledge()
        elif self.executor is None:
            self._invoke(handler, lifecycle)
        else:
            self.executor.submit(self._invoke, handler, lifecycle)
            if not slot.wait(self.response_timeout):
                logger.warning(
                    "Handler did not respond in time, acknowledging",
                    correlation_id=correlation_id,
                    interaction_id=interaction.id,
                    timeout_seconds=self.response_timeout
                )
                self._settle(lifecycle)

        if not slot.wait(0):
            logger.error(
                "No response produced for interaction",
                correlation_id=correlation_id,
                interaction_id=interaction.id
            )
            return {'error': 'Internal Server Error', 'message': 'No response was produced'}, 500
        return slot.body, slot.status

    def _invoke(self, handler: CommandHandler, lifecycle: InteractionLifecycle) -> None:
        """Run a handler and make sure the interaction ends up answered."""
        interaction = lifecycle.interaction
        failure = None
        try:
            handler.handle(lifecycle)
        except Exception as e:
            failure = e
            logger.error(
                "Error in command handler",
                error=e,
                correlation_id=lifecycle.correlation_id,
                interaction_id=interaction.id,
                command_name=interaction.data.name if interaction.data else None
            )

        if failure is not None and not lifecycle.acknowledged:
            name = interaction.data.name if interaction.data else 'command'
            self._settle(lifecycle, error_response(
                'Command Error',
                f'An error occurred while processing `/{name}`. Please try again later.'
            ))
        self._settle(lifecycle)

    @staticmethod
    def _settle(lifecycle: InteractionLifecycle, payload: Optional[dict] = None) -> None:
        """Send ``payload`` (or a Pong) if nothing was sent yet; never raises."""
        try:
            if payload is None:
                lifecycle.ensure_acknowledged()
            else:
                lifecycle.respond(payload)
        except AlreadyRespondedError:
            logger.debug("Interaction already answered", correlation_id=lifecycle.correlation_id)
        except InteractionsError as e:
            logger.warning(
                "Could not acknowledge interaction",
                correlation_id=lifecycle.correlation_id,
                interaction_id=lifecycle.interaction.id,
                reason=str(e)
            )
