"""Per-interaction response lifecycle.

Each application command interaction gets one ``InteractionLifecycle``. It
owns the single HTTP response to the inbound request (the initial response)
and the interaction token used for follow-up webhook calls. Both are bounded
by the token validity window, checked afresh on every call.
"""
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Optional

from .discord_service import ORIGINAL_MESSAGE, DiscordService
from .errors import AlreadyRespondedError, TokenExpiredError
from .embed_utils import deferred_response
from .models import Interaction, InteractionResponseType
from .shared.observability import get_logger

logger = get_logger('interactions-gateway.lifecycle')

TOKEN_TTL = timedelta(minutes=15)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleState(Enum):
    PENDING = 'pending'
    RESPONDED = 'responded'


class ResponseSlot:
    """Holds the one HTTP response for an inbound request until it is returned."""

    def __init__(self):
        self._sent = threading.Event()
        self.body: Optional[dict] = None
        self.status: Optional[int] = None

    def send(self, body: dict, status: int = 200) -> None:
        self.body = body
        self.status = status
        self._sent.set()

    @property
    def sent(self) -> bool:
        return self._sent.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._sent.wait(timeout)


class InteractionLifecycle:
    """Response handle passed to command handlers.

    ``respond``/``acknowledge`` fulfil the original HTTP request and may
    succeed at most once. ``edit_response``, ``delete_response`` and
    ``follow_up`` go through the webhook API instead; they ignore the
    acknowledgement state but still need a valid token.
    """

    def __init__(
        self,
        interaction: Interaction,
        service: Optional[DiscordService],
        slot: Optional[ResponseSlot] = None,
        clock: Callable[[], datetime] = utcnow,
        correlation_id: Optional[str] = None
    ):
        self.interaction = interaction
        self.service = service
        self.slot = slot or ResponseSlot()
        self.clock = clock
        self.correlation_id = correlation_id
        self._state = LifecycleState.PENDING
        self._lock = threading.Lock()

    @property
    def received_at(self) -> datetime:
        return self.interaction.received_at

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def acknowledged(self) -> bool:
        return self._state is LifecycleState.RESPONDED

    @property
    def options(self):
        data = self.interaction.data
        return data.options if data else ()

    def get_option(self, name: str, default: Any = None) -> Any:
        data = self.interaction.data
        return data.get_option(name, default) if data else default

    def is_valid(self) -> bool:
        """Whether the interaction token is still inside its validity window."""
        return self.clock() - self.received_at < TOKEN_TTL

    def _check_valid(self) -> None:
        if not self.is_valid():
            raise TokenExpiredError()

    def _transition(self, payload: dict) -> None:
        with self._lock:
            self._check_valid()
            if self._state is not LifecycleState.PENDING:
                raise AlreadyRespondedError()
            self._state = LifecycleState.RESPONDED
        self.slot.send(payload, 200)
        logger.debug(
            "Initial response sent",
            correlation_id=self.correlation_id,
            interaction_id=self.interaction.id,
            response_type=payload.get('type')
        )

    # --- Initial response ---

    def respond(self, payload: dict) -> None:
        """Send ``payload`` as the response to the original request."""
        self._transition(payload)

    def acknowledge(self) -> None:
        """Satisfy the original request without a message."""
        self._transition({'type': int(InteractionResponseType.PONG)})

    def defer(self) -> None:
        """Tell the platform a message will follow via edit_initial_response."""
        self._transition(deferred_response())

    def ensure_acknowledged(self) -> bool:
        """Acknowledge unless a response was already sent; True if this call sent it."""
        with self._lock:
            if self._state is not LifecycleState.PENDING:
                return False
            self._check_valid()
            self._state = LifecycleState.RESPONDED
        self.slot.send({'type': int(InteractionResponseType.PONG)}, 200)
        logger.debug(
            "Interaction auto-acknowledged",
            correlation_id=self.correlation_id,
            interaction_id=self.interaction.id
        )
        return True

    # --- Webhook messages ---

    def _webhook_service(self) -> DiscordService:
        self._check_valid()
        if self.service is None:
            raise RuntimeError("No DiscordService configured for webhook message calls")
        return self.service

    def edit_response(self, edit: dict, message_id: str) -> Any:
        service = self._webhook_service()
        return service.edit_message(self.interaction.token, message_id, edit, correlation_id=self.correlation_id)

    def delete_response(self, message_id: str) -> None:
        service = self._webhook_service()
        service.delete_message(self.interaction.token, message_id, correlation_id=self.correlation_id)

    def edit_initial_response(self, edit: dict) -> Any:
        return self.edit_response(edit, ORIGINAL_MESSAGE)

    def delete_initial_response(self) -> None:
        self.delete_response(ORIGINAL_MESSAGE)

    def follow_up(self, payload: dict) -> Any:
        service = self._webhook_service()
        return service.create_followup(self.interaction.token, payload, correlation_id=self.correlation_id)
