"""Verification, routing and response lifecycle for Discord interaction webhooks."""
from .command_api import CommandApiClient
from .command_registry import CommandRegistry, FunctionHandler
from .config import Config
from .discord_service import DiscordService
from .discord_utils import SignatureVerifier, verify_discord_signature
from .errors import (
    AlreadyRespondedError,
    AuthenticationError,
    InteractionsError,
    RemoteApiError,
    TokenExpiredError,
    ValidationError,
)
from .interaction_handler import InteractionDispatcher
from .lifecycle import InteractionLifecycle, LifecycleState, ResponseSlot
from .models import (
    ApplicationCommand,
    Interaction,
    InteractionResponseType,
    InteractionType,
    NewApplicationCommand,
)

__version__ = '1.0.0'

__all__ = [
    'AlreadyRespondedError',
    'ApplicationCommand',
    'AuthenticationError',
    'CommandApiClient',
    'CommandRegistry',
    'Config',
    'DiscordService',
    'FunctionHandler',
    'Interaction',
    'InteractionDispatcher',
    'InteractionLifecycle',
    'InteractionResponseType',
    'InteractionType',
    'InteractionsError',
    'LifecycleState',
    'NewApplicationCommand',
    'RemoteApiError',
    'ResponseSlot',
    'SignatureVerifier',
    'TokenExpiredError',
    'ValidationError',
    'verify_discord_signature',
]
