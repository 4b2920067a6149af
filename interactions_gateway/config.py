"""Application configuration."""
import os
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == 'true'


class Config:
    """Application configuration, read from the environment.

    Class attributes hold the process-wide values; ``Config.from_env()``
    builds an instance with the same fields so callers (and tests) can work
    with their own copy.
    """
    DISCORD_PUBLIC_KEY = os.environ.get('DISCORD_PUBLIC_KEY')
    DISCORD_BOT_TOKEN = os.environ.get('DISCORD_BOT_TOKEN')
    DISCORD_APPLICATION_ID = os.environ.get('DISCORD_APPLICATION_ID')
    DISCORD_API_BASE_URL = os.environ.get('DISCORD_API_BASE_URL', 'https://discord.com/api/v10').rstrip('/')
    DISCORD_API_TIMEOUT = float(os.environ.get('DISCORD_API_TIMEOUT', '10'))
    AUTO_REGISTER_COMMANDS = _env_bool('AUTO_REGISTER_COMMANDS', 'false')

    # Handler threads; 0 runs handlers inline on the request thread
    HANDLER_WORKERS = int(os.environ.get('HANDLER_WORKERS', '8'))
    # Seconds to wait for a handler's initial response before auto-acknowledging
    INITIAL_RESPONSE_TIMEOUT = float(os.environ.get('INITIAL_RESPONSE_TIMEOUT', '2.5'))

    DEBUG_ERRORS = _env_bool('DEBUG_ERRORS', 'false')
    ENVIRONMENT = os.environ.get('ENVIRONMENT', 'production')

    def __init__(
        self,
        public_key: Optional[str] = None,
        bot_token: Optional[str] = None,
        application_id: Optional[str] = None,
        **overrides
    ):
        cls = type(self)
        self.DISCORD_PUBLIC_KEY = public_key if public_key is not None else cls.DISCORD_PUBLIC_KEY
        self.DISCORD_BOT_TOKEN = bot_token if bot_token is not None else cls.DISCORD_BOT_TOKEN
        self.DISCORD_APPLICATION_ID = application_id if application_id is not None else cls.DISCORD_APPLICATION_ID
        for key, value in overrides.items():
            if not hasattr(cls, key):
                raise AttributeError(f"Unknown configuration key: {key}")
            setattr(self, key, value)

    @classmethod
    def from_env(cls) -> 'Config':
        """Build a configuration snapshot from the current environment."""
        return cls(
            public_key=os.environ.get('DISCORD_PUBLIC_KEY'),
            bot_token=os.environ.get('DISCORD_BOT_TOKEN'),
            application_id=os.environ.get('DISCORD_APPLICATION_ID'),
            DISCORD_API_BASE_URL=os.environ.get('DISCORD_API_BASE_URL', 'https://discord.com/api/v10').rstrip('/'),
            DISCORD_API_TIMEOUT=float(os.environ.get('DISCORD_API_TIMEOUT', '10')),
            AUTO_REGISTER_COMMANDS=_env_bool('AUTO_REGISTER_COMMANDS', 'false'),
            HANDLER_WORKERS=int(os.environ.get('HANDLER_WORKERS', '8')),
            INITIAL_RESPONSE_TIMEOUT=float(os.environ.get('INITIAL_RESPONSE_TIMEOUT', '2.5')),
            DEBUG_ERRORS=_env_bool('DEBUG_ERRORS', 'false'),
            ENVIRONMENT=os.environ.get('ENVIRONMENT', 'production'),
        )

    def missing_settings(self) -> list:
        """Names of required settings that are not set."""
        required = ('DISCORD_PUBLIC_KEY', 'DISCORD_BOT_TOKEN', 'DISCORD_APPLICATION_ID')
        return [name for name in required if not getattr(self, name)]

    def is_configured(self) -> bool:
        return not self.missing_settings()
