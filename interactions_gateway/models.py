"""Discord interaction and application command types.

Only the parts of the payload schema the gateway inspects are modelled;
everything else stays available through ``Interaction.raw``.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2


class InteractionResponseType(IntEnum):
    PONG = 1
    ACKNOWLEDGE = 2
    CHANNEL_MESSAGE = 3
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    ACK_WITH_SOURCE = 5


class ApplicationCommandOptionType(IntEnum):
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8


@dataclass(frozen=True)
class CommandOption:
    """An argument supplied with a command invocation (may be nested)."""
    name: str
    value: Any = None
    type: Optional[int] = None
    options: Tuple['CommandOption', ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> 'CommandOption':
        if not isinstance(data, dict) or not isinstance(data.get('name'), str):
            raise ValueError(f"Command option must be an object with a string `name`, got {data!r}")
        return cls(
            name=data['name'],
            value=data.get('value'),
            type=data.get('type'),
            options=_options(data.get('options')),
        )

    @property
    def is_subcommand(self) -> bool:
        return self.type in (ApplicationCommandOptionType.SUB_COMMAND,
                             ApplicationCommandOptionType.SUB_COMMAND_GROUP)


def _options(items) -> Tuple[CommandOption, ...]:
    if items is None:
        return ()
    if not isinstance(items, list):
        raise ValueError(f"`options` must be a list, got {type(items).__name__}")
    return tuple(CommandOption.from_dict(o) for o in items)


@dataclass(frozen=True)
class CommandInvocation:
    """The ``data`` block of an application command interaction."""
    id: Optional[str]
    name: Optional[str]
    options: Tuple[CommandOption, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> 'CommandInvocation':
        """Build from the ``data`` block.

        Raises:
            ValueError: if ``id``/``name`` are not strings or an option is malformed
        """
        for key in ('id', 'name'):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ValueError(f"Command `{key}` must be a string, got {type(data[key]).__name__}")
        return cls(
            id=data.get('id'),
            name=data.get('name'),
            options=_options(data.get('options')),
        )

    def get_option(self, name: str, default: Any = None) -> Any:
        """Value of a top-level option, or ``default`` if it was not given.

        Sub-command options are skipped; their values live in ``options``.
        """
        for option in self.options:
            if option.name == name and not option.is_subcommand:
                return option.value
        return default


@dataclass(frozen=True)
class Interaction:
    """An inbound interaction, stamped with the time the request was accepted."""
    id: Optional[str]
    type: int
    token: Optional[str]
    received_at: datetime
    application_id: Optional[str] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    version: Optional[int] = None
    data: Optional[CommandInvocation] = None
    member: Optional[Dict[str, Any]] = field(default=None, compare=False)
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: dict, received_at: datetime) -> 'Interaction':
        data = payload.get('data')
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Interaction `data` must be an object, got {type(data).__name__}")
        return cls(
            id=payload.get('id'),
            type=payload.get('type'),
            token=payload.get('token'),
            received_at=received_at,
            application_id=payload.get('application_id'),
            guild_id=payload.get('guild_id'),
            channel_id=payload.get('channel_id'),
            version=payload.get('version'),
            data=CommandInvocation.from_dict(data) if data is not None else None,
            member=payload.get('member'),
            raw=payload,
        )

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        """Invoking user, from the guild member block or the DM ``user`` field."""
        if isinstance(self.member, dict) and isinstance(self.member.get('user'), dict):
            return self.member['user']
        user = self.raw.get('user')
        return user if isinstance(user, dict) else None

    @property
    def user_id(self) -> Optional[str]:
        return (self.user or {}).get('id')


@dataclass(frozen=True)
class NewApplicationCommand:
    """Body of a create/edit application command call."""
    name: str
    description: str
    options: Tuple[Dict[str, Any], ...] = ()

    def to_dict(self) -> dict:
        body = {'name': self.name, 'description': self.description}
        if self.options:
            body['options'] = list(self.options)
        return body


@dataclass(frozen=True)
class ApplicationCommand:
    """A global application command as known to the platform."""
    id: str
    name: str
    description: str = ''
    application_id: Optional[str] = None
    options: Tuple[Dict[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> 'ApplicationCommand':
        return cls(
            id=data['id'],
            name=data['name'],
            description=data.get('description', ''),
            application_id=data.get('application_id'),
            options=tuple(data.get('options') or ()),
        )

    def to_dict(self) -> dict:
        body = {
            'id': self.id,
            'application_id': self.application_id,
            'name': self.name,
            'description': self.description,
        }
        if self.options:
            body['options'] = list(self.options)
        return body


def command_body(command) -> dict:
    """JSON body for a command given as a dataclass or a plain dict."""
    if isinstance(command, dict):
        return command
    return command.to_dict()


def commands_from_list(items: List[dict]) -> List[ApplicationCommand]:
    return [ApplicationCommand.from_dict(item) for item in items]
