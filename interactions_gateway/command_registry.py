"""Registry for Discord command handlers and declared command metadata."""
import threading
from typing import Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

from .models import ApplicationCommand
from .shared.observability import get_logger

logger = get_logger('interactions-gateway.registry')


@runtime_checkable
class CommandHandler(Protocol):
    """Anything that can take over an application command interaction."""

    def handle(self, lifecycle) -> None:
        ...


class FunctionHandler:
    """Adapts a plain ``callback(lifecycle)`` function to CommandHandler."""

    def __init__(self, func: Callable):
        self.func = func

    def handle(self, lifecycle) -> None:
        self.func(lifecycle)

    def __repr__(self):
        return f"FunctionHandler({getattr(self.func, '__qualname__', self.func)!r})"


Callback = Union[CommandHandler, Callable]


def as_handler(callback: Callback) -> CommandHandler:
    if isinstance(callback, CommandHandler):
        return callback
    if callable(callback):
        return FunctionHandler(callback)
    raise TypeError(f"Command callback must be callable or define handle(), got {type(callback).__name__}")


class CommandRegistry:
    """Command bindings by name and by id, plus the declared command cache.

    Writers take a lock and publish fresh copies of the maps; readers only
    ever look at the currently published copy, so a lookup racing a
    registration never sees a half-applied change.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._commands: Dict[str, ApplicationCommand] = {}
        self._by_name: Dict[str, CommandHandler] = {}
        self._by_id: Dict[str, CommandHandler] = {}

    # --- Declared commands ---

    def declare(self, command: ApplicationCommand) -> ApplicationCommand:
        """Upsert a command into the id-keyed cache and return it."""
        with self._lock:
            commands = dict(self._commands)
            commands[command.id] = command
            self._commands = commands
        logger.debug("Command declared", command_id=command.id, command_name=command.name)
        return command

    def undeclare(self, command_id: str) -> Optional[ApplicationCommand]:
        with self._lock:
            commands = dict(self._commands)
            removed = commands.pop(command_id, None)
            self._commands = commands
        return removed

    def get_declared(self, command_id: str) -> Optional[ApplicationCommand]:
        return self._commands.get(command_id)

    def declared(self) -> List[ApplicationCommand]:
        return list(self._commands.values())

    # --- Handler bindings ---

    def bind(self, key: str, callback: Callback, by: str = 'name') -> CommandHandler:
        """Bind a callback under a command name or id, replacing any previous one."""
        if by not in ('name', 'id'):
            raise ValueError(f"bind() expects by='name' or by='id', got {by!r}")

        handler = as_handler(callback)
        with self._lock:
            if by == 'name':
                index = dict(self._by_name)
                replaced = key in index
                index[key] = handler
                self._by_name = index
            else:
                index = dict(self._by_id)
                replaced = key in index
                index[key] = handler
                self._by_id = index

        if replaced:
            logger.debug("Command binding replaced", key=key, index=by)
        return handler

    def add(self, name: str, callback: Callback) -> CommandHandler:
        return self.bind(name, callback, by='name')

    def add_id(self, command_id: str, callback: Callback) -> CommandHandler:
        return self.bind(command_id, callback, by='id')

    def command(self, name: str):
        """Decorator to register a command handler by name."""
        def decorator(func):
            self.add(name, func)
            return func
        return decorator

    def resolve(self, name: Optional[str], command_id: Optional[str]) -> Optional[CommandHandler]:
        """Find the handler for an invocation; a name match always wins over an id match."""
        by_name = self._by_name
        if name is not None and name in by_name:
            return by_name[name]
        by_id = self._by_id
        if command_id is not None and command_id in by_id:
            return by_id[command_id]
        return None

    def names(self) -> List[str]:
        return sorted(self._by_name)
