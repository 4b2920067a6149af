"""Global application command management against the Discord API."""
from typing import Iterable, List, Optional

from .command_registry import CommandRegistry
from .discord_service import DiscordService
from .errors import RemoteApiError
from .models import ApplicationCommand, command_body, commands_from_list
from .shared.observability import get_logger, traced_function

logger = get_logger('interactions-gateway.commands')


class CommandApiClient:
    """List/create/edit/delete global commands, keeping the registry's cache in step."""

    def __init__(self, service: DiscordService, registry: CommandRegistry):
        self.service = service
        self.registry = registry

    @traced_function("list_commands")
    def list(self) -> List[ApplicationCommand]:
        """Fetch all global commands and declare each of them."""
        items = self.service.request('GET', self.service.commands_path(), 200) or []
        commands = [self.registry.declare(c) for c in commands_from_list(items)]
        logger.info("Fetched global commands", total=len(commands))
        return commands

    @traced_function("create_command")
    def create(self, command) -> ApplicationCommand:
        """Create a global command and declare it once the platform assigned an id.

        Discord answers 201 when the name is new and 200 when it overwrote an
        existing command of the same name; both mean success.
        """
        body = command_body(command)
        created = self.service.request('POST', self.service.commands_path(), (200, 201), json=body)
        declared = self.registry.declare(ApplicationCommand.from_dict(created))
        logger.info("Command created", command_id=declared.id, command_name=declared.name)
        return declared

    @traced_function("edit_command")
    def edit(self, command, command_id: str) -> ApplicationCommand:
        body = command_body(command)
        updated = self.service.request('PATCH', self.service.commands_path(command_id), 200, json=body)
        declared = self.registry.declare(ApplicationCommand.from_dict(updated))
        logger.info("Command edited", command_id=declared.id, command_name=declared.name)
        return declared

    @traced_function("delete_command")
    def delete(self, command_id: str) -> None:
        """Delete a global command and evict it from the declared cache."""
        self.service.request('DELETE', self.service.commands_path(command_id), 204)
        self.registry.undeclare(command_id)
        logger.info("Command deleted", command_id=command_id)

    def sync(self, commands: Iterable, correlation_id: Optional[str] = None) -> List[dict]:
        """Create every given definition, reporting per-command outcomes.

        One failing command does not stop the others; failures are reported
        in the result list instead of raised.
        """
        results = []
        for command in commands:
            name = command_body(command).get('name')
            try:
                created = self.create(command)
            except RemoteApiError as e:
                logger.error(
                    f"Failed to register command '{name}'",
                    correlation_id=correlation_id,
                    command_name=name,
                    status_code=e.status,
                    response_text=str(e.body)[:200]
                )
                results.append({
                    'command': name,
                    'status': 'error',
                    'message': f"HTTP {e.status}" if e.status else str(e),
                })
                continue
            results.append({
                'command': name,
                'status': 'success',
                'message': f"Command '/{name}' registered successfully",
                'id': created.id,
            })
        return results
