"""Handlers for the gateway's own slash commands."""
from .command_registry import CommandRegistry
from .embed_utils import COLOR_INFO, COLOR_SUCCESS, create_embed, error_response, message_response
from .models import ApplicationCommandOptionType, NewApplicationCommand

BUILTIN_COMMANDS = [
    NewApplicationCommand(name='ping', description='Check that the bot is online'),
    NewApplicationCommand(name='help', description='Show available commands', options=(
        {
            'name': 'command',
            'description': 'Show only this command',
            'type': int(ApplicationCommandOptionType.STRING),
            'required': False
        },
    )),
]


def register_builtin_commands(registry: CommandRegistry) -> CommandRegistry:
    """Bind /ping and /help on the given registry."""

    @registry.command('ping')
    def handle_ping(lifecycle):
        lifecycle.respond(message_response(embeds=[create_embed(
            'Pong!',
            'Interactions gateway is running.',
            color=COLOR_SUCCESS,
            footer={'text': 'Status: Online'}
        )]))

    @registry.command('help')
    def handle_help(lifecycle):
        names = registry.names()
        wanted = lifecycle.get_option('command')
        if wanted:
            wanted = str(wanted).lstrip('/')
            if wanted not in names:
                lifecycle.respond(error_response('Unknown Command', f'No command named `/{wanted}`.'))
                return
            names = [wanted]

        declared = {c.name: c.description for c in registry.declared()}
        fields = [{
            'name': f'/{name}',
            'value': declared.get(name) or 'No description',
            'inline': True
        } for name in names]
        lifecycle.respond(message_response(embeds=[create_embed(
            'Available Commands',
            'Here are the commands you can use:',
            color=COLOR_INFO,
            fields=fields
        )], ephemeral=True))

    return registry
