"""Discord embed and interaction response builders."""
from datetime import datetime, timezone
from typing import Optional, Dict, List, Any

from .models import InteractionResponseType

# Color constants
COLOR_SUCCESS = 0x00FF00
COLOR_INFO = 0x0066CC
COLOR_ERROR = 0xFF4C4C

EPHEMERAL_FLAG = 64


def create_embed(
    title: str,
    description: str = None,
    color: int = COLOR_INFO,
    fields: List[Dict[str, Any]] = None,
    footer: Dict[str, str] = None,
    timestamp: bool = True
) -> Dict[str, Any]:
    """Create a Discord embed with consistent formatting.

    Args:
        title: Embed title
        description: Embed description
        color: Embed color (hex integer)
        fields: List of field dicts with 'name', 'value', 'inline' keys
        footer: Footer dict with 'text' key
        timestamp: Whether to include the current time

    Returns:
        Discord embed dict
    """
    embed = {
        'title': title,
        'color': color
    }

    if description:
        embed['description'] = description

    if fields:
        embed['fields'] = fields

    if footer:
        embed['footer'] = footer

    if timestamp:
        embed['timestamp'] = datetime.now(timezone.utc).isoformat()

    return embed


def message_data(
    content: Optional[str] = None,
    embeds: List[Dict[str, Any]] = None,
    ephemeral: bool = False
) -> Dict[str, Any]:
    """Message body usable for initial responses, edits and follow-ups."""
    data = {}
    if content:
        data['content'] = content
    if embeds:
        data['embeds'] = embeds
    if ephemeral:
        data['flags'] = EPHEMERAL_FLAG
    return data


def message_response(
    content: Optional[str] = None,
    embeds: List[Dict[str, Any]] = None,
    ephemeral: bool = False
) -> Dict[str, Any]:
    """Initial response that posts a message in the channel."""
    return {
        'type': int(InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE),
        'data': message_data(content, embeds, ephemeral)
    }


def error_response(title: str, description: str, ephemeral: bool = True) -> Dict[str, Any]:
    embed = create_embed(title, description, color=COLOR_ERROR)
    return message_response(embeds=[embed], ephemeral=ephemeral)


def deferred_response() -> Dict[str, Any]:
    return {'type': int(InteractionResponseType.ACK_WITH_SOURCE)}
