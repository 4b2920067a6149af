"""Service for Discord REST API calls."""
from typing import Any, Iterable, Optional, Union

import requests

from .errors import RemoteApiError
from .shared.observability import get_logger

logger = get_logger('interactions-gateway.discord-api')

ORIGINAL_MESSAGE = '@original'


class DiscordService:
    """Thin authenticated client for the platform's REST API.

    Every call is bounded by ``timeout`` and checked against the status codes
    the caller expects; anything else surfaces as ``RemoteApiError``.
    """

    def __init__(
        self,
        application_id: str,
        bot_token: str,
        base_url: str = "https://discord.com/api/v10",
        timeout: float = 10,
        session: Optional[requests.Session] = None
    ):
        self.application_id = application_id
        self.bot_token = bot_token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> 'DiscordService':
        return cls(
            application_id=config.DISCORD_APPLICATION_ID,
            bot_token=config.DISCORD_BOT_TOKEN,
            base_url=config.DISCORD_API_BASE_URL,
            timeout=config.DISCORD_API_TIMEOUT,
            session=session
        )

    def _headers(self, has_body: bool) -> dict:
        headers = {"Authorization": f"Bot {self.bot_token}"}
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _response_body(response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def request(
        self,
        method: str,
        path: str,
        expected: Union[int, Iterable[int]] = 200,
        json: Any = None,
        correlation_id: Optional[str] = None
    ) -> Any:
        """Perform a call and return the decoded body (None for 204).

        Args:
            method: HTTP method
            path: Path relative to the API base URL, starting with '/'
            expected: Status code(s) treated as success
            json: Request body, serialized as JSON when given
            correlation_id: Optional correlation ID for logging

        Returns:
            Parsed JSON body, or None when the response has no content
        """
        expected_codes = {expected} if isinstance(expected, int) else set(expected)
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(json is not None),
                json=json,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(
                "Discord API request failed",
                error=e,
                correlation_id=correlation_id,
                method=method,
                path=path
            )
            raise RemoteApiError(f"Discord API request failed: {e}", method=method, path=path) from e

        if response.status_code not in expected_codes:
            body = self._response_body(response)
            logger.warning(
                "Unexpected status from Discord API",
                correlation_id=correlation_id,
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=str(body)[:200]
            )
            raise RemoteApiError(
                'Unexpected status from Discord API response',
                status=response.status_code,
                body=body,
                method=method,
                path=path
            )

        logger.debug(
            "Discord API call succeeded",
            correlation_id=correlation_id,
            method=method,
            path=path,
            status_code=response.status_code
        )
        if response.status_code == 204 or not response.content:
            return None
        return self._response_body(response)

    # --- Application commands ---

    def commands_path(self, command_id: Optional[str] = None) -> str:
        path = f"/applications/{self.application_id}/commands"
        if command_id is not None:
            path = f"{path}/{command_id}"
        return path

    # --- Interaction webhook messages ---

    def _webhook_path(self, token: str, message_id: Optional[str] = None) -> str:
        path = f"/webhooks/{self.application_id}/{token}"
        if message_id is not None:
            path = f"{path}/messages/{message_id}"
        return path

    def edit_message(self, token: str, message_id: str, body: dict, correlation_id: Optional[str] = None) -> Any:
        return self.request('PATCH', self._webhook_path(token, message_id), 200, json=body,
                            correlation_id=correlation_id)

    def delete_message(self, token: str, message_id: str, correlation_id: Optional[str] = None) -> None:
        self.request('DELETE', self._webhook_path(token, message_id), 204, correlation_id=correlation_id)

    def create_followup(self, token: str, body: dict, correlation_id: Optional[str] = None) -> Any:
        return self.request('POST', self._webhook_path(token), 200, json=body, correlation_id=correlation_id)
