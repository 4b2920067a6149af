"""Shared fixtures for the interactions gateway tests."""
import json
import os
import time
from datetime import datetime, timedelta, timezone

import pytest
from nacl.signing import SigningKey

# Keep the tracer from trying to reach Cloud Trace during tests
os.environ.setdefault('LOCAL_DEV', '1')

from interactions_gateway.command_registry import CommandRegistry  # noqa: E402
from interactions_gateway.discord_service import DiscordService  # noqa: E402
from interactions_gateway.discord_utils import SignatureVerifier  # noqa: E402
from interactions_gateway.interaction_handler import InteractionDispatcher  # noqa: E402

APPLICATION_ID = '111111111111111111'
BOT_TOKEN = 'bot-token'
BASE_URL = 'https://discord.test/api/v10'


class FakeClock:
    """Controllable time source."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body
        if body is None:
            self.text = ''
        elif isinstance(body, str):
            self.text = body
        else:
            self.text = json.dumps(body)
        self.content = self.text.encode('utf-8')

    def json(self):
        if isinstance(self._body, str) or self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    """Records requests and answers from a queue of FakeResponses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, status_code, body=None):
        self.responses.append(FakeResponse(status_code, body))

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({
            'method': method,
            'url': url,
            'headers': headers or {},
            'json': json,
            'timeout': timeout,
        })
        if not self.responses:
            raise AssertionError(f"Unexpected request {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def signing_key():
    return SigningKey.generate()


@pytest.fixture
def public_key(signing_key):
    return signing_key.verify_key.encode().hex()


@pytest.fixture
def sign(signing_key):
    def _sign(body, timestamp=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode('utf-8')
        timestamp = timestamp or str(int(time.time()))
        signature = signing_key.sign(timestamp.encode('utf-8') + body).signature.hex()
        headers = {
            'X-Signature-Ed25519': signature,
            'X-Signature-Timestamp': timestamp,
            'Content-Type': 'application/json',
        }
        return headers, body
    return _sign


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def service(session):
    return DiscordService(APPLICATION_ID, BOT_TOKEN, base_url=BASE_URL, timeout=5, session=session)


@pytest.fixture
def registry():
    return CommandRegistry()


@pytest.fixture
def dispatcher(public_key, registry, service, clock):
    return InteractionDispatcher(SignatureVerifier(public_key), registry, service, clock=clock)


def command_payload(name='echo', command_id='900', options=None, token='interaction-token'):
    data = {'id': command_id, 'name': name}
    if options is not None:
        data['options'] = options
    return {
        'id': '555',
        'type': 2,
        'application_id': APPLICATION_ID,
        'token': token,
        'version': 1,
        'data': data,
    }
