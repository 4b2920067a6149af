import threading

import pytest

from conftest import APPLICATION_ID, BASE_URL, command_payload
from interactions_gateway.errors import AlreadyRespondedError, RemoteApiError, TokenExpiredError
from interactions_gateway.lifecycle import InteractionLifecycle, LifecycleState, ResponseSlot
from interactions_gateway.models import Interaction

WEBHOOK_URL = f"{BASE_URL}/webhooks/{APPLICATION_ID}/interaction-token"


@pytest.fixture
def lifecycle(service, clock):
    interaction = Interaction.from_payload(command_payload(), clock())
    return InteractionLifecycle(interaction, service, ResponseSlot(), clock=clock)


def test_respond_sends_payload_once(lifecycle):
    lifecycle.respond({'type': 4, 'data': {'content': 'hi'}})

    assert lifecycle.slot.body == {'type': 4, 'data': {'content': 'hi'}}
    assert lifecycle.slot.status == 200
    assert lifecycle.state is LifecycleState.RESPONDED

    with pytest.raises(AlreadyRespondedError):
        lifecycle.respond({'type': 4, 'data': {'content': 'again'}})
    assert lifecycle.slot.body['data']['content'] == 'hi'


def test_acknowledge_sends_pong(lifecycle):
    lifecycle.acknowledge()

    assert lifecycle.slot.body == {'type': 1}
    with pytest.raises(AlreadyRespondedError):
        lifecycle.acknowledge()


def test_defer_sends_deferred_type(lifecycle):
    lifecycle.defer()

    assert lifecycle.slot.body == {'type': 5}


def test_ensure_acknowledged_is_noop_after_respond(lifecycle):
    lifecycle.respond({'type': 4, 'data': {'content': 'hi'}})

    assert lifecycle.ensure_acknowledged() is False
    assert lifecycle.slot.body['type'] == 4


def test_ensure_acknowledged_sends_exactly_one_pong(lifecycle):
    sent = []
    original_send = lifecycle.slot.send
    lifecycle.slot.send = lambda body, status=200: (sent.append(body), original_send(body, status))

    assert lifecycle.ensure_acknowledged() is True
    assert lifecycle.ensure_acknowledged() is False

    assert sent == [{'type': 1}]


def test_validity_window_is_fifteen_minutes(lifecycle, clock):
    clock.advance(minutes=14, seconds=59)
    assert lifecycle.is_valid()

    clock.advance(seconds=1)
    assert not lifecycle.is_valid()


@pytest.mark.parametrize('operation', [
    lambda lc: lc.respond({'type': 4, 'data': {'content': 'late'}}),
    lambda lc: lc.acknowledge(),
    lambda lc: lc.ensure_acknowledged(),
    lambda lc: lc.edit_initial_response({'content': 'late'}),
    lambda lc: lc.delete_initial_response(),
    lambda lc: lc.edit_response({'content': 'late'}, '123'),
    lambda lc: lc.delete_response('123'),
    lambda lc: lc.follow_up({'content': 'late'}),
])
def test_expired_token_rejects_every_operation(lifecycle, clock, session, operation):
    clock.advance(minutes=15)

    with pytest.raises(TokenExpiredError):
        operation(lifecycle)

    assert session.calls == []
    assert not lifecycle.slot.sent


def test_expiry_is_checked_before_the_responded_state(lifecycle, clock):
    lifecycle.respond({'type': 1})
    clock.advance(minutes=20)

    with pytest.raises(TokenExpiredError):
        lifecycle.respond({'type': 1})


def test_edit_initial_response_patches_original(lifecycle, session):
    session.queue(200, {'id': '1', 'content': 'edited'})

    result = lifecycle.edit_initial_response({'content': 'edited'})

    assert result == {'id': '1', 'content': 'edited'}
    call = session.calls[0]
    assert call['method'] == 'PATCH'
    assert call['url'] == f"{WEBHOOK_URL}/messages/@original"
    assert call['json'] == {'content': 'edited'}
    assert call['headers']['Authorization'] == 'Bot bot-token'


def test_delete_initial_response_deletes_original(lifecycle, session):
    session.queue(204)

    lifecycle.delete_initial_response()

    assert session.calls[0]['method'] == 'DELETE'
    assert session.calls[0]['url'] == f"{WEBHOOK_URL}/messages/@original"


def test_follow_up_posts_to_webhook_and_ignores_ack_state(lifecycle, session):
    lifecycle.respond({'type': 5})
    session.queue(200, {'id': '2', 'content': 'done'})

    assert lifecycle.follow_up({'content': 'done'})['id'] == '2'
    assert session.calls[0]['method'] == 'POST'
    assert session.calls[0]['url'] == WEBHOOK_URL


def test_webhook_calls_work_before_the_initial_response(lifecycle, session):
    session.queue(200, {'id': '3'})

    lifecycle.edit_response({'content': 'x'}, '3')

    assert not lifecycle.acknowledged


@pytest.mark.parametrize('operation,status', [
    (lambda lc: lc.edit_response({'content': 'x'}, '3'), 404),
    (lambda lc: lc.delete_response('3'), 200),
    (lambda lc: lc.follow_up({'content': 'x'}), 204),
])
def test_unexpected_webhook_status_raises(lifecycle, session, operation, status):
    session.queue(status, {'message': 'nope'})

    with pytest.raises(RemoteApiError) as excinfo:
        operation(lifecycle)

    assert excinfo.value.status == status


def test_options_are_exposed(service, clock):
    payload = command_payload(options=[{'name': 'text', 'type': 3, 'value': 'hello'}])
    lifecycle = InteractionLifecycle(Interaction.from_payload(payload, clock()), service, clock=clock)

    assert lifecycle.get_option('text') == 'hello'
    assert lifecycle.get_option('missing', 'default') == 'default'


def test_concurrent_responders_only_one_wins(lifecycle):
    barrier = threading.Barrier(8)
    outcomes = []

    def attempt():
        barrier.wait()
        try:
            lifecycle.acknowledge()
            outcomes.append('sent')
        except AlreadyRespondedError:
            outcomes.append('rejected')

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count('sent') == 1
    assert outcomes.count('rejected') == 7


def test_subcommand_is_not_returned_as_option_value(service, clock):
    payload = command_payload(options=[
        {'name': 'text', 'type': 1, 'options': [{'name': 'text', 'type': 3, 'value': 'inner'}]},
    ])
    lifecycle = InteractionLifecycle(Interaction.from_payload(payload, clock()), service, clock=clock)

    assert lifecycle.get_option('text') is None
    assert lifecycle.options[0].is_subcommand
    assert lifecycle.options[0].options[0].value == 'inner'


@pytest.mark.parametrize('extra, expected', [
    ({'member': {'user': {'id': '42'}}}, '42'),
    ({'user': {'id': '7'}}, '7'),
    ({'member': {'nick': 'x'}}, None),
    ({'user': 'not-an-object'}, None),
])
def test_invoking_user_from_member_or_dm(clock, extra, expected):
    interaction = Interaction.from_payload({**command_payload(), **extra}, clock())

    assert interaction.user_id == expected
