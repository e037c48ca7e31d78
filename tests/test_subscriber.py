# tests/test_subscriber.py

import threading
from unittest.mock import MagicMock

import msgspec
import pytest

from stocky.clients.pubsub_subscriber import RewardEventListener
from stocky.types import PublisherConfig, RewardCreatedEvent


EVENT = RewardCreatedEvent(
    reward_id="r-1",
    user_id="u1",
    stock_symbol="TCS",
    shares="2.5",
    rewarded_at="2025-09-25T10:00:00Z",
    correlation_id="idem-1",
)


@pytest.fixture
def subscriber_client():
    client = MagicMock()
    client.subscription_path.side_effect = (
        lambda project, subscription: f"projects/{project}/subscriptions/{subscription}"
    )
    client.subscribe.return_value.done.return_value = True
    return client


@pytest.fixture
def listener(subscriber_client):
    return RewardEventListener(PublisherConfig(project_id="proj"), client=subscriber_client, poll_seconds=0.01)


def message(data: bytes):
    msg = MagicMock()
    msg.data = data
    msg.message_id = "m-1"
    return msg


def test_event_is_decoded_handed_over_and_acked(listener):
    received = []
    msg = message(msgspec.json.encode(EVENT))

    listener.handle_message(msg, received.append)

    assert received == [EVENT]
    msg.ack.assert_called_once_with()
    msg.nack.assert_not_called()


def test_undecodable_payload_is_acked_and_dropped(listener, caplog):
    received = []
    msg = message(b'{"reward_id": 7}')

    listener.handle_message(msg, received.append)

    assert received == []
    msg.ack.assert_called_once_with()
    assert "Dropping undecodable reward event" in caplog.text


def test_handler_failure_nacks_for_redelivery(listener):
    def broken(event):
        raise RuntimeError("sink unavailable")

    msg = message(msgspec.json.encode(EVENT))
    listener.handle_message(msg, broken)

    msg.nack.assert_called_once_with()
    msg.ack.assert_not_called()


def test_run_subscribes_and_shuts_the_stream_down(listener, subscriber_client):
    listener.run()

    path = subscriber_client.subscribe.call_args.args[0]
    assert path == "projects/proj/subscriptions/reward-events-tail"
    future = subscriber_client.subscribe.return_value
    future.cancel.assert_called_once_with()
    future.result.assert_called_once_with()
    subscriber_client.close.assert_called_once_with()


def test_run_stops_on_stop_event(subscriber_client):
    subscriber_client.subscribe.return_value.done.return_value = False
    stop = threading.Event()
    stop.set()
    listener = RewardEventListener(PublisherConfig(project_id="proj"), client=subscriber_client, stop_event=stop)

    listener.run()

    subscriber_client.subscribe.return_value.cancel.assert_called_once_with()


def test_callback_routes_through_handle_message(listener, subscriber_client):
    received = []
    listener.run(received.append)

    callback = subscriber_client.subscribe.call_args.kwargs["callback"]
    callback(message(msgspec.json.encode(EVENT)))

    assert received == [EVENT]


def test_listener_requires_project():
    with pytest.raises(ValueError):
        RewardEventListener(PublisherConfig(project_id=None), client=MagicMock())
