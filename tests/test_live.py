import pytest
from starlette.websockets import WebSocketDisconnect

from stitchup.models.user import User
from stitchup.services.auth import create_access_token
from stitchup.services.live import SnapshotHub, enquiry_channel, session_channel
from tests.fixtures_data import ACCEPT_HEMMING, CUSTOMER, TAILOR, make_user


def test_hub_delivers_latest_snapshot_to_each_subscriber():
    hub = SnapshotHub()
    first, second = [], []
    hub.subscribe("enquiry:a_b", first.append)
    unsubscribe = hub.subscribe("enquiry:a_b", second.append)

    assert hub.publish("enquiry:a_b", {"messages": [1]}) == 2
    unsubscribe()
    assert hub.publish("enquiry:a_b", {"messages": [1, 2]}) == 1

    assert first == [{"messages": [1]}, {"messages": [1, 2]}]
    assert second == [{"messages": [1]}]


def test_hub_isolates_failing_subscribers():
    hub = SnapshotHub()
    received = []

    def broken(snapshot):
        raise RuntimeError("socket gone")

    hub.subscribe("session:u1", broken)
    hub.subscribe("session:u1", received.append)

    assert hub.publish("session:u1", {"cart_count": 1}) == 2
    assert received == [{"cart_count": 1}]


def test_unsubscribe_is_idempotent_and_clears_channel():
    hub = SnapshotHub()
    unsubscribe = hub.subscribe(session_channel("u1"), lambda snapshot: None)

    unsubscribe()
    unsubscribe()

    assert hub.has_subscribers(session_channel("u1")) is False
    assert hub.publish(session_channel("u1"), {}) == 0
    assert enquiry_channel("c_t") == "enquiry:c_t"


@pytest.fixture
def tokens(session_factory):
    db = session_factory()
    make_user(db, CUSTOMER)
    make_user(db, TAILOR)
    db.close()
    return create_access_token("cust-1"), create_access_token("tail-1")


def test_conversation_stream_sends_snapshot_then_updates(api_client, tokens):
    customer_token, _ = tokens

    with api_client.websocket_connect(f"/ws/enquiries/tail-1?token={customer_token}") as ws:
        initial = ws.receive_json()
        assert initial == {
            "type": "snapshot",
            "data": {"id": "cust-1_tail-1", "status": "open", "last_updated": None, "messages": []},
        }

        api_client.post(
            "/api/enquiries/tail-1/messages",
            json={"type": "plain", "text": "Is Saturday pickup possible?"},
            headers={"Authorization": f"Bearer {customer_token}"},
        )

        update = ws.receive_json()
        assert update["type"] == "snapshot"
        assert [m["text"] for m in update["data"]["messages"]] == ["Is Saturday pickup possible?"]

        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong", "data": {}}


def test_tailor_viewing_a_conversation_is_marked_busy(api_client, tokens, session_factory):
    _, tailor_token = tokens

    with api_client.websocket_connect(f"/ws/enquiries/cust-1?token={tailor_token}") as ws:
        ws.receive_json()
        db = session_factory()
        assert db.get(User, "tail-1").is_currently_chatting is True
        db.close()

    db = session_factory()
    assert db.get(User, "tail-1").is_currently_chatting is False
    db.close()


def test_listing_and_order_streams_follow_accept(api_client, tokens):
    customer_token, tailor_token = tokens
    customer_headers = {"Authorization": f"Bearer {customer_token}"}
    tailor_headers = {"Authorization": f"Bearer {tailor_token}"}
    api_client.post("/api/enquiries/tail-1/messages", json={"type": "plain", "text": "Hi"}, headers=customer_headers)

    with api_client.websocket_connect(f"/ws/orders?token={customer_token}") as orders_ws:
        assert orders_ws.receive_json()["data"] == []
        with api_client.websocket_connect(f"/ws/enquiries?token={tailor_token}") as listing_ws:
            listing = listing_ws.receive_json()["data"]
            assert listing[0]["has_new"] is True

            accepted = api_client.post("/api/enquiries/cust-1/accept", json=ACCEPT_HEMMING, headers=tailor_headers)

            orders = orders_ws.receive_json()["data"]
            assert [o["id"] for o in orders] == [accepted.json()["id"]]
            listing = listing_ws.receive_json()["data"]
            assert listing[0]["status"] == "accepted"
            assert listing[0]["last_sender"] == "system"


def test_session_stream_follows_cart_changes(api_client, tokens):
    customer_token, _ = tokens

    with api_client.websocket_connect(f"/ws/session?token={customer_token}") as ws:
        assert ws.receive_json()["data"]["cart_count"] == 0

        api_client.post(
            "/api/cart",
            json={"tailor_id": "tail-1"},
            headers={"Authorization": f"Bearer {customer_token}"},
        )

        snapshot = ws.receive_json()["data"]
        assert snapshot["cart_count"] == 1
        assert snapshot["cart"][0]["tailor_id"] == "tail-1"


@pytest.mark.parametrize("token", [None, "not-a-token"])
def test_stream_without_valid_token_is_closed(api_client, tokens, token):
    path = "/ws/orders" if token is None else f"/ws/orders?token={token}"

    with pytest.raises(WebSocketDisconnect) as excinfo:
        with api_client.websocket_connect(path) as ws:
            ws.receive_json()

    assert excinfo.value.code == 4401


def test_session_stream_is_open_to_tailors(api_client, tokens):
    _, tailor_token = tokens

    with api_client.websocket_connect(f"/ws/session?token={tailor_token}") as ws:
        snapshot = ws.receive_json()

    assert snapshot["type"] == "snapshot"
    assert snapshot["data"]["cart_count"] == 0
