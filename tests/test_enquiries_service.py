import pytest

from stitchup.models.enquiry import Enquiry, EnquiryMessage
from stitchup.models.user import User
from stitchup.schemas.messages import PlainMessage, PricingMessage, VoiceMessage
from stitchup.services.enquiries import (
    append_message,
    contact_share_message,
    get_conversation,
    list_enquiries_for,
    resolve_participants,
)
from stitchup.services.errors import CounterpartNotFound, EnquiryClosed
from tests.fixtures_data import CUSTOMER, TAILOR, TAILOR_WITHOUT_PHONE, make_user


@pytest.fixture
def people(db):
    return make_user(db, CUSTOMER), make_user(db, TAILOR)


def test_first_message_creates_conversation_with_identity(db, people):
    customer, tailor = people

    result = append_message(
        db,
        customer=customer,
        tailor=tailor,
        content=PlainMessage(sender="customer", text="Can you hem my trousers?"),
        client_id=1700000000000,
    )

    assert result.created is True
    assert result.enquiry.id == "cust-1_tail-1"
    assert result.enquiry.customer_name == "Asha"
    assert result.enquiry.tailor_name == "Ravi Tailors"
    assert result.enquiry.status is None
    assert result.message.client_id == 1700000000000
    assert result.message.seq is not None


def test_identity_fields_are_never_overwritten(db, people):
    customer, tailor = people
    append_message(db, customer=customer, tailor=tailor, content=PlainMessage(sender="customer", text="Hi"))

    customer.name = "Renamed"
    db.commit()
    result = append_message(db, customer=customer, tailor=tailor, content=PlainMessage(sender="tailor", text="Hello"))

    assert result.created is False
    assert result.enquiry.customer_name == "Asha"


def test_messages_keep_append_order(db, people):
    customer, tailor = people
    texts = ["one", "two", "three", "four"]
    for index, text in enumerate(texts):
        sender = "customer" if index % 2 == 0 else "tailor"
        append_message(db, customer=customer, tailor=tailor, content=PlainMessage(sender=sender, text=text))

    conversation = get_conversation(db, "cust-1_tail-1")

    assert [message["text"] for message in conversation["messages"]] == texts
    assert [message["from"] for message in conversation["messages"]] == ["customer", "tailor", "customer", "tailor"]


def test_writers_holding_stale_copies_do_not_lose_messages(session_factory):
    seed = session_factory()
    customer = make_user(seed, CUSTOMER)
    tailor = make_user(seed, TAILOR)
    append_message(seed, customer=customer, tailor=tailor, content=PlainMessage(sender="customer", text="start"))
    seed.close()

    first = session_factory()
    second = session_factory()
    # Both writers load the conversation before either appends.
    first_view = first.get(Enquiry, "cust-1_tail-1")
    second_view = second.get(Enquiry, "cust-1_tail-1")
    assert len(first_view.messages) == len(second_view.messages) == 1

    for n in range(3):
        append_message(
            first,
            customer=first.get(User, "cust-1"),
            tailor=first.get(User, "tail-1"),
            content=PlainMessage(sender="customer", text=f"c{n}"),
        )
        append_message(
            second,
            customer=second.get(User, "cust-1"),
            tailor=second.get(User, "tail-1"),
            content=PlainMessage(sender="tailor", text=f"t{n}"),
        )
    first.close()
    second.close()

    check = session_factory()
    assert check.query(EnquiryMessage).filter(EnquiryMessage.enquiry_id == "cust-1_tail-1").count() == 7
    check.close()


def test_concurrent_first_insert_retries_against_existing_row(session_factory):
    seed = session_factory()
    make_user(seed, CUSTOMER)
    make_user(seed, TAILOR)
    seed.close()

    winner = session_factory()
    loser = session_factory()
    loser_customer = loser.get(User, "cust-1")
    loser_tailor = loser.get(User, "tail-1")
    append_message(
        winner,
        customer=winner.get(User, "cust-1"),
        tailor=winner.get(User, "tail-1"),
        content=PlainMessage(sender="customer", text="first"),
    )

    # The loser still believes the conversation does not exist.
    real_get = loser.get
    calls = []

    def stale_get(model, key, *args, **kwargs):
        if model is Enquiry and not calls:
            calls.append(key)
            return None
        return real_get(model, key, *args, **kwargs)

    loser.get = stale_get
    result = append_message(
        loser,
        customer=loser_customer,
        tailor=loser_tailor,
        content=PlainMessage(sender="customer", text="second"),
    )

    assert calls == ["cust-1_tail-1"]
    assert result.created is False
    assert [m["text"] for m in get_conversation(loser, "cust-1_tail-1")["messages"]] == ["first", "second"]
    winner.close()
    loser.close()


def test_pricing_is_refused_once_decided(db, people):
    customer, tailor = people
    append_message(db, customer=customer, tailor=tailor, content=PlainMessage(sender="customer", text="Hi"))
    enquiry = db.get(Enquiry, "cust-1_tail-1")
    enquiry.status = "accepted"
    db.commit()

    with pytest.raises(EnquiryClosed):
        append_message(db, customer=customer, tailor=tailor, content=PricingMessage.offer("Hemming", 150))

    result = append_message(db, customer=customer, tailor=tailor, content=PlainMessage(sender="customer", text="Thanks"))
    assert result.enquiry.status == "accepted"
    assert len(get_conversation(db, "cust-1_tail-1")["messages"]) == 2


def test_pricing_message_is_serialized_with_details(db, people):
    customer, tailor = people

    append_message(db, customer=customer, tailor=tailor, content=PricingMessage.offer("Hemming", 150))

    message = get_conversation(db, "cust-1_tail-1")["messages"][0]
    assert message["type"] == "pricing"
    assert message["text"] == "Custom pricing: Hemming - ₹150"
    assert message["pricing"] == {"service": "Hemming", "price": 150.0}
    assert "reason" not in message


def test_contact_share_falls_back_to_na(db):
    tailor = make_user(db, TAILOR_WITHOUT_PHONE)

    assert contact_share_message(tailor).text == "My contact number is: N/A. Feel free to call me!"


def test_unknown_conversation_reads_as_empty_open_thread(db):
    conversation = get_conversation(db, "nobody_nothing")

    assert conversation["status"] == "open"
    assert conversation["messages"] == []


def test_listing_previews_and_new_flags(db, people):
    customer, tailor = people
    other = make_user(db, TAILOR_WITHOUT_PHONE)
    append_message(db, customer=customer, tailor=other, content=PlainMessage(sender="customer", text="older"))
    append_message(
        db,
        customer=customer,
        tailor=tailor,
        content=VoiceMessage(sender="customer", audio_url="https://cdn.example.com/v.webm"),
    )

    tailor_view = list_enquiries_for(db, tailor)
    customer_view = list_enquiries_for(db, customer)

    assert len(tailor_view) == 1
    assert tailor_view[0]["preview"] == "🎤 Voice message"
    assert tailor_view[0]["has_new"] is True
    assert [item["tailor_id"] for item in customer_view] == ["tail-1", "tail-2"]
    assert customer_view[0]["has_new"] is False


def test_long_messages_are_truncated_in_preview(db, people):
    customer, tailor = people
    append_message(db, customer=customer, tailor=tailor, content=PlainMessage(sender="customer", text="x" * 250))

    assert len(list_enquiries_for(db, tailor)[0]["preview"]) == 100


def test_counterpart_must_have_the_other_role(db, people):
    customer, tailor = people

    assert resolve_participants(db, customer, "tail-1") == (customer, tailor)
    assert resolve_participants(db, tailor, "cust-1") == (customer, tailor)
    with pytest.raises(CounterpartNotFound):
        resolve_participants(db, customer, "cust-1")
    with pytest.raises(CounterpartNotFound):
        resolve_participants(db, customer, "missing")
