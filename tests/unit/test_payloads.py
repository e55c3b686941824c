import pytest

from supportbot.core.errors import PayloadError
from supportbot.routing.payloads import Close, Rate, Reply, SelectTopic, parse_callback_payload


def test_parses_each_button_shape():
    assert parse_callback_payload("service_infastai") == SelectTopic(topic="infastai")
    assert parse_callback_payload("reply_4242") == Reply(user_id=4242)
    assert parse_callback_payload("close_4242") == Close(user_id=4242)
    assert parse_callback_payload("rate_4_4242") == Rate(value=4, user_id=4242)


def test_serialize_matches_wire_format():
    assert Rate(value=5, user_id=17).serialize() == "rate_5_17"
    assert parse_callback_payload(Close(user_id=17).serialize()) == Close(user_id=17)


@pytest.mark.parametrize(
    "data",
    [
        "",
        None,
        "rate_0_1",
        "rate_6_1",
        "rate_4_",
        "reply_abc",
        "close_-5",
        "service_",
        "service_InFast AI",
        "delete_1",
        "reply_" + "9" * 80,
        "reply_123\n",
        "close_\u0661\u0662",
        "rate_\u0664_1",
        "service_infastai\n",
    ],
)
def test_rejects_malformed_payloads(data):
    with pytest.raises(PayloadError):
        parse_callback_payload(data)


def test_rate_out_of_range_cannot_be_serialized():
    with pytest.raises(PayloadError):
        Rate(value=9, user_id=1).serialize()
