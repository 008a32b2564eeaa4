import uuid

import pytest

from app.core.exceptions import BadRequestException
from app.services.conversation_service import (
    build_conversation_id,
    is_participant,
    parse_conversation_id,
)


def test_conversation_id_is_order_independent():
    listing_id, a, b = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    assert build_conversation_id(listing_id, a, b) == build_conversation_id(listing_id, b, a)


def test_conversation_id_format_sorts_participants():
    listing_id = uuid.UUID("11111111-1111-1111-1111-111111111111")
    low = uuid.UUID("00000000-0000-0000-0000-000000000001")
    high = uuid.UUID("ffffffff-0000-0000-0000-000000000001")

    assert build_conversation_id(listing_id, high, low) == f"{listing_id}_{low}_{high}"


def test_conversation_id_differs_per_listing():
    a, b = uuid.uuid4(), uuid.uuid4()
    assert build_conversation_id(uuid.uuid4(), a, b) != build_conversation_id(uuid.uuid4(), a, b)


def test_same_participant_still_forms_a_key():
    listing_id, a = uuid.uuid4(), uuid.uuid4()
    assert build_conversation_id(listing_id, a, a) == f"{listing_id}_{a}_{a}"


def test_parse_round_trips_components():
    listing_id, a, b = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    parsed_listing, first, second = parse_conversation_id(build_conversation_id(listing_id, a, b))

    assert parsed_listing == listing_id
    assert {first, second} == {a, b}


@pytest.mark.parametrize("bad_id", ["", "abc", "a_b_c", f"{uuid.uuid4()}_{uuid.uuid4()}"])
def test_parse_rejects_malformed_ids(bad_id):
    with pytest.raises(BadRequestException):
        parse_conversation_id(bad_id)


def test_is_participant():
    listing_id, a, b = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    conversation_id = build_conversation_id(listing_id, a, b)

    assert is_participant(conversation_id, a)
    assert is_participant(conversation_id, str(b))
    assert not is_participant(conversation_id, uuid.uuid4())
    assert not is_participant(conversation_id, listing_id)
    assert not is_participant("basura", a)
