import uuid
from datetime import datetime, timedelta

from app.models.message import Message


def _conversations(client, auth_headers, user, **params):
    response = client.get("/api/v1/messages/conversations", params=params, headers=auth_headers(user))
    assert response.status_code == 200, response.text
    return response.json()


def test_listing_reflects_latest_quote_and_own_unread(client, auth_headers, buyer, seller, listing, send_message):
    send_message(buyer, seller, listing, content="Hola")
    quote = send_message(
        buyer, seller, listing,
        content="Ofrezco 10000", message_type="QUOTE", quote_amount=10000,
    )
    client.put(
        f"/api/v1/messages/{quote['id']}/quote-status",
        json={"quote_status": "ACCEPTED"},
        headers=auth_headers(seller),
    )

    data = _conversations(client, auth_headers, buyer)

    assert len(data["conversations"]) == 1
    entry = data["conversations"][0]
    assert entry["conversation_id"] == quote["conversation_id"]
    assert entry["last_message"]["id"] == quote["id"]
    assert entry["last_message"]["quote_status"] == "ACCEPTED"
    # Ningún mensaje fue enviado al comprador
    assert entry["unread_count"] == 0
    assert entry["other_user"]["id"] == str(seller.id)
    assert entry["listing"]["id"] == str(listing.id)

    seller_view = _conversations(client, auth_headers, seller)["conversations"][0]
    assert seller_view["unread_count"] == 2
    assert seller_view["other_user"]["id"] == str(buyer.id)


def test_most_recent_conversation_first(client, auth_headers, buyer, seller, make_listing, send_message):
    older = make_listing(seller, title="Torno")
    newer = make_listing(seller, title="Fresadora")

    send_message(buyer, seller, older, content="primero")
    send_message(buyer, seller, newer, content="segundo")
    send_message(seller, buyer, older, content="tercero")

    titles = [c["listing"]["title"] for c in _conversations(client, auth_headers, buyer)["conversations"]]
    assert titles == ["Torno", "Fresadora"]


def test_conversation_pagination(client, auth_headers, buyer, seller, make_listing, send_message):
    for i in range(3):
        send_message(buyer, seller, make_listing(seller, title=f"Equipo {i}"))

    first_page = _conversations(client, auth_headers, buyer, page=1, limit=2)
    second_page = _conversations(client, auth_headers, buyer, page=2, limit=2)

    assert len(first_page["conversations"]) == 2
    assert first_page["pagination"]["has_more"] is True
    assert len(second_page["conversations"]) == 1
    assert second_page["pagination"]["has_more"] is False


def test_conversation_list_limit_is_bounded(client, auth_headers, buyer):
    response = client.get(
        "/api/v1/messages/conversations",
        params={"limit": 101},
        headers=auth_headers(buyer),
    )
    assert response.status_code == 422


def test_get_conversation_oldest_first(client, auth_headers, buyer, seller, listing, send_message):
    for content in ("uno", "dos", "tres"):
        send_message(buyer, seller, listing, content=content)

    response = client.get(
        f"/api/v1/messages/conversations/{listing.id}/{seller.id}",
        params={"limit": 2},
        headers=auth_headers(buyer),
    )

    assert response.status_code == 200
    data = response.json()
    # La primera página son los dos más recientes, en orden cronológico
    assert [m["content"] for m in data["messages"]] == ["dos", "tres"]
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["total_pages"] == 2
    assert data["pagination"]["has_more"] is True


def test_get_conversation_with_yourself_is_rejected(client, auth_headers, buyer, listing):
    response = client.get(
        f"/api/v1/messages/conversations/{listing.id}/{buyer.id}",
        headers=auth_headers(buyer),
    )
    assert response.status_code == 400


def test_empty_conversation_list(client, auth_headers, buyer):
    data = _conversations(client, auth_headers, buyer)
    assert data["conversations"] == []
    assert data["pagination"]["has_more"] is False


def test_same_timestamp_messages_count_as_one_conversation(
    client, db, auth_headers, buyer, seller, make_listing, send_message
):
    tied_listing = make_listing(seller, title="Torno")
    other_listing = make_listing(seller, title="Fresadora")
    first = send_message(buyer, seller, tied_listing, content="uno")
    second = send_message(seller, buyer, tied_listing, content="dos")
    other = send_message(buyer, seller, other_listing, content="tres")

    tied_at = datetime.utcnow()
    for message_id, created_at in (
        (first["id"], tied_at),
        (second["id"], tied_at),
        (other["id"], tied_at - timedelta(seconds=1)),
    ):
        db.get(Message, uuid.UUID(message_id)).created_at = created_at
    db.commit()

    first_page = _conversations(client, auth_headers, buyer, page=1, limit=1)
    second_page = _conversations(client, auth_headers, buyer, page=2, limit=1)

    assert [c["listing"]["title"] for c in first_page["conversations"]] == ["Torno"]
    assert first_page["pagination"]["has_more"] is True
    assert [c["listing"]["title"] for c in second_page["conversations"]] == ["Fresadora"]
    assert second_page["pagination"]["has_more"] is False
