from app.models import OutboxEvent


def _unread(client, auth_headers, user):
    response = client.get("/api/v1/messages/unread-count", headers=auth_headers(user))
    assert response.status_code == 200
    return response.json()["unread_count"]


def test_mark_read_is_idempotent(client, auth_headers, buyer, seller, listing, send_message):
    first = send_message(buyer, seller, listing, content="uno")
    send_message(buyer, seller, listing, content="dos")
    send_message(seller, buyer, listing, content="respuesta")
    conversation_id = first["conversation_id"]

    assert _unread(client, auth_headers, seller) == 2
    assert _unread(client, auth_headers, buyer) == 1

    url = f"/api/v1/messages/conversations/{conversation_id}/read"
    once = client.put(url, headers=auth_headers(seller))
    twice = client.put(url, headers=auth_headers(seller))

    assert once.json()["updated_count"] == 2
    assert twice.json()["updated_count"] == 0
    assert _unread(client, auth_headers, seller) == 0
    # Los mensajes recibidos por el otro participante no cambian
    assert _unread(client, auth_headers, buyer) == 1


def test_unread_count_is_global(client, auth_headers, buyer, seller, make_listing, send_message):
    first_listing = make_listing(seller, title="Grúa")
    second_listing = make_listing(seller, title="Montacargas")

    send_message(buyer, seller, first_listing)
    send_message(buyer, seller, second_listing)

    assert _unread(client, auth_headers, seller) == 2


def test_read_receipt_event_only_when_something_changed(client, db, auth_headers, buyer, seller, listing, send_message):
    conversation_id = send_message(buyer, seller, listing)["conversation_id"]
    url = f"/api/v1/messages/conversations/{conversation_id}/read"

    client.put(url, headers=auth_headers(seller))
    client.put(url, headers=auth_headers(seller))

    db.expire_all()
    events = db.query(OutboxEvent).filter(OutboxEvent.event_type == "realtime.messages_read").all()
    assert len(events) == 1
    assert events[0].payload["reader_id"] == str(seller.id)
    assert events[0].payload["count"] == 1


def test_non_participant_cannot_mark_read(client, auth_headers, buyer, seller, listing, make_user, send_message):
    conversation_id = send_message(buyer, seller, listing)["conversation_id"]
    outsider = make_user()

    response = client.put(
        f"/api/v1/messages/conversations/{conversation_id}/read",
        headers=auth_headers(outsider),
    )
    assert response.status_code == 403


def test_fetching_conversation_marks_it_read(client, auth_headers, buyer, seller, listing, send_message):
    send_message(buyer, seller, listing)
    assert _unread(client, auth_headers, seller) == 1

    response = client.get(
        f"/api/v1/messages/conversations/{listing.id}/{buyer.id}",
        headers=auth_headers(seller),
    )

    assert response.status_code == 200
    assert _unread(client, auth_headers, seller) == 0
