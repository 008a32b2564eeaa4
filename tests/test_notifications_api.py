import uuid

from app.services import notification_service


def _notify(db, user, **kwargs):
    return notification_service.notify_new_message(
        db,
        receiver_id=user.id,
        sender_name="Beatriz Compradora",
        listing_title="Excavadora",
        content=kwargs.get("content", "Hola"),
    )


def test_list_and_unread_count(client, db, auth_headers, seller):
    _notify(db, seller)
    _notify(db, seller, content="Otra")

    listed = client.get("/api/v1/notifications", headers=auth_headers(seller))
    count = client.get("/api/v1/notifications/unread-count", headers=auth_headers(seller))

    assert listed.status_code == 200
    body = listed.json()
    assert len(body["notifications"]) == 2
    assert body["notifications"][0]["title"] == "Nuevo mensaje"
    assert body["notifications"][0]["content"].endswith("Otra")
    assert body["pagination"] == {
        "page": 1, "limit": 20, "total": 2, "total_pages": 1, "has_more": False,
    }
    assert count.json() == {"unread_count": 2}


def test_list_is_paginated(client, db, auth_headers, seller, buyer):
    for text in ("uno", "dos", "tres"):
        _notify(db, seller, content=text)
    _notify(db, buyer)

    first = client.get("/api/v1/notifications?page=1&limit=2", headers=auth_headers(seller)).json()
    second = client.get("/api/v1/notifications?page=2&limit=2", headers=auth_headers(seller)).json()

    assert len(first["notifications"]) == 2
    assert first["pagination"]["total"] == 3
    assert first["pagination"]["total_pages"] == 2
    assert first["pagination"]["has_more"] is True
    assert len(second["notifications"]) == 1
    assert second["notifications"][0]["content"].endswith("uno")
    assert second["pagination"]["has_more"] is False


def test_list_rejects_out_of_range_limit(client, auth_headers, seller):
    response = client.get("/api/v1/notifications?limit=101", headers=auth_headers(seller))
    assert response.status_code == 422


def test_mark_one_read_only_for_owner(client, db, auth_headers, seller, buyer):
    notification = _notify(db, seller)

    foreign = client.patch(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(buyer))
    own = client.patch(f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(seller))
    missing = client.patch(f"/api/v1/notifications/{uuid.uuid4()}/read", headers=auth_headers(seller))

    assert foreign.status_code == 404
    assert own.status_code == 200
    assert own.json()["is_read"] is True
    assert missing.status_code == 404


def test_delete_only_for_owner(client, db, auth_headers, seller, buyer):
    notification = _notify(db, seller)
    url = f"/api/v1/notifications/{notification.id}"

    foreign = client.delete(url, headers=auth_headers(buyer))
    own = client.delete(url, headers=auth_headers(seller))
    again = client.delete(url, headers=auth_headers(seller))
    listed = client.get("/api/v1/notifications", headers=auth_headers(seller)).json()

    assert foreign.status_code == 404
    assert foreign.json()["error_code"] == "RESOURCE_NOT_FOUND"
    assert own.status_code == 200
    assert own.json()["success"] is True
    assert again.status_code == 404
    assert listed["notifications"] == []


def test_mark_all_read(client, db, auth_headers, seller):
    _notify(db, seller)
    _notify(db, seller)

    response = client.post("/api/v1/notifications/mark-all-read", headers=auth_headers(seller))
    count = client.get("/api/v1/notifications/unread-count", headers=auth_headers(seller))

    assert response.json()["success"] is True
    assert count.json()["unread_count"] == 0


def test_quote_notification_titles(db, buyer):
    titles = {
        status: notification_service.notify_quote(
            db,
            receiver_id=buyer.id,
            sender_name="Sergio Vendedor",
            listing_title="Grúa",
            quote_amount="1500.50",
            quote_status=status,
        ).title
        for status in ("PENDING", "ACCEPTED", "REJECTED", "COUNTERED")
    }
    assert titles == {
        "PENDING": "Nueva cotización recibida",
        "ACCEPTED": "Cotización aceptada",
        "REJECTED": "Cotización rechazada",
        "COUNTERED": "Contraoferta recibida",
    }


def test_format_amount():
    assert notification_service.format_amount("10000.00") == "$10000"
    assert notification_service.format_amount(1500.5) == "$1500.50"
