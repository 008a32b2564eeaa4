import uuid

from app.models import DELETED_MESSAGE_PLACEHOLDER, Message


def test_sender_soft_deletes_message(client, db, auth_headers, buyer, seller, listing, send_message):
    original = send_message(
        buyer, seller, listing,
        content="Mira estas fotos",
        attachments=["https://cdn.example.com/1.jpg"],
    )

    response = client.delete(f"/api/v1/messages/{original['id']}", headers=auth_headers(buyer))

    assert response.status_code == 200
    data = response.json()
    assert data["content"] == DELETED_MESSAGE_PLACEHOLDER
    assert data["attachments"] == []
    assert data["id"] == original["id"]
    assert data["conversation_id"] == original["conversation_id"]
    assert data["created_at"] == original["created_at"]

    db.expire_all()
    assert db.query(Message).count() == 1


def test_receiver_cannot_delete(client, auth_headers, buyer, seller, listing, send_message):
    original = send_message(buyer, seller, listing)

    response = client.delete(f"/api/v1/messages/{original['id']}", headers=auth_headers(seller))

    assert response.status_code == 403
    fetched = client.get(f"/api/v1/messages/{original['id']}", headers=auth_headers(seller))
    assert fetched.json()["content"] == original["content"]


def test_delete_missing_message(client, auth_headers, buyer):
    response = client.delete(f"/api/v1/messages/{uuid.uuid4()}", headers=auth_headers(buyer))
    assert response.status_code == 404


def test_deleted_message_stays_in_conversation(client, auth_headers, buyer, seller, listing, send_message):
    original = send_message(buyer, seller, listing)
    client.delete(f"/api/v1/messages/{original['id']}", headers=auth_headers(buyer))

    response = client.get(
        f"/api/v1/messages/conversations/{listing.id}/{seller.id}",
        headers=auth_headers(buyer),
    )
    messages = response.json()["messages"]
    assert [m["content"] for m in messages] == [DELETED_MESSAGE_PLACEHOLDER]
