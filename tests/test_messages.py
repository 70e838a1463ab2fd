def _submit(client, **overrides):
    payload = {
        "name": "Meera",
        "email": "meera@example.com",
        "subject": "Travel support",
        "message": "Is accommodation provided for outstation teams?",
    }
    payload.update(overrides)
    return client.post("/api/contact", json=payload)


def test_contact_message_lifecycle(client, admin_headers):
    response = _submit(client)
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "new"

    listed = client.get("/api/messages", headers=admin_headers).json()
    assert [message["subject"] for message in listed] == ["Travel support"]

    response = client.patch(f"/api/messages/{created['id']}/status", json={"status": "Read"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "read"

    response = client.delete(f"/api/messages/{created['id']}", headers=admin_headers)
    assert response.json() == {"message": "Message deleted successfully"}
    assert client.get("/api/messages", headers=admin_headers).json() == []

    logs = client.get("/api/admin/logs", headers=admin_headers).json()
    assert logs[0]["action"] == "Deleted contact message"


def test_contact_message_validation(client):
    assert _submit(client, email="not-an-email").status_code == 422
    assert _submit(client, message="   ").status_code == 422


def test_message_admin_errors(client, admin_headers, volunteer_headers):
    created = _submit(client).json()
    assert client.patch(f"/api/messages/{created['id']}/status", json={"status": "archived"}, headers=admin_headers).status_code == 400
    assert client.patch("/api/messages/999/status", json={"status": "read"}, headers=admin_headers).status_code == 404
    assert client.delete("/api/messages/999", headers=admin_headers).status_code == 404
    assert client.get("/api/messages", headers=volunteer_headers).status_code == 403
