"""Tests for webhook ingestion and the in-memory webhook store."""

import httpx

from app.store import WebhookStore

ABSENCE = {
    "resourceNo": "R01",
    "jobNo": "ABS",
    "taskNo": "SICK",
    "startDate": "2025-09-01T08:00:00",
    "endDate": "2025-09-01T17:00:00",
    "subject": "Ziek",
}


class TestWebhookStore:
    def test_entries_stamped_with_type_and_timestamp(self):
        store = WebhookStore()
        entry = store.add("webhook", {"a": 1})

        assert entry["data"] == {"a": 1}
        assert entry["type"] == "webhook"
        assert "timestamp" in entry
        assert store.entries() == [entry]

    def test_payload_type_key_is_preserved(self):
        store = WebhookStore()
        payload = {"type": "appointment.updated", "id": 1}

        entry = store.add("webhook", payload)

        assert entry["type"] == "webhook"
        assert entry["data"] == {"type": "appointment.updated", "id": 1}

    def test_oldest_entries_dropped_when_full(self):
        store = WebhookStore(max_entries=2)
        for i in range(3):
            store.add("webhook", {"n": i})

        assert [e["data"]["n"] for e in store.entries()] == [1, 2]
        assert len(store) == 2

    def test_clear(self):
        store = WebhookStore()
        store.add("webhook", {})
        store.clear()
        assert store.entries() == []


class TestGenericWebhook:
    def test_receive_and_list(self, client):
        response = client.post("/webhook", json={"event": "changed"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Webhook data received successfully",
            "data": {"event": "changed"},
        }

        listing = client.get("/webhook").json()
        assert listing["success"] is True
        assert len(listing["data"]) == 1
        assert listing["data"][0]["data"] == {"event": "changed"}
        assert listing["data"][0]["type"] == "webhook"

    def test_payload_listed_unmodified(self, client):
        payload = {"type": "appointment.updated", "timestamp": "2025-09-01T10:00:00Z"}
        client.post("/webhook", json=payload)

        entry = client.get("/webhook").json()["data"][0]

        assert entry["type"] == "webhook"
        assert entry["data"] == payload

    def test_empty_body_recorded_as_empty_object(self, client):
        response = client.post("/webhook", headers={"content-type": "application/json"})
        assert response.status_code == 200
        assert response.json()["data"] == {}

    def test_content_type_required(self, client):
        response = client.post("/webhook", content=b"{}")
        assert response.status_code == 400
        assert response.json()["message"] == "Content-Type must be application/json"

    def test_typed_webhooks(self, client):
        warning = client.post("/webhook/addWarningToAppointment", json={"appointmentId": 1})
        category = client.post("/webhook/updateCategoryOfAppointment", json={"appointmentId": 1})

        assert warning.json()["message"] == "Warning added to appointment successfully"
        assert category.json()["message"] == "Appointment category updated successfully"
        types = [e["type"] for e in client.get("/webhook").json()["data"]]
        assert types == ["addWarningToAppointment", "updateCategoryOfAppointment"]


class TestCreateAbsence:
    def test_required_fields(self, client):
        response = client.post("/webhook/createAbsence", json={"resourceNo": "R01"})
        assert response.status_code == 400
        assert response.json()["message"] == (
            "resourceNo, jobNo, taskNo, startDate, endDate, and subject are required"
        )
        assert client.get("/webhook").json()["data"] == []

    def test_creates_appointment(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, text="OK"))

        response = client.post("/webhook/createAbsence", json=ABSENCE)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Absence created successfully and appointment added to Dime.Scheduler"
        assert body["dimescheduler"] == {"success": True, "error": None}

        procedure = handler.json_bodies()[0][0]
        assert procedure["StoredProcedureName"] == "mboc_upsertAppointment"
        assert procedure["ParameterValues"] == [
            "DEFAULT_APP",
            "ABSENCE",
            "ABS",
            "SICK",
            "Ziek",
            "2025-09-01 08:00:00",
            "2025-09-01 17:00:00",
            "R01",
            "ABSENCE",
        ]

    def test_scheduler_failure_still_succeeds(self, client, use_scheduler):
        use_scheduler(httpx.Response(500, text="down"))

        response = client.post("/webhook/createAbsence", json=ABSENCE)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Absence data stored successfully, but Dime.Scheduler call failed"
        assert body["dimescheduler"] == {"success": False, "error": "down"}
        assert client.get("/webhook").json()["data"][0]["type"] == "createAbsence"

    def test_without_scheduler_client(self, client):
        response = client.post("/webhook/createAbsence", json=ABSENCE)

        assert response.status_code == 200
        assert response.json()["dimescheduler"] == {
            "success": False,
            "error": "Dime.Scheduler client not initialized",
        }
