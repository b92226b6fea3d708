"""Tests for the /dime and /dimescheduler proxy endpoints."""

import httpx
import pytest

JOB_BODY = {"sourceApp": "BC", "sourceType": "SALES", "jobNo": "PB-001", "shortDescription": "Drager"}


class TestRequestGate:
    def test_missing_content_type(self, client):
        response = client.post("/dime/job", content=b'{"jobNo": "1"}')
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Content-Type must be application/json",
        }

    def test_invalid_json(self, client):
        response = client.post(
            "/dime/job", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid JSON format"

    def test_array_body_rejected(self, client):
        response = client.post("/dime/job", json=[JOB_BODY])
        assert response.status_code == 400
        assert response.json()["message"] == "Request body must be a valid JSON object"

    def test_not_configured_returns_503(self, client):
        response = client.post("/dime/job", json=JOB_BODY)
        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert "Dime.Scheduler client not initialized" in body["message"]

    def test_query_validation_precedes_configuration_check(self, client):
        response = client.get("/dime/appointments")
        assert response.status_code == 400
        assert response.json()["message"] == "startDate and endDate query parameters are required"


class TestJobsAndTasks:
    @pytest.mark.parametrize("prefix", ["/dime", "/dimescheduler"])
    def test_create_job(self, client, use_scheduler, prefix):
        handler = use_scheduler(httpx.Response(200, text="OK"))

        response = client.post(f"{prefix}/job", json=JOB_BODY)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Procedures executed successfully",
            "data": "OK",
        }
        assert handler.json_bodies()[0][0]["StoredProcedureName"] == "mboc_upsertJob"

    def test_create_job_missing_fields(self, client, use_scheduler):
        use_scheduler()
        response = client.post("/dime/job", json={"sourceApp": "BC"})
        assert response.status_code == 400
        assert response.json()["message"] == (
            "sourceApp, sourceType, jobNo, and shortDescription are required"
        )

    def test_embedded_error_relayed_as_500(self, client, use_scheduler):
        use_scheduler(httpx.Response(200, json={"error": "bad job"}))

        response = client.post("/dime/job", json=JOB_BODY)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Procedure execution failed"
        assert body["error"] == "bad job"

    def test_create_task(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, text="OK"))
        task = {
            "sourceApp": "BC",
            "sourceType": "SALES",
            "jobNo": "PB-001",
            "taskNo": "10",
            "shortDescription": "Install",
            "description": "Install the unit",
        }

        response = client.post("/dimescheduler/task", json=task)

        assert response.status_code == 200
        assert handler.json_bodies()[0][0]["ParameterValues"][-1] is True

    def test_job_with_task(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, text="OK"))
        body = {
            "jobData": JOB_BODY,
            "taskData": {"taskNo": "10", "taskShortDescription": "Install", "taskDescription": "Install it"},
        }

        response = client.post("/dime/job-with-task", json=body)

        assert response.status_code == 200
        batch = handler.json_bodies()[0]
        assert [p["StoredProcedureName"] for p in batch] == ["mboc_upsertJob", "mboc_upsertTask"]

    def test_job_with_task_missing_task_data(self, client, use_scheduler):
        use_scheduler()
        response = client.post("/dime/job-with-task", json={"jobData": JOB_BODY})
        assert response.status_code == 400
        assert response.json()["message"] == (
            "taskData must include taskNo, taskShortDescription, and taskDescription"
        )


class TestImport:
    def test_empty_procedures(self, client, use_scheduler):
        use_scheduler()
        response = client.post("/dime/import", json={"procedures": []})
        assert response.status_code == 400
        assert response.json()["message"] == "Procedures array is required and must not be empty"

    def test_misaligned_procedure(self, client, use_scheduler):
        handler = use_scheduler()
        procedure = {
            "StoredProcedureName": "mboc_upsertJob",
            "ParameterNames": ["SourceApp", "SourceType"],
            "ParameterValues": ["BC"],
        }

        response = client.post("/dime/import", json={"procedures": [procedure]})

        assert response.status_code == 400
        assert response.json()["message"] == (
            "ParameterNames and ParameterValues arrays must have the same length"
        )
        assert handler.requests == []

    def test_batch_forwarded_verbatim(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, text="OK"))
        procedure = {
            "StoredProcedureName": "custom_proc",
            "ParameterNames": ["A", "B"],
            "ParameterValues": ["x", 3],
        }

        response = client.post("/dimescheduler/import", json={"procedures": [procedure]})

        assert response.status_code == 200
        assert handler.json_bodies()[0] == [procedure]


class TestAppointments:
    def test_upsert_missing_fields(self, client, use_scheduler):
        use_scheduler()
        response = client.post("/dime/upsert-appointment", json={"sourceApp": "BC"})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Missing required fields: sourceType, jobNo, taskNo"
        assert body["error"] == ["sourceType", "jobNo", "taskNo"]

    def test_upsert_appointment(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, text="OK"))
        body = {
            "sourceApp": "BC",
            "sourceType": "SALES",
            "jobNo": "PB-001",
            "taskNo": "10",
            "subject": "Visit",
            "start": "2025-09-01T10:30:00",
            "end": "2025-09-01T12:00:00",
        }

        response = client.post("/dime/upsert-appointment", json=body)

        assert response.status_code == 200
        values = handler.json_bodies()[0][0]["ParameterValues"]
        assert values[5:7] == ["2025-09-01 10:30:00", "2025-09-01 12:00:00"]

    def test_category_required(self, client, use_scheduler):
        use_scheduler()
        response = client.post("/dime/appointment-category", json={"appointmentId": 1})
        assert response.status_code == 400
        assert response.json()["message"] == "category is required"

    def test_category_identifier_required(self, client, use_scheduler):
        use_scheduler()
        response = client.post("/dime/appointment-category", json={"category": "GEREED"})
        assert response.status_code == 400
        assert response.json()["message"] == (
            "At least one appointment identifier (appointmentId, appointmentNo, or appointmentGuid) is required"
        )

    def test_set_category(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, json={"updated": True}))

        response = client.post(
            "/dimescheduler/appointment-category", json={"category": "GEREED", "appointmentNo": "A-1"}
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"updated": True}
        assert handler.requests[0].url.path == "/api/appointmentCategory"

    def test_set_time_marker(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, text="OK"))

        response = client.post(
            "/dimescheduler/appointment-timemarker", json={"appointmentId": 12, "timeMarker": "Klaar"}
        )

        assert response.status_code == 200
        assert handler.json_bodies()[0][0]["ParameterValues"] == ["12", "Klaar"]

    def test_get_appointments(self, client, use_scheduler):
        handler = use_scheduler(httpx.Response(200, json=[{"id": 1}]))

        response = client.get(
            "/dime/appointments",
            params=[("startDate", "2025-09-01"), ("endDate", "2025-09-07"), ("resources", "R01")],
        )

        assert response.status_code == 200
        assert response.json()["data"] == [{"id": 1}]
        assert handler.requests[0].url.params.get_list("resources") == ["R01"]


class TestDragerWorkflow:
    def test_set_category_for_drager_appointments(self, client, use_scheduler):
        appointments = [
            {"id": 1, "appointmentNo": "A-1", "task": {"job": {"jobNo": "PB-1"}}},
            {"id": 2, "appointmentNo": "A-2", "task": {"job": {"jobNo": "XX-2"}}},
        ]
        handler = use_scheduler(
            httpx.Response(200, json=appointments), httpx.Response(200, json={})
        )

        response = client.post(
            "/dime/set-category-for-drager-appointments",
            params={"startDate": "2025-09-01", "endDate": "2025-09-07"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Updated 1 of 1 matching appointments"
        assert body["data"]["totalAppointments"] == 2
        assert body["data"]["results"] == [
            {"appointmentId": 1, "appointmentNo": "A-1", "status": "success"}
        ]
        assert handler.json_bodies()[1]["Category"] == "GEREED"

    def test_no_matching_appointments(self, client, use_scheduler):
        use_scheduler(httpx.Response(200, json=[]))

        response = client.post(
            "/dimescheduler/set-category-for-drager-appointments",
            params={"startDate": "2025-09-01", "endDate": "2025-09-07"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "No matching appointments found",
            "data": {"totalAppointments": 0, "matchingAppointments": 0, "updated": 0},
        }

    def test_query_failure_returns_500(self, client, use_scheduler):
        use_scheduler(httpx.Response(503, text="maintenance"))

        response = client.post(
            "/dime/set-category-for-drager-appointments",
            params={"startDate": "2025-09-01", "endDate": "2025-09-07"},
        )

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Failed to query appointments",
            "error": "maintenance",
        }

    def test_time_marker_required(self, client):
        response = client.post(
            "/dime/set-timemarker-for-drager-appointments",
            params={"startDate": "2025-09-01", "endDate": "2025-09-07"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "timeMarker query parameter is required"

    def test_set_time_marker_for_drager_appointments(self, client, use_scheduler):
        appointments = [{"Id": 7, "task": {"job": {"jobNo": "PB-7"}}}]
        handler = use_scheduler(httpx.Response(200, json=appointments), httpx.Response(200, text="OK"))

        response = client.post(
            "/dimescheduler/set-timemarker-for-drager-appointments",
            params={"startDate": "2025-09-01", "endDate": "2025-09-07", "timeMarker": "Klaar"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Updated 1 of 1 matching appointments to time marker Klaar"
        assert body["data"]["successCount"] == 1
        assert body["data"]["timeMarker"] == "Klaar"
        assert handler.json_bodies()[1][0]["ParameterValues"] == ["7", "Klaar"]


class TestConnection:
    def test_connection_check(self, client, use_scheduler):
        use_scheduler(httpx.Response(200, text="Healthy"))
        response = client.get("/dime/test")
        assert response.status_code == 200
        assert response.json()["message"] == "Connection successful"
