"""
API tests for the records endpoints.
"""

import pytest

from tests.helpers import STAFF_EMAIL, build_record


def _payload(**overrides) -> dict:
    return build_record(**overrides).model_dump(mode="json")


async def _create(client, headers, **overrides) -> None:
    response = await client.post("/api/v1/records", json=_payload(**overrides), headers=headers)
    assert response.status_code == 201


class TestRecordsAuth:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/api/v1/records")
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self, client):
        response = await client.get(
            "/api/v1/records", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401


class TestRecordsCrud:
    @pytest.mark.asyncio
    async def test_create_and_get(self, client, staff_headers):
        response = await client.post(
            "/api/v1/records", json=_payload(record_id="REC-1"), headers=staff_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["record_id"] == "REC-1"
        assert body["created_by"] == STAFF_EMAIL
        assert body["contact_email"] == "parent@example.com"

        response = await client.get("/api/v1/records/REC-1", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["hold_reason"] == "Awaiting fee confirmation"

    @pytest.mark.asyncio
    async def test_created_by_in_body_is_ignored(self, client, staff_headers):
        payload = _payload(record_id="REC-1")
        payload["created_by"] = "someone-else@example.com"

        response = await client.post("/api/v1/records", json=payload, headers=staff_headers)

        assert response.json()["created_by"] == STAFF_EMAIL

    @pytest.mark.asyncio
    async def test_duplicate_returns_400(self, client, staff_headers):
        await _create(client, staff_headers, record_id="REC-1")

        response = await client.post(
            "/api/v1/records", json=_payload(record_id="REC-1"), headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "DUPLICATE_RECORD_ID"

    @pytest.mark.asyncio
    async def test_missing_record_returns_404(self, client, staff_headers):
        response = await client.get("/api/v1/records/REC-404", headers=staff_headers)

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "RECORD_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update_and_toggle(self, client, staff_headers):
        await _create(client, staff_headers, record_id="REC-1")

        response = await client.put(
            "/api/v1/records/REC-1",
            json={"status": "pending", "record_id": "REC-CHANGED"},
            headers=staff_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Pending"
        assert response.json()["record_id"] == "REC-1"

        response = await client.put(
            "/api/v1/records/REC-1/reminders", json={"suppressed": True}, headers=staff_headers
        )
        assert response.status_code == 200
        assert response.json()["reminders_suppressed"] is True

    @pytest.mark.asyncio
    async def test_list_with_status_filter(self, client, staff_headers):
        await client.post(
            "/api/v1/records", json=_payload(record_id="REC-A"), headers=staff_headers
        )
        await client.post(
            "/api/v1/records",
            json=_payload(record_id="REC-B", status="Refunded"),
            headers=staff_headers,
        )

        response = await client.get(
            "/api/v1/records", params={"status": "Refunded"}, headers=staff_headers
        )

        assert response.status_code == 200
        assert [r["record_id"] for r in response.json()] == ["REC-B"]

    @pytest.mark.asyncio
    async def test_analytics(self, client, staff_headers):
        await _create(client, staff_headers, record_id="REC-A")

        response = await client.get("/api/v1/records/analytics", headers=staff_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1


class TestDeleteRecord:
    @pytest.mark.asyncio
    async def test_staff_cannot_delete_and_attempt_is_audited(
        self, client, staff_headers, admin_headers
    ):
        await _create(client, staff_headers, record_id="REC-1")

        response = await client.delete("/api/v1/records/REC-1", headers=staff_headers)

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"

        still_there = await client.get("/api/v1/records/REC-1", headers=staff_headers)
        assert still_there.status_code == 200

        activities = (await client.get("/api/v1/activities", headers=admin_headers)).json()
        assert activities[0]["action"] == "UNAUTHORIZED_ACCESS"
        assert activities[0]["user"] == STAFF_EMAIL

    @pytest.mark.asyncio
    async def test_admin_deletes(self, client, staff_headers, admin_headers):
        await _create(client, staff_headers, record_id="REC-1")

        response = await client.delete("/api/v1/records/REC-1", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["record_id"] == "REC-1"
        missing = await client.get("/api/v1/records/REC-1", headers=staff_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_admin_delete_missing_returns_404(self, client, admin_headers):
        response = await client.delete("/api/v1/records/REC-404", headers=admin_headers)
        assert response.status_code == 404
