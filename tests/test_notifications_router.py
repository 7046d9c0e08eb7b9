import uuid
import pytest

from app.middlewares import REQUEST_ID_HEADER

pytestmark = pytest.mark.integration


def submit(context, dispatcher, count: int):
    for week_number in range(1, count + 1):
        context.submissions.submit_activity_log("fac-1", "alloc-1", week_number)
    dispatcher.drain()


class TestListNotifications:
    """GET /api/notifications/"""

    def test_returns_most_recent_first(self, client, context, dispatcher):
        submit(context, dispatcher, 3)

        response = client.get("/api/notifications/", params={"limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [n["weekNumber"] for n in body["data"]] == [3, 2, 1]
        assert body["data"][0]["facilitatorName"] == "Ada Lovelace"
        assert body["data"][0]["courseCode"] == "CS101"
        assert body["data"][0]["read"] is False
        assert body["pagination"] == {
            "limit": 10,
            "offset": 0,
            "total": 3,
            "hasMore": False,
        }

    def test_default_page_size(self, client, context, dispatcher):
        submit(context, dispatcher, 25)

        body = client.get("/api/notifications/").json()

        assert len(body["data"]) == 20
        assert body["pagination"]["hasMore"] is True

    def test_offset(self, client, context, dispatcher):
        submit(context, dispatcher, 5)

        body = client.get("/api/notifications/", params={"limit": 2, "offset": 2}).json()

        assert [n["weekNumber"] for n in body["data"]] == [3, 2]
        assert body["pagination"]["hasMore"] is True

    def test_negative_offset_is_bad_request(self, client):
        response = client.get("/api/notifications/", params={"offset": -1})

        assert response.status_code == 400
        assert response.json()["meta"]["error_code"] == "INVALID_RANGE"

    def test_limit_above_maximum_is_rejected(self, client):
        response = client.get("/api/notifications/", params={"limit": 101})

        assert response.status_code == 422

    def test_empty_store(self, client):
        body = client.get("/api/notifications/").json()

        assert body["data"] == []
        assert body["pagination"]["total"] == 0


class TestMarkNotificationRead:
    """PATCH /api/notifications/{id}/read"""

    def test_marks_notification_read(self, client, context, dispatcher):
        submit(context, dispatcher, 2)
        target = context.notifications.list_notifications()[1]

        response = client.patch(f"/api/notifications/{target.id}/read")

        assert response.status_code == 200
        assert response.json()["data"] == {"notificationId": target.id, "read": True}
        flags = [n.read for n in context.notifications.list_notifications()]
        assert flags == [False, True]

    def test_unknown_id_still_succeeds(self, client):
        response = client.patch("/api/notifications/does-not-exist/read")

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestRequestId:
    """Request ID propagation."""

    def test_request_id_is_echoed(self, client):
        request_id = str(uuid.uuid4())

        response = client.get("/api/health/", headers={REQUEST_ID_HEADER: request_id})

        assert response.headers[REQUEST_ID_HEADER] == request_id
        assert response.json()["requestId"] == request_id

    def test_invalid_request_id_is_replaced(self, client):
        response = client.get("/api/health/", headers={REQUEST_ID_HEADER: "not-a-uuid"})

        assert response.headers[REQUEST_ID_HEADER] != "not-a-uuid"
        uuid.UUID(response.headers[REQUEST_ID_HEADER])


def test_health_check(client):
    response = client.get("/api/health/")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "healthy"
