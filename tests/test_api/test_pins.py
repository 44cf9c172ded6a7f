"""Tests for pin and timeline endpoints."""

from datetime import datetime, timezone

from src.errors import FanoutError, MissingPayload, PermissionDenied, PinNotFound
from src.api.models import epoch_seconds
from src.timeline.schemas import MAX_WATERLINE, TimelineItem, TimelinePage, to_waterline


class TestCreatePin:
    def test_create_returns_201(self, client, alice_headers, mock_pin_service, sample_pin):
        mock_pin_service.create_pin.return_value = sample_pin

        resp = client.post(
            "/api/pins",
            json={
                "photo_data": sample_pin.payload,
                "latitude": 37.7749,
                "longitude": -122.4194,
                "caption": "hello",
            },
            headers=alice_headers,
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == "pin_001"
        assert data["photo_data"] == sample_pin.payload
        assert data["username"] == "alice"
        assert data["created_at"] == int(sample_pin.created_at.timestamp())
        args, kwargs = mock_pin_service.create_pin.call_args
        assert args == ("acct_alice", sample_pin.payload)
        assert kwargs["caption"] == "hello"

    def test_missing_photo_data_is_400(self, client, alice_headers, mock_pin_service):
        mock_pin_service.create_pin.side_effect = MissingPayload("photo_data is required")

        resp = client.post("/api/pins", json={"caption": "no photo"}, headers=alice_headers)

        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Missing photo data",
            "message": "photo_data is required",
        }

    def test_out_of_range_latitude_is_400(self, client, alice_headers):
        resp = client.post(
            "/api/pins",
            json={"photo_data": "x", "latitude": 123.0},
            headers=alice_headers,
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"
        assert "latitude" in resp.json()["message"]

    def test_requires_session(self, client, mock_pin_service):
        resp = client.post("/api/pins", json={"photo_data": "x"})

        assert resp.status_code == 401
        assert resp.json()["error"] == "Authentication required"
        mock_pin_service.create_pin.assert_not_called()

    def test_expired_session(self, client):
        resp = client.post(
            "/api/pins",
            json={"photo_data": "x"},
            headers={"Authorization": "Bearer stale"},
        )
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid session"

    def test_incomplete_fanout_is_500(self, client, alice_headers, mock_pin_service):
        mock_pin_service.create_pin.side_effect = FanoutError(written=1, failed_batches=1)

        resp = client.post("/api/pins", json={"photo_data": "x"}, headers=alice_headers)

        assert resp.status_code == 500
        assert resp.json()["error"] == "Timeline fan-out failed"

    def test_unexpected_error_is_generic_500(
        self, client, alice_headers, mock_pin_service
    ):
        mock_pin_service.create_pin.side_effect = RuntimeError("pool exhausted")

        resp = client.post("/api/pins", json={"photo_data": "x"}, headers=alice_headers)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to create photo", "message": None}


class TestTimeline:
    def test_timeline_page(self, client, alice_headers, mock_timeline_service, sample_pin):
        stamp = datetime(2026, 2, 1, 12, 0, 0, 250, tzinfo=timezone.utc)
        mock_timeline_service.get_timeline.return_value = TimelinePage(
            items=[TimelineItem(pin=sample_pin, timeline_created_at=stamp)],
            waterline=to_waterline(stamp),
        )

        resp = client.get("/api/pins/timeline?since=5&limit=10", headers=alice_headers)

        assert resp.status_code == 200
        data = resp.json()
        assert data["waterline"] == to_waterline(stamp)
        assert data["photos"][0]["id"] == "pin_001"
        assert data["photos"][0]["timeline_created_at"] == to_waterline(stamp)
        assert data["waterline"] == epoch_seconds(stamp) == 1769947200
        mock_timeline_service.get_timeline.assert_awaited_once_with(
            "acct_alice", since=5, limit=10
        )

    def test_timeline_defaults(self, client, alice_headers, mock_timeline_service):
        mock_timeline_service.get_timeline.return_value = TimelinePage(items=[], waterline=0)

        resp = client.get("/api/pins/timeline", headers=alice_headers)

        assert resp.json() == {"photos": [], "waterline": 0}
        mock_timeline_service.get_timeline.assert_awaited_once_with(
            "acct_alice", since=0, limit=None
        )

    def test_negative_since_is_400(self, client, alice_headers, mock_timeline_service):
        resp = client.get("/api/pins/timeline?since=-1", headers=alice_headers)

        assert resp.status_code == 400
        mock_timeline_service.get_timeline.assert_not_called()

    def test_since_beyond_datetime_range_is_400(
        self, client, alice_headers, mock_timeline_service
    ):
        resp = client.get(
            f"/api/pins/timeline?since={MAX_WATERLINE + 1}", headers=alice_headers
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"
        mock_timeline_service.get_timeline.assert_not_called()


class TestReadPins:
    def test_get_pin(self, client, bob_headers, mock_pin_service, sample_pin):
        mock_pin_service.get_pin.return_value = sample_pin

        resp = client.get("/api/pins/pin_001", headers=bob_headers)

        assert resp.status_code == 200
        assert resp.json()["account_id"] == "acct_alice"

    def test_get_missing_pin(self, client, alice_headers, mock_pin_service):
        mock_pin_service.get_pin.side_effect = PinNotFound()

        resp = client.get("/api/pins/nope", headers=alice_headers)

        assert resp.status_code == 404
        assert resp.json()["error"] == "Photo not found"

    def test_list_account_pins(self, client, alice_headers, mock_pin_service, sample_pin):
        mock_pin_service.list_pins_by_account.return_value = [sample_pin]

        resp = client.get(
            "/api/pins/account/acct_alice?limit=5&offset=10", headers=alice_headers
        )

        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == ["pin_001"]
        mock_pin_service.list_pins_by_account.assert_awaited_once_with(
            "acct_alice", limit=5, offset=10
        )


class TestDeletePin:
    def test_owner_deletes(self, client, alice_headers, mock_pin_service):
        resp = client.delete("/api/pins/pin_001", headers=alice_headers)

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        mock_pin_service.delete_pin.assert_awaited_once_with("pin_001", "acct_alice")

    def test_non_owner_gets_403_and_pin_remains(
        self, client, bob_headers, mock_pin_service, sample_pin
    ):
        mock_pin_service.delete_pin.side_effect = PermissionDenied(
            "You can only delete your own pins"
        )
        mock_pin_service.get_pin.return_value = sample_pin

        resp = client.delete("/api/pins/pin_001", headers=bob_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "Permission denied"

        resp = client.get("/api/pins/pin_001", headers=bob_headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == "pin_001"
