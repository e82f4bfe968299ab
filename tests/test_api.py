"""
API test suite for the content moderation engine.

Exercises the HTTP surface end to end against an in-memory database with
the keyword fallback standing in for the remote classifier.
"""

import time
import uuid

import pytest

from content_moderation.core.security import (
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW,
    check_rate_limit,
    rate_limit_storage,
    sanitize_input,
)
from content_moderation.models.moderation_record import (
    ContentType,
    ModerationRecord,
    RecordStatus,
)
from content_moderation.schemas.moderation import CategoryScores
from content_moderation.services.policy import evaluate
from content_moderation.services.record_store import ModerationRecordStore

CONTENT_URL = "/api/v1/moderate/content"


def content_payload(**overrides):
    payload = {
        "content_id": "post-1",
        "title": "Golden hour set",
        "description": "Twenty photos from the beach shoot",
        "content_type": "media",
        "media_url": "https://cdn.example.com/uploads/cover.jpg",
    }
    payload.update(overrides)
    return payload


def add_pending_record(db_session, content_id="queued-1"):
    result = evaluate(CategoryScores(adult=0.5, violence=0.15, hate=0.02, self_harm=0.02), [])
    return ModerationRecordStore(db_session).add(ModerationRecord(
        content_id=content_id,
        content_type=ContentType.image,
        status=RecordStatus.pending,
        auto_result=result.model_dump(by_alias=True),
    ))


class TestSecurityValidation:
    """Input sanitising and rate limiting."""

    def test_sanitize_strips_control_characters(self):
        assert sanitize_input("hello\x00\x07 world") == "hello world"

    def test_sanitize_empty(self):
        assert sanitize_input(None) == ""
        assert sanitize_input("") == ""

    def test_rate_limit(self):
        """Requests beyond the window budget are refused."""
        rate_limit_storage.clear()
        for _ in range(RATE_LIMIT_REQUESTS):
            assert check_rate_limit("10.0.0.1")
        assert not check_rate_limit("10.0.0.1")
        assert check_rate_limit("10.0.0.2")
        rate_limit_storage.clear()


class TestContentModerationAPI:
    """POST /api/v1/moderate/content"""

    def test_clean_content_is_approved(self, client):
        response = client.post(CONTENT_URL, json=content_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["content_id"] == "post-1"
        assert data["content_type"] == "image"
        assert data["status"] == "approved"
        assert data["auto_result"]["isApproved"] is True
        assert data["auto_result"]["categories"]["selfHarm"] == 0.05
        assert data["human_review"] is None

    def test_repeat_submission_returns_same_record(self, client):
        first = client.post(CONTENT_URL, json=content_payload())
        second = client.post(CONTENT_URL, json=content_payload(title="murder"))

        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["status"] == "approved"

    def test_violent_link_is_rejected(self, client):
        response = client.post(CONTENT_URL, json=content_payload(
            content_id="link-1",
            content_type="link",
            media_url=None,
            external_url="https://example.com/knife-fight",
        ))

        assert response.status_code == 200
        data = response.json()
        assert data["content_type"] == "url"
        assert data["status"] == "rejected"
        assert "violence_language" in data["auto_result"]["flags"]

    def test_title_too_long(self, client):
        response = client.post(CONTENT_URL, json=content_payload(title="x" * 501))

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "VALIDATION_ERROR"

    def test_missing_field(self, client):
        payload = content_payload()
        del payload["title"]

        response = client.post(CONTENT_URL, json=payload)

        assert response.status_code == 422

    def test_invalid_content_type(self, client):
        response = client.post(CONTENT_URL, json=content_payload(content_type="podcast"))
        assert response.status_code == 422

    def test_rate_limited_client(self, client):
        """A client over its hourly budget gets a structured 429."""
        rate_limit_storage["testclient"] = {"requests": [time.time()] * RATE_LIMIT_REQUESTS}

        response = client.post(CONTENT_URL, json=content_payload())

        assert response.status_code == 429
        detail = response.json()["detail"]
        assert detail["error_code"] == "RATE_LIMIT_EXCEEDED"
        assert detail["details"]["retry_after"] == RATE_LIMIT_WINDOW

    def test_request_id_header(self, client):
        response = client.post(CONTENT_URL, json=content_payload())
        assert "X-Request-ID" in response.headers


class TestMediaModerationAPI:
    """POST /api/v1/moderate/media/{media_id}"""

    def test_image_media(self, client, make_media):
        media = make_media("sunset.jpg", "image/jpeg")

        response = client.post(f"/api/v1/moderate/media/{media.id}")

        assert response.status_code == 200
        assert response.json()["content_id"] == media.id
        assert response.json()["status"] == "approved"

    def test_unknown_media(self, client):
        response = client.post("/api/v1/moderate/media/does-not-exist")

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "CONTENT_NOT_FOUND"


class TestRecordsAPI:
    """Review queue and human review."""

    def test_filter_by_status(self, client, db_session):
        add_pending_record(db_session)
        client.post(CONTENT_URL, json=content_payload())

        pending = client.get("/api/v1/moderate/records", params={"status": "pending"})
        everything = client.get("/api/v1/moderate/records")

        assert pending.status_code == 200
        assert [r["content_id"] for r in pending.json()] == ["queued-1"]
        assert len(everything.json()) == 2

    def test_invalid_status_filter(self, client):
        response = client.get("/api/v1/moderate/records", params={"status": "maybe"})
        assert response.status_code == 422

    def test_review_requires_reviewer(self, client, db_session):
        record = add_pending_record(db_session)

        response = client.post(
            f"/api/v1/moderate/records/{record.id}/review",
            json={"decision": "approve"},
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error_code"] == "AUTHORIZATION_ERROR"
        db_session.refresh(record)
        assert record.status == RecordStatus.pending

    def test_unknown_reviewer_key(self, client, db_session):
        record = add_pending_record(db_session)

        response = client.post(
            f"/api/v1/moderate/records/{record.id}/review",
            json={"decision": "approve"},
            headers={"Authorization": "Bearer not-a-reviewer"},
        )

        assert response.status_code == 401

    def test_review_approves_record(self, client, db_session, reviewer_headers):
        record = add_pending_record(db_session)

        response = client.post(
            f"/api/v1/moderate/records/{record.id}/review",
            json={"decision": "approve", "reason": "Props, not weapons"},
            headers=reviewer_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "approved"
        assert data["human_review"]["reviewer_id"] == "reviewer-1"
        assert data["human_review"]["decision"] == "approve"
        assert data["human_review"]["reason"] == "Props, not weapons"
        assert data["auto_result"]["requiresHumanReview"] is True

    def test_review_rejects_record(self, client, db_session, reviewer_headers):
        record = add_pending_record(db_session)

        response = client.post(
            f"/api/v1/moderate/records/{record.id}/review",
            json={"decision": "reject"},
            headers=reviewer_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    def test_review_unknown_record(self, client, reviewer_headers):
        response = client.post(
            f"/api/v1/moderate/records/{uuid.uuid4()}/review",
            json={"decision": "approve"},
            headers=reviewer_headers,
        )

        assert response.status_code == 404

    def test_review_invalid_decision(self, client, db_session, reviewer_headers):
        record = add_pending_record(db_session)

        response = client.post(
            f"/api/v1/moderate/records/{record.id}/review",
            json={"decision": "maybe"},
            headers=reviewer_headers,
        )

        assert response.status_code == 422


class TestSweepAPI:
    """POST /api/v1/moderate/sweep"""

    def test_requires_reviewer(self, client):
        response = client.post("/api/v1/moderate/sweep")

        assert response.status_code == 401
        assert response.json()["detail"]["error_code"] == "AUTHORIZATION_ERROR"

    def test_sweep(self, client, make_media, reviewer_headers):
        make_media("sunset.jpg")
        make_media("gun.mp4", "video/mp4")

        response = client.post("/api/v1/moderate/sweep", headers=reviewer_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["processed"] == 2
        assert data["approved"] == 1
        assert data["rejected"] == 1
        assert data["errors"] == []

    def test_sweep_with_no_media(self, client, reviewer_headers):
        response = client.post("/api/v1/moderate/sweep", headers=reviewer_headers)

        assert response.status_code == 200
        assert response.json()["errors"] == ["No media files found"]


class TestMonitoringAPI:

    def test_stats(self, client, db_session):
        add_pending_record(db_session)
        client.post(CONTENT_URL, json=content_payload())

        response = client.get("/api/v1/analytics/stats")

        assert response.status_code == 200
        assert response.json() == {
            "total": 2,
            "approved": 1,
            "rejected": 0,
            "pending": 1,
            "auto_approval_rate": pytest.approx(50.0),
        }

    def test_classifier_status(self, client):
        response = client.get("/api/v1/moderate/classifier/status")

        assert response.status_code == 200
        assert response.json()["configured"] is False
        assert "fallback" in response.json()["message"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["services"]["database"] == "healthy"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["version"] == "1.0.0"
