"""
Integration tests for the review request HTTP API.
"""
import pytest
from httpx import AsyncClient

BASE = "/api/v1/review-requests"

CAMPAIGN = {
    "businessName": "Ocean Side Plumbing",
    "businessType": "Plumbing",
    "platform": "Google",
    "reviewLink": "https://g.page/r/ocean-side-plumbing/review",
    "language": "English",
    "toneStyle": "Professional",
    "rules": {
        "triggerType": "manual",
        "sendDelayHours": 24,
        "followUpEnabled": True,
        "followUpDelayDays": 3,
        "frequencyCapDays": 30,
        "quietHours": {"start": "09:00", "end": "19:00"},
    },
}

CUSTOMERS = [
    {"id": "c1", "customerName": "Maria Lopez", "phone": "5551234567", "createdAt": "2024-03-01T10:00:00Z"},
    {"id": "c2", "customerName": "Sam Lee", "email": "sam@example.com", "createdAt": "2024-03-01T10:00:00Z"},
]

EVENTS = [
    {"id": "e1", "customerId": "c2", "type": "sent", "timestamp": "2024-03-10T15:00:00Z"},
]

HEADERS = {"X-Tenant-ID": "tenant-a"}


@pytest.mark.asyncio
async def test_evaluate(client: AsyncClient):
    response = await client.post(
        f"{BASE}/evaluate",
        json={"campaign": CAMPAIGN, "customers": CUSTOMERS, "events": EVENTS},
    )
    assert response.status_code == 200
    data = response.json()

    assert data["validationErrors"] == []
    queue = data["sendQueue"]
    pending = [q for q in queue if q["status"] == "pending"]
    skipped = [q for q in queue if q["status"] == "skipped"]
    assert len(pending) == 2
    assert pending[0]["scheduledAt"].startswith("2024-03-15T09:00:00")
    assert skipped[0]["customerId"] == "c2"
    assert "5 days ago" in skipped[0]["skippedReason"]
    assert data["metrics"]["sent"] == 1
    assert data["campaignHealth"]["status"] == "Good"
    assert data["businessTypeRecommendation"]["sendDelayHours"]["recommended"] == 18


@pytest.mark.asyncio
async def test_evaluate_rejects_malformed_quiet_hours(client: AsyncClient):
    campaign = {**CAMPAIGN, "rules": {**CAMPAIGN["rules"], "quietHours": {"start": "9am", "end": "19:00"}}}
    response = await client.post(f"{BASE}/evaluate", json={"campaign": campaign})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_evaluate_rejects_out_of_range_quiet_hours(client: AsyncClient):
    campaign = {**CAMPAIGN, "rules": {**CAMPAIGN["rules"], "quietHours": {"start": "25:00", "end": "26:00"}}}
    response = await client.post(f"{BASE}/evaluate", json={"campaign": campaign})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_evaluate_accepts_events_with_and_without_offsets(client: AsyncClient):
    events = [
        {"id": "e1", "customerId": "c1", "type": "sent", "timestamp": "2024-01-01T10:00:00"},
        {"id": "e2", "customerId": "c1", "type": "clicked", "timestamp": "2024-01-02T10:00:00Z"},
    ]
    response = await client.post(
        f"{BASE}/evaluate",
        json={"campaign": CAMPAIGN, "customers": CUSTOMERS, "events": events},
    )
    assert response.status_code == 200
    assert response.json()["metrics"]["clicked"] == 1


@pytest.mark.asyncio
async def test_message_preview(client: AsyncClient):
    response = await client.post(
        f"{BASE}/messages/preview",
        json={"campaign": CAMPAIGN, "customerName": "Maria Lopez", "variant": "email"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["variant"] == "email"
    assert data["text"].startswith("Subject: Feedback Request: Ocean Side Plumbing\n\nDear Maria,")
    assert "{firstName}" not in data["text"]
    assert "Ocean Side Plumbing" in data["text"]

    response = await client.post(f"{BASE}/messages/preview", json={"campaign": CAMPAIGN, "customerName": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_campaign_with_validation_errors_is_not_saved(client: AsyncClient):
    campaign = {**CAMPAIGN, "reviewLink": "not-a-url"}
    response = await client.post(f"{BASE}/campaigns", json={"campaign": campaign}, headers=HEADERS)
    assert response.status_code == 400
    assert "Review link must be a valid URL" in response.json()["detail"]["validationErrors"]

    response = await client.get(f"{BASE}/datasets/latest", headers=HEADERS)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_save_track_and_report(client: AsyncClient):
    response = await client.post(
        f"{BASE}/campaigns",
        json={"campaign": CAMPAIGN, "customers": CUSTOMERS, "events": EVENTS},
        headers=HEADERS,
    )
    assert response.status_code == 201
    saved = response.json()["saved"]
    assert saved["snapshotId"].startswith("RRA-")

    response = await client.get(f"{BASE}/campaigns/{saved['campaignId']}", headers=HEADERS)
    assert response.status_code == 200
    assert response.json()["businessName"] == "Ocean Side Plumbing"

    response = await client.get(f"{BASE}/campaigns/{saved['campaignId']}/queue-items", headers=HEADERS)
    items = response.json()
    assert len(items) == 3
    pending = [i for i in items if i["status"] == "pending"]

    response = await client.patch(
        f"{BASE}/queue-items/{pending[0]['id']}", json={"status": "sent"}, headers=HEADERS
    )
    assert response.status_code == 200
    assert response.json()["sentAt"] is not None

    response = await client.patch(
        f"{BASE}/queue-items/{pending[0]['id']}", json={"status": "reviewed"}, headers=HEADERS
    )
    assert response.status_code == 200

    response = await client.get(f"{BASE}/datasets/latest", headers=HEADERS)
    assert response.status_code == 200
    dataset = response.json()
    assert dataset["datasetId"] == saved["datasetId"]
    assert dataset["metrics"]["sent"] == 1
    assert dataset["metrics"]["reviewed"] == 1
    assert dataset["metrics"]["reviewedRate"] == 100.0
    assert dataset["warnings"] == {"highQueueSkipRate": True}

    response = await client.get(f"{BASE}/datasets/{saved['datasetId']}", headers=HEADERS)
    assert response.json()["snapshotId"] == saved["snapshotId"]


@pytest.mark.asyncio
async def test_other_tenants_cannot_see_campaign(client: AsyncClient):
    response = await client.post(f"{BASE}/campaigns", json={"campaign": CAMPAIGN}, headers=HEADERS)
    campaign_id = response.json()["saved"]["campaignId"]

    response = await client.get(f"{BASE}/campaigns/{campaign_id}", headers={"X-Tenant-ID": "tenant-b"})
    assert response.status_code == 404
    response = await client.get(f"{BASE}/campaigns/{campaign_id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_patch_unknown_queue_item(client: AsyncClient):
    response = await client.patch(f"{BASE}/queue-items/nope", json={"status": "clicked"}, headers=HEADERS)
    assert response.status_code == 404

    response = await client.patch(f"{BASE}/queue-items/nope", json={"status": "bogus"}, headers=HEADERS)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_customer_import(client: AsyncClient):
    csv_text = "Name,Phone,Email\nAna Ruiz,(555) 123-4567,\nBen,,not-an-email"
    response = await client.post(f"{BASE}/customers/import", json={"csvText": csv_text})
    assert response.status_code == 200
    data = response.json()

    assert [c["customerName"] for c in data["customers"]] == ["Ana Ruiz"]
    assert data["customers"][0]["phone"] == "5551234567"
    assert data["errors"] == [{"rowIndex": 2, "errors": ['Invalid email: "not-an-email"']}]
    assert data["columnMapping"]["customerName"] == "Name"


@pytest.mark.asyncio
async def test_customer_template_download(client: AsyncClient):
    response = await client.get(f"{BASE}/customers/template")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0] == "customerName,phone,email,tags,lastVisitDate,serviceType,jobId"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}

    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "ok"
    assert "X-Correlation-ID" in response.headers
