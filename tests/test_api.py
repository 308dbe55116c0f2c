import base64
import hashlib
import hmac
import json

import pytest
from fastapi.testclient import TestClient

from fakes import FakeLineRepository, FakeSheetsRepository
from routemate.api import dependencies
from routemate.api.dependencies import get_notification_service, get_route_planner
from routemate.core.exceptions import NotificationError, SheetImportError
from routemate.core.settings import Settings, get_settings
from routemate.main import app
from routemate.repositories.sheets.google_sheets import GoogleSheetsRepository
from routemate.services.notification import NotificationService


@pytest.fixture
def line():
    return FakeLineRepository()


@pytest.fixture
def client(simulated_planner, store, line):
    app.dependency_overrides[get_route_planner] = lambda: simulated_planner
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(store, line)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def plan(client, waypoints=("B",)):
    return client.post(
        "/api/plan-route",
        json={
            "startPoint": {"address": "A"},
            "waypoints": [{"address": w} for w in waypoints],
            "endPoint": {"address": "C", "note": "back door"},
        },
    )


def test_plan_route_returns_route_with_ordered_addresses(client):
    response = plan(client)

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 1
    assert body["lineNotificationSent"] is False
    assert body["mapsUrl"].startswith("https://www.google.com/maps/dir/")
    assert [a["address"] for a in body["addresses"]] == ["A", "B", "C"]
    assert body["addresses"][0]["isStartPoint"] is True
    assert body["addresses"][2]["isEndPoint"] is True
    assert body["addresses"][2]["note"] == "back door"
    assert body["addresses"][1]["routeId"] == 1


def test_plan_route_rejects_missing_end_point(client):
    response = client.post("/api/plan-route", json={"startPoint": {"address": "A"}, "waypoints": []})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid input data"


def test_plan_route_rejects_blank_address(client):
    response = plan(client, waypoints=("  ",))

    assert response.status_code == 400


def test_get_route_and_history(client):
    created = plan(client).json()

    single = client.get(f"/api/routes/{created['id']}")
    history = client.get("/api/routes")

    assert single.status_code == 200
    assert single.json()["distance"] == created["distance"]
    assert [r["id"] for r in history.json()] == [created["id"]]
    assert len(history.json()[0]["addresses"]) == 3


def test_get_unknown_route_is_404(client):
    response = client.get("/api/routes/77")

    assert response.status_code == 404


def test_upload_csv_plans_route(client):
    content = "地址,備註\nX,\nY,\nZ,\n".encode("utf-8")

    response = client.post("/api/upload-csv", files={"file": ("stops.csv", content, "text/csv")})

    assert response.status_code == 200
    assert [a["address"] for a in response.json()["addresses"]] == ["X", "Y", "Z"]
    assert response.json()["name"].startswith("CSV匯入")


def test_upload_rejects_non_csv(client):
    response = client.post("/api/upload-csv", files={"file": ("stops.xlsx", b"PK", "application/octet-stream")})

    assert response.status_code == 400


def test_upload_without_addresses_is_400(client):
    response = client.post("/api/upload-csv", files={"file": ("stops.csv", b"name\nbob\n", "text/csv")})

    assert response.status_code == 400
    assert response.json()["detail"] == "no usable address rows"


def test_import_sheet_rejects_non_sheet_link(client, simulated_planner):
    simulated_planner.sheets_repository = GoogleSheetsRepository()

    response = client.post("/api/import-sheet", json={"url": "https://example.com/file.csv"})

    assert response.status_code == 400
    assert "Not a Google Sheets link" in response.json()["detail"]


def test_import_sheet_plans_route(client, simulated_planner):
    simulated_planner.sheets_repository = FakeSheetsRepository("address\nP\nQ\n".encode("utf-8"))

    response = client.post("/api/import-sheet", json={"url": "https://docs.google.com/spreadsheets/d/abc/edit"})

    assert response.status_code == 200
    assert [a["address"] for a in response.json()["addresses"]] == ["P", "Q"]


def test_send_notification_flips_route_flag(client, line):
    route = plan(client).json()

    response = client.post("/api/send-line-notification", json={"routeId": route["id"], "recipientId": "1"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert line.pushed[0][0] == "transport_group_1"
    assert client.get(f"/api/routes/{route['id']}").json()["lineNotificationSent"] is True


def test_send_notification_unknown_recipient_is_404(client):
    route = plan(client).json()

    response = client.post("/api/send-line-notification", json={"routeId": route["id"], "recipientId": "42"})

    assert response.status_code == 404


def test_send_notification_unknown_route_is_404(client):
    response = client.post("/api/send-line-notification", json={"routeId": 5, "recipientId": "1"})

    assert response.status_code == 404


def test_line_settings_lists_recipients(client):
    response = client.get("/api/line-settings")

    assert response.status_code == 200
    assert [r["recipientName"] for r in response.json()] == ["運輸部門群組", "配送人員", "主管"]


def test_webhook_health_check(client):
    response = client.get("/api/line-webhook")

    assert response.json() == {"status": "LINE Webhook endpoint is working"}


def test_webhook_verifies_signature_when_secret_configured(client):
    app.dependency_overrides[get_settings] = lambda: Settings(LINE_CHANNEL_SECRET="s3cret")
    body = json.dumps({"events": [{"type": "follow", "source": {"userId": "U1"}}]}).encode("utf-8")
    signature = base64.b64encode(hmac.new(b"s3cret", body, hashlib.sha256).digest()).decode("utf-8")

    accepted = client.post("/api/line-webhook", content=body, headers={"X-Line-Signature": signature})
    rejected = client.post("/api/line-webhook", content=body, headers={"X-Line-Signature": "bogus"})

    assert accepted.status_code == 200
    assert rejected.status_code == 400


def test_upload_over_size_limit_is_413(client):
    app.dependency_overrides[get_settings] = lambda: Settings(MAX_UPLOAD_BYTES=16)
    content = "address\n" + "台北市信義區市府路1號\n" * 3

    response = client.post("/api/upload-csv", files={"file": ("stops.csv", content.encode("utf-8"), "text/csv")})

    assert response.status_code == 413


def test_import_sheet_download_failure_is_502(client, simulated_planner):
    simulated_planner.sheets_repository = FakeSheetsRepository(error=SheetImportError("Sheet is not publicly accessible"))

    response = client.post("/api/import-sheet", json={"url": "https://docs.google.com/spreadsheets/d/abc/edit"})

    assert response.status_code == 502
    assert "not publicly accessible" in response.json()["detail"]


def test_failed_line_push_is_502_and_route_stays_unsent(client, store):
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(
        store, FakeLineRepository(error=NotificationError("status 401"))
    )
    route = plan(client).json()

    response = client.post("/api/send-line-notification", json={"routeId": route["id"], "recipientId": "1"})

    assert response.status_code == 502
    assert "status 401" in response.json()["detail"]
    assert client.get(f"/api/routes/{route['id']}").json()["lineNotificationSent"] is False


@pytest.mark.parametrize(
    "payload",
    [
        {"events": [{"type": "message", "source": None}]},
        {"events": ["junk", {"type": "follow", "source": "U1"}]},
        {"events": None},
    ],
)
def test_webhook_tolerates_malformed_events(client, payload):
    response = client.post("/api/line-webhook", json=payload)

    assert response.status_code == 200


def test_webhook_rejects_non_list_events(client):
    response = client.post("/api/line-webhook", json={"events": 5})

    assert response.status_code == 400


@pytest.fixture
def malformed_maps_key(monkeypatch):
    providers = [
        dependencies.get_route_store,
        dependencies.get_maps_repository,
        dependencies.get_sheets_repository,
        dependencies.get_geocoding_service,
        dependencies.get_optimization_service,
        dependencies.get_route_planner,
    ]
    monkeypatch.setattr(
        dependencies,
        "get_settings",
        lambda: Settings(GOOGLE_MAPS_API_KEY="not-a-real-key", SIMULATION_MODE=False, GEOCODE_DELAY_SECONDS=0),
    )
    for provider in providers:
        provider.cache_clear()
    yield
    for provider in providers:
        provider.cache_clear()


def test_malformed_maps_key_falls_back_to_simulation(malformed_maps_key):
    assert dependencies.get_maps_repository() is None

    with TestClient(app) as test_client:
        response = plan(test_client)

    assert response.status_code == 200
    assert response.json()["distance"].endswith("公里")
    assert len(response.json()["addresses"]) == 3
