import pytest
from unittest.mock import patch, MagicMock, AsyncMock
from fastapi.testclient import TestClient
from cardflow.main import app
from cardflow.api.admin_routes import require_admin
from cardflow.settings import settings
from cardflow.verification.models import VerificationResult

client = TestClient(app)

@pytest.fixture
def skip_auth():
    app.dependency_overrides[require_admin] = lambda: None
    yield
    app.dependency_overrides = {}

def test_admin_rejects_when_no_key_configured():
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", ""):
        resp = client.get("/admin/metrics", headers={"x-admin-key": "anything"})
    assert resp.status_code == 403

def test_admin_rejects_wrong_key():
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", "k1"):
        assert client.get("/admin/workflows/login", headers={"x-admin-key": "k2"}).status_code == 403
        assert client.get("/admin/workflows/login", headers={"x-admin-key": "k1"}).status_code == 200

@patch("cardflow.api.admin_routes.metrics.get_metrics_snapshot")
def test_admin_metrics(mock_snapshot, skip_auth):
    mock_snapshot.return_value = {"workflows": {}, "verification": {}}
    resp = client.get("/admin/metrics")
    assert resp.status_code == 200
    assert resp.json() == {"workflows": {}, "verification": {}}

    workflows, services = mock_snapshot.call_args.args
    assert "redemption" in workflows
    assert sorted(services) == ["fraud-detection", "order-verification"]

def test_admin_describe_workflow(skip_auth):
    resp = client.get("/admin/workflows/campaign-order")
    assert resp.status_code == 200
    data = resp.json()
    assert data["recordConstraints"] == ["min_total_quantity"]
    assert data["redirect"] == "/dashboard"
    assert {"name": "politicalRole", "kind": "string", "required": False} in data["fields"]

    assert client.get("/admin/workflows/nope").status_code == 404

@patch("cardflow.api.admin_routes.get_gateway")
def test_admin_verify_dry_run(mock_get_gateway, skip_auth):
    gw = MagicMock()
    gw.verify = AsyncMock(return_value=VerificationResult(verdict=False, score=0, explanation="x", service="order-verification", fallback_used=True))
    mock_get_gateway.return_value = gw

    resp = client.post("/admin/verify/order-verification", json={"politicianName": "Ada Obi"})
    assert resp.status_code == 200
    assert resp.json()["fallbackUsed"] is True
    gw.verify.assert_awaited_once_with("order-verification", {"politicianName": "Ada Obi"})

    assert client.post("/admin/verify/credit-check", json={}).status_code == 404
