"""
Tests for the Flask upload API.
"""

from __future__ import annotations

import io

import pytest

from app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def _upload(client, data: bytes, filename: str = "report.xlsx", **form):
    payload = {"file": (io.BytesIO(data), filename)}
    payload.update(form)
    return client.post("/api/parse", data=payload, content_type="multipart/form-data")


# ======================================================================
# Status endpoints
# ======================================================================

class TestStatus:
    def test_home(self, client) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert "/api/parse" in resp.get_json()["endpoints"]

    def test_health(self, client) -> None:
        body = client.get("/api/health").get_json()
        assert body["status"] == "online"
        assert body["methods"] == ["POST"]


# ======================================================================
# Parse endpoint
# ======================================================================

class TestParse:
    def test_success(self, client, make_xlsx, income_rows) -> None:
        resp = _upload(client, make_xlsx({"Income Statement": income_rows}),
                       company_name="Acme", market_size="1400")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["filename"] == "report.xlsx"
        assert body["series"]["revenue"] == [100.0, 120.0, 140.0]
        assert body["score"]["market_share"] == pytest.approx(0.1)
        assert len(body["competitors"]) == 3
        assert set(body["insights"]) == {"financial", "eda", "competitor", "kpi", "ai"}
        assert body["sentiment"] == {"score": 0.0, "label": "NEUTRAL"}

    def test_context_fields_reach_insights(self, client, make_xlsx, income_rows) -> None:
        resp = _upload(client, make_xlsx({"Income Statement": income_rows}),
                       company_name="Acme", sector="Retail", report_period="FY2023")
        insights = resp.get_json()["insights"]
        assert insights["financial"]["summary"].startswith("Acme (Retail, FY2023)")
        assert "neutral" in insights["ai"]["diagnosis"]

    def test_fallback_still_200(self, client, make_xlsx) -> None:
        resp = _upload(client, make_xlsx({"Notes": [["x"]]}))
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["used_fallback"] is True
        assert body["series"]["revenue"] == [19457.0]

    def test_no_file(self, client) -> None:
        resp = client.post("/api/parse", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400

    def test_empty_filename(self, client) -> None:
        assert _upload(client, b"x", filename="").status_code == 400

    def test_wrong_extension(self, client) -> None:
        resp = _upload(client, b"a,b", filename="report.csv")
        assert resp.status_code == 400
        assert "Invalid file type" in resp.get_json()["error"]

    def test_bad_number_field(self, client, make_xlsx, income_rows) -> None:
        resp = _upload(client, make_xlsx({"Income Statement": income_rows}), market_size="lots")
        assert resp.status_code == 400
        assert "market_size" in resp.get_json()["error"]

    def test_corrupt_workbook(self, client) -> None:
        resp = _upload(client, b"definitely not a zip archive")
        assert resp.status_code == 422
        body = resp.get_json()
        assert body["success"] is False
        assert "valid Excel workbook" in body["error"]
