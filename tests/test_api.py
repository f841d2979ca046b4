"""HTTP surface, against an in-memory store."""

import json

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_store
from app.config import settings
from app.main import app
from conftest import META_HEADER

USER = {"X-User-Id": "u1"}

META_CSV = (
    META_HEADER
    + "\n2023-01-01,Summer Sale,Women 25-34,\"₹1,250.50\",14,89.32,4820,3.85,12.40,3%,101,3400,Sales,14"
    + "\n2023-01-03,Summer Sale,Lookalike 1%,980,9,108.89,2150.75,2.19,9.80,2.5%,100,4000,Sales,9\n"
)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _post(client, content, name="ads.csv", params=None, data=None, headers=USER):
    return client.post(
        "/uploads",
        files={"file": (name, content.encode("utf-8"), "text/csv")},
        params=params or {},
        data=data or {},
        headers=headers,
    )


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_upload_list_export_delete_roundtrip(client):
    res = _post(client, META_CSV)
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "completed"
    assert body["record_count"] == 2
    assert body["date_range"] == {"start": "2023-01-01", "end": "2023-01-03"}

    listed = client.get("/uploads", headers=USER).json()
    assert [u["id"] for u in listed] == [body["id"]]

    export = client.get(f"/uploads/{body['id']}/export", headers=USER)
    assert export.status_code == 200
    assert "attachment" in export.headers["content-disposition"]
    assert "1250.5" in export.text

    assert client.delete(f"/uploads/{body['id']}", headers=USER).status_code == 200
    assert client.get(f"/uploads/{body['id']}", headers=USER).status_code == 404
    assert client.delete(f"/uploads/{body['id']}", headers=USER).status_code == 404


def test_missing_user_header_is_rejected(client):
    assert client.get("/uploads").status_code == 422
    assert client.get("/uploads", headers={"X-User-Id": "  "}).status_code == 401


def test_uploads_are_private(client):
    upload_id = _post(client, META_CSV).json()["id"]
    other = {"X-User-Id": "u2"}
    assert client.get("/uploads", headers=other).json() == []
    assert client.get(f"/uploads/{upload_id}", headers=other).status_code == 404


def test_missing_columns_are_rejected_with_candidates(client):
    csv_text = META_CSV.replace("Amount spent (INR)", "Money spent")
    res = _post(client, csv_text)
    assert res.status_code == 422
    detail = res.json()["detail"]
    assert detail["missing_headers"] == ["Amount spent (INR)"]
    assert "candidates" in detail


def test_manual_mapping_unblocks_upload(client):
    csv_text = META_CSV.replace("Amount spent (INR)", "Money spent")
    res = _post(client, csv_text, data={"column_mapping": json.dumps({"Amount spent (INR)": "Money spent"})})
    assert res.status_code == 200
    assert res.json()["column_mapping"] == {"Amount spent (INR)": "Money spent"}


def test_bad_mapping_json(client):
    assert _post(client, META_CSV, data={"column_mapping": "{not json"}).status_code == 400


def test_header_only_file_fails(client):
    res = _post(client, META_HEADER + "\n")
    assert res.status_code == 200
    assert res.json()["status"] == "failed"
    assert res.json()["error_message"] == "No data rows found"


def test_non_csv_and_oversized_files(client, monkeypatch):
    assert _post(client, META_CSV, name="ads.xlsx").status_code == 400
    monkeypatch.setattr(settings, "max_upload_bytes", 10)
    assert _post(client, META_CSV).status_code == 413


def test_unknown_schema(client):
    assert _post(client, META_CSV, params={"schema_key": "tiktok"}).status_code == 404


def test_validate_suggests_mapping(client):
    csv_text = META_CSV.replace("Amount spent (INR)", "Spend").replace("Impressions", "Total Impressions")
    res = client.post(
        "/uploads/validate",
        files={"file": ("ads.csv", csv_text.encode("utf-8"), "text/csv")},
        headers=USER,
    )
    assert res.status_code == 200
    report = res.json()
    assert report["is_valid"] is False
    assert report["missing_headers"] == ["Impressions"]
    assert report["suggested_mapping"] == {"Impressions": "Total Impressions"}
    assert report["row_count"] == 2


def test_template_download(client):
    res = client.get("/templates/shopify_orders")
    assert res.status_code == 200
    assert res.text.startswith("Name,Created at,Total")


def test_analytics_summary(client):
    _post(client, META_CSV)
    res = client.get("/analytics/ads/summary", headers=USER, params={"start_date": "2023-01-01"})
    assert res.status_code == 200
    body = res.json()
    assert body["metrics"]["total_clicks"] == 201
    assert body["campaigns"] == ["Summer Sale"]
    assert client.get("/analytics/ads/summary", headers=USER, params={"start_date": "01-01-2023"}).status_code == 422


def test_validate_reports_malformed_rows(client):
    csv_text = META_CSV + "2023-01-04,Extra,Row,1,2,3,4,5,6,7,8,9,Sales,1,unexpected\n"
    res = client.post(
        "/uploads/validate",
        files={"file": ("ads.csv", csv_text.encode("utf-8"), "text/csv")},
        headers=USER,
    )
    report = res.json()
    assert report["is_valid"] is True
    assert report["row_count"] == 2
    assert len(report["parse_errors"]) == 1


def test_mapping_onto_present_column_is_honoured(client):
    csv_text = META_CSV.replace("Results,", "Conversions (old),", 1)
    res = _post(client, csv_text, data={"column_mapping": json.dumps({"Results": "Purchases"})})
    assert res.status_code == 200
    summary = client.get("/analytics/ads/summary", headers=USER).json()
    assert summary["metrics"]["total_results"] == 23


def test_dashboard_scoped_to_one_upload(client):
    first = _post(client, META_CSV).json()["id"]
    _post(client, META_CSV.replace("Summer Sale", "Diwali"))

    res = client.get("/analytics/ads/campaigns", headers=USER, params={"upload_id": first})
    assert [c["campaign_name"] for c in res.json()["campaigns"]] == ["Summer Sale"]

    res = client.get("/analytics/ads/ad-sets", headers=USER, params={"ad_set_name": "Lookalike 1%"})
    assert [a["ad_set_name"] for a in res.json()["ad_sets"]] == ["Lookalike 1%"]


def test_shipping_upload_and_summary(client):
    template = client.get("/templates/shipping_orders").text
    res = _post(client, template, name="shipments.csv", params={"schema_key": "shipping_orders"})
    assert res.status_code == 200
    assert res.json()["record_count"] == 2
    assert res.json()["date_range"] == {"start": "2023-01-01", "end": "2023-01-02"}

    summary = client.get("/analytics/shipping/summary", headers=USER).json()["metrics"]
    assert summary["total_orders"] == 2
    assert summary["delivery_rate"] == 50.0
    assert summary["rto_rate"] == 50.0

    couriers = client.get("/analytics/shipping/couriers", headers=USER).json()["couriers"]
    assert {c["name"] for c in couriers} == {"Delhivery", "Xpressbees"}
