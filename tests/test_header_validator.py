"""Header validation against the required column set."""

from app.core.field_registry import META_ADS, SHOPIFY_ORDERS
from app.ingest.header_validator import match_required_columns, validate_headers
from app.models.ingest_models import EMPTY_FILE
from conftest import META_HEADER


def test_full_meta_header_is_valid():
    result = validate_headers(META_HEADER + "\n2023-01-01,...")
    assert result.is_valid
    assert result.missing_headers == []


def test_case_and_order_do_not_matter():
    headers = [h.upper() for h in reversed(META_ADS.required_columns)]
    result = validate_headers(headers)
    assert result.is_valid
    assert result.matched["Date"] == "DATE"


def test_synonym_satisfies_required_column():
    headers = [c for c in META_ADS.required_columns if c != "Amount spent (INR)"] + ["Spend"]
    result = validate_headers(headers)
    assert result.is_valid
    assert result.matched["Amount spent (INR)"] == "Spend"


def test_missing_columns_listed_in_priority_order():
    headers = ["Date", "Campaign name", "Impressions"]
    result = validate_headers(headers)
    assert not result.is_valid
    assert result.missing_headers == [c for c in META_ADS.required_columns if c not in headers]


def test_blank_input_reports_empty_file():
    assert validate_headers("").missing_headers == [EMPTY_FILE]
    assert validate_headers("   \n ").missing_headers == [EMPTY_FILE]
    assert validate_headers([]).missing_headers == [EMPTY_FILE]


def test_one_header_never_satisfies_two_columns():
    # "Cost" is a spend synonym; no other column may reuse it
    headers = ["Cost"]
    matched = match_required_columns(headers, META_ADS)
    assert matched == {"Amount spent (INR)": "Cost"}


def test_shopify_headers():
    header = ",".join(SHOPIFY_ORDERS.headers)
    assert validate_headers(header, SHOPIFY_ORDERS).is_valid
    result = validate_headers("Name,Total\n", SHOPIFY_ORDERS)
    assert "Created at" in result.missing_headers
