"""Mapping candidates for missing required columns."""

from app.core.field_registry import META_ADS
from app.ingest.column_mapping import auto_mapping, resolve_column_mapping, unresolved_columns
from app.models.ingest_models import EMPTY_FILE


def test_spend_synonym_is_proposed():
    candidates = resolve_column_mapping(["Amount spent (INR)"], ["Date", "Spend", "Impressions"])
    assert candidates == {"Amount spent (INR)": ["Spend"]}


def test_synonyms_come_before_substring_hits():
    headers = ["Amount spent (INR) total", "Ad Spend"]
    candidates = resolve_column_mapping(["Amount spent (INR)"], headers)
    assert candidates["Amount spent (INR)"] == ["Ad Spend", "Amount spent (INR) total"]


def test_substring_match_both_directions():
    candidates = resolve_column_mapping(["Impressions"], ["Total Impressions"])
    assert candidates["Impressions"] == ["Total Impressions"]
    candidates = resolve_column_mapping(["Link clicks"], ["link"])
    assert candidates["Link clicks"] == ["link"]


def test_short_headers_do_not_substring_match():
    candidates = resolve_column_mapping(["Results"], ["re", "x"])
    assert candidates["Results"] == []


def test_excluded_headers_are_not_offered():
    candidates = resolve_column_mapping(["Link clicks"], ["Clicks"], META_ADS, exclude=["Clicks"])
    assert candidates["Link clicks"] == []


def test_empty_file_marker_is_skipped():
    assert resolve_column_mapping([EMPTY_FILE], ["Date"]) == {}


def test_auto_mapping_only_takes_unambiguous_candidates():
    mapping = auto_mapping({"Results": ["Conversions"], "Impressions": ["Impr", "Impr."], "CTR (All)": []})
    assert mapping == {"Results": "Conversions"}


def test_unresolved_columns():
    missing = ["Results", "Impressions"]
    assert unresolved_columns(missing, {"Results": "Conversions"}, ["Conversions"]) == ["Impressions"]
    assert unresolved_columns(missing, {"Results": "Nope"}, ["Conversions"]) == missing
