"""CSV decoding and parsing."""

import pytest

from app.ingest.csv_parser import CsvParseError, decode_csv_bytes, parse_csv, read_headers


def test_decode_strips_utf8_bom():
    text = decode_csv_bytes("\ufeffDate,Impressions\n2023-01-01,10\n".encode("utf-8"))
    assert read_headers(text) == ["Date", "Impressions"]


def test_decode_falls_back_to_cp1252():
    data = "Campaign name\nCaf\xe9 launch\n".encode("cp1252")
    assert "Café launch" in decode_csv_bytes(data)


def test_parse_keeps_cells_as_strings():
    parsed = parse_csv('Date,Amount spent (INR),Impressions\n2023-01-01,"2,325.00",0012\n')
    assert parsed.headers == ["Date", "Amount spent (INR)", "Impressions"]
    assert parsed.rows == [{"Date": "2023-01-01", "Amount spent (INR)": "2,325.00", "Impressions": "0012"}]
    assert parsed.errors == []


def test_parse_empty_cells_and_na_stay_literal():
    parsed = parse_csv("Date,Results\n2023-01-01,\n2023-01-02,N/A\n")
    assert parsed.rows[0]["Results"] == ""
    assert parsed.rows[1]["Results"] == "N/A"


def test_parse_skips_blank_lines():
    parsed = parse_csv("Date,Results\n2023-01-01,1\n\n2023-01-02,2\n")
    assert len(parsed.rows) == 2


def test_parse_header_only_file_has_no_rows():
    parsed = parse_csv("Date,Results\n")
    assert parsed.headers == ["Date", "Results"]
    assert parsed.rows == []


def test_parse_blank_text_is_empty():
    parsed = parse_csv("   \n")
    assert parsed.headers == []
    assert parsed.rows == []


def test_parse_reports_rows_with_too_many_fields():
    parsed = parse_csv("Date,Results\n2023-01-01,1\n2023-01-02,2,extra\n2023-01-03,3\n")
    assert [r["Date"] for r in parsed.rows] == ["2023-01-01", "2023-01-03"]
    assert len(parsed.errors) == 1


def test_undecodable_bytes_raise():
    # 0x81 is undefined in cp1252 and invalid as a UTF-8 start byte
    with pytest.raises(CsvParseError):
        decode_csv_bytes(b"Date\n\x81\x81\n")
