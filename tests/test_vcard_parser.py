from datetime import date

from bdayfeed.models import DEFAULT_LEAP_YEAR
from bdayfeed.vcard_parser import VCardParser, make_identity, parse_date


def fake_translate(key: str, *args) -> str:
    return "Unknown" if key == "unknown_name" else key


def parse(payload: str):
    return VCardParser(fake_translate).parse(payload)


def test_parse_standard_vcard_with_full_birthday() -> None:
    records = parse("BEGIN:VCARD\nFN:John Doe\nBDAY:1990-05-15\nEND:VCARD")

    assert len(records) == 1
    assert records[0].display_name == "John Doe"
    assert records[0].has_known_year is True
    assert records[0].birth_date == date(1990, 5, 15)


def test_parse_yearless_birthday_uses_leap_year_placeholder() -> None:
    records = parse("BEGIN:VCARD\nVERSION:3.0\nFN:Jane\nBDAY:--12-25\nEND:VCARD")

    assert len(records) == 1
    assert records[0].has_known_year is False
    assert records[0].birth_date == date(DEFAULT_LEAP_YEAR, 12, 25)


def test_parse_date_keeps_yearless_feb_29() -> None:
    assert parse_date("--02-29") == (date(2000, 2, 29), False)
    assert parse_date("--0229") == (date(2000, 2, 29), False)


def test_parse_date_accepts_basic_format_and_strips_time() -> None:
    assert parse_date("19920229") == (date(1992, 2, 29), True)
    assert parse_date("1985-07-04T10:30:00Z") == (date(1985, 7, 4), True)


def test_parse_date_rejects_unsupported_or_impossible_values() -> None:
    assert parse_date("15/05/1990") is None
    assert parse_date("May 15") is None
    assert parse_date("1990-02-30") is None
    assert parse_date("--13-01") is None


def test_missing_name_falls_back_to_translation() -> None:
    records = parse("BEGIN:VCARD\nBDAY:1980-01-01\nEND:VCARD")

    assert len(records) == 1
    assert records[0].display_name == "Unknown"


def test_contacts_without_birthday_or_end_marker_are_dropped() -> None:
    payload = (
        "BEGIN:VCARD\nFN:No Birthday\nEND:VCARD\n"
        "BEGIN:VCARD\nFN:Kept\nBDAY:2001-03-03\nEND:VCARD\n"
        "BEGIN:VCARD\nFN:Bad Date\nBDAY:sometime\nEND:VCARD\n"
        "BEGIN:VCARD\nFN:Never Closed\nBDAY:1970-01-01\n"
    )

    records = parse(payload)

    assert [r.display_name for r in records] == ["Kept"]


def test_handles_crlf_parameters_and_lowercase_markers() -> None:
    payload = (
        "begin:vcard\r\n"
        "VERSION:4.0\r\n"
        "fn;CHARSET=UTF-8:  Émilie Dupont  \r\n"
        "BDAY;VALUE=date:1975-11-02\r\n"
        "end:vcard\r\n"
        "BEGIN:VCARD\rFN:Mac Style\rBDAY:2010-06-06\rEND:VCARD\r"
    )

    records = parse(payload)

    assert [r.display_name for r in records] == ["Émilie Dupont", "Mac Style"]
    assert records[0].birth_date == date(1975, 11, 2)


def test_last_birthday_line_wins() -> None:
    records = parse("BEGIN:VCARD\nFN:Twice\nBDAY:1990-01-01\nBDAY:1991-02-02\nEND:VCARD")

    assert records[0].birth_date == date(1991, 2, 2)


def test_invalid_second_birthday_keeps_first() -> None:
    records = parse("BEGIN:VCARD\nFN:Twice\nBDAY:1990-01-01\nBDAY:garbage\nEND:VCARD")

    assert records[0].birth_date == date(1990, 1, 1)


def test_lines_outside_records_are_ignored() -> None:
    payload = "FN:Stray\nBDAY:1999-09-09\nEND:VCARD\nBEGIN:VCARD\nFN:Inside\nBDAY:2000-01-01\nEND:VCARD"

    records = parse(payload)

    assert [r.display_name for r in records] == ["Inside"]


def test_identity_is_deterministic_per_name() -> None:
    payload = "BEGIN:VCARD\nFN:John Doe\nBDAY:1990-05-15\nEND:VCARD"

    first = parse(payload)[0].identity
    second = parse(payload)[0].identity

    assert first == second == make_identity("John Doe")
    assert make_identity("John Doe") != make_identity("Jane Doe")


def test_empty_payload_returns_no_records() -> None:
    assert parse("") == []
