from dataclasses import replace

from rate_resolver import make_resolver
from trip_extractor.extractor import parse_trip_row
from trip_extractor.models import DriverReport
from trip_extractor.validator import validate_reports


def _report(rate_data, *token_lists):
    resolve = make_resolver(rate_data)
    report = DriverReport("ALI")
    for tokens in token_lists:
        report.add_transaction(resolve(parse_trip_row(tokens)))
    return report


def test_clean_reports_have_no_warnings(rate_data, trip_tokens):
    report = _report(
        rate_data,
        trip_tokens(),
        trip_tokens(pickup="VANCE-NIBONG", do="DO2"),
        trip_tokens(pickup="ZZZZZZ", do="DO3"),
    )
    assert validate_reports([report]) == []


def test_tampered_totals_are_reported(rate_data, trip_tokens):
    report = _report(rate_data, trip_tokens(), trip_tokens(pickup="ZZZZZZ"))
    report.total_new_comm += 5
    report.mismatched_trips = 0

    warnings = validate_reports([report])

    assert any("total_new_comm mismatch" in w for w in warnings)
    assert any("mismatched_trips is 0" in w for w in warnings)
    assert all(w.startswith("[WARNING] Driver 1 ('ALI')") for w in warnings)


def test_transaction_arithmetic_is_checked(rate_data, trip_tokens):
    report = _report(rate_data, trip_tokens())
    bad = replace(report.transactions[0], new_comm=1.0)
    report.transactions[0] = bad

    warnings = validate_reports([report])

    assert any("Trip 1 (DO#: DO1001): new_comm mismatch" in w for w in warnings)
    assert any("diff mismatch" in w for w in warnings)


def test_non_numeric_commission_is_an_error(rate_data, trip_tokens):
    report = _report(rate_data, trip_tokens(comm="-"))
    warnings = validate_reports([report])

    assert len(warnings) == 1
    assert warnings[0].startswith("[ERROR]")
