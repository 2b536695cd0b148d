import pytest

from trip_extractor.models import DriverReport, MatchType, Transaction, summarize_reports


def make_txn(match_type=MatchType.EXACT, pickup="PENANG", drop="IPOH", wt=10.0, old_rate=140.0, new_rate=150.0,
             old_comm=1400.0):
    new_comm = wt * new_rate
    return Transaction(
        truck="WJK1234",
        date="01-03-2024",
        pickup=pickup,
        drop=drop,
        do_number="DO1",
        eff_wt=wt,
        original_eff_rt=old_rate,
        new_eff_rt=new_rate,
        original_comm=old_comm,
        new_comm=new_comm,
        diff=new_comm - old_comm,
        ot="N",
        match_type=match_type,
    )


def test_add_transaction_sums_and_counts():
    report = DriverReport("ALI")
    report.add_transaction(make_txn(MatchType.EXACT))
    report.add_transaction(make_txn(MatchType.FUZZY, new_rate=120.0))
    report.add_transaction(make_txn(MatchType.NONE, new_rate=140.0))

    assert report.total_original_comm == pytest.approx(4200.0)
    assert report.total_new_comm == pytest.approx(1500.0 + 1200.0 + 1400.0)
    assert report.total_diff == pytest.approx(-100.0)
    assert report.fuzzy_trips == 1
    assert report.mismatched_trips == 1


def test_transaction_is_immutable():
    txn = make_txn()
    with pytest.raises(AttributeError):
        txn.new_comm = 0


def test_summarize_reports_collects_sorted_unique_missing_routes():
    a = DriverReport("ALI")
    a.add_transaction(make_txn(MatchType.NONE, pickup="ZZZ", drop="IPOH", new_rate=140.0))
    a.add_transaction(make_txn(MatchType.EXACT))
    b = DriverReport("LIM")
    b.add_transaction(make_txn(MatchType.NONE, pickup="ZZZ", drop="IPOH", new_rate=140.0))
    b.add_transaction(make_txn(MatchType.NONE, pickup="AAA", drop="KULIM", new_rate=140.0))
    b.add_transaction(make_txn(MatchType.FUZZY))

    summary = summarize_reports([a, b])

    assert summary.total_drivers == 2
    assert summary.total_trips == 5
    assert summary.exact_trips == 1
    assert summary.fuzzy_trips == 1
    assert summary.mismatched_trips == 3
    assert summary.missing_routes == ["AAA → KULIM", "ZZZ → IPOH"]
    assert summary.total_original_comm == pytest.approx(7000.0)


def test_to_dict_is_plain_data():
    report = DriverReport("ALI")
    report.add_transaction(make_txn(MatchType.FUZZY))
    data = report.to_dict()

    assert data["driver_name"] == "ALI"
    assert data["transactions"][0]["match_type"] == "FUZZY"
    assert data["fuzzy_trips"] == 1
