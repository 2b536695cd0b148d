import json
import logging

import pytest

import audit
from trip_extractor.models import MatchType
from trip_extractor.reader import PdfReadError

HEADER = ["Truck", "Date", "Pickup", "Drop", "DO#", "Eff Wt", "Eff Rt", "OT Rt", "Toll", "Comm", "Misc", "OT"]
RATES_CSV = (
    "PickLoc,DropLoc,Driver Rev_Rate\n"
    "PENANG,IPOH,150.00\n"
    "NIBONG TEBAL,IPOH,120\n"
    "BUTTERWORTH,KULIM,80\n"
)


@pytest.fixture(autouse=True)
def restore_root_logging():
    saved = logging.root.handlers[:]
    level = logging.root.level
    yield
    for handler in logging.root.handlers[:]:
        if handler not in saved:
            handler.close()
            logging.root.removeHandler(handler)
    for handler in saved:
        if handler not in logging.root.handlers:
            logging.root.addHandler(handler)
    logging.root.setLevel(level)


@pytest.fixture
def rates_csv(tmp_path):
    path = tmp_path / "rates.csv"
    path.write_text(RATES_CSV, encoding="utf-8")
    return str(path)


@pytest.fixture
def fake_pdf(monkeypatch):
    """Feed the extractor synthetic fragments instead of reading a real PDF."""
    def _install(fragments):
        monkeypatch.setattr(
            "trip_extractor.extractor.read_pdf_fragments",
            lambda pdf_path, pages=None: fragments,
        )
        return "trips.pdf"
    return _install


@pytest.fixture
def two_driver_pages(row_fragments, trip_tokens):
    return {
        1: (
            row_fragments(800, ["Driver Name : ALI"])
            + row_fragments(780, HEADER)
            + row_fragments(760, trip_tokens())
            + row_fragments(740, trip_tokens(pickup="ZZZZZZ", do="DO2"))
            + row_fragments(60, ["Page 1 of 2"])
        ),
        2: (
            row_fragments(800, trip_tokens(pickup="BUTTERWORTH", drop="KULIM", do="DO3"))
            + row_fragments(780, ["Driver Name : LIM"])
            + row_fragments(760, trip_tokens(pickup="VANCE-NIBONG", wt="4", comm="400", do="DO4"))
        ),
    }


def _run_dir(root):
    dirs = list(root.iterdir())
    assert len(dirs) == 1
    return dirs[0]


def test_run_audit_segments_and_resolves(fake_pdf, rates_csv, two_driver_pages):
    result = audit.run_audit(fake_pdf(two_driver_pages), rates_csv)

    assert [r.driver_name for r in result.reports] == ["ALI", "LIM"]
    ali, lim = result.reports
    assert [t.match_type for t in ali.transactions] == [MatchType.EXACT, MatchType.NONE, MatchType.EXACT]
    assert [t.match_type for t in lim.transactions] == [MatchType.FUZZY]

    assert result.summary.total_trips == 4
    assert result.summary.exact_trips == 2
    assert result.summary.missing_routes == ["ZZZZZZ → IPOH"]
    assert result.warnings == []


def test_main_writes_outputs_and_fails_on_unmatched(tmp_path, fake_pdf, rates_csv, two_driver_pages, capsys):
    out_root = tmp_path / "out"
    with pytest.raises(SystemExit) as exc:
        audit.main([fake_pdf(two_driver_pages), rates_csv, "--output-root", str(out_root)])

    assert exc.value.code == 1
    run_dir = _run_dir(out_root)
    assert run_dir.name.endswith("_trips")
    assert (run_dir / audit.REPORT_PDF_NAME).exists()
    assert (run_dir / audit.MISMATCH_CSV_NAME).exists()
    assert (run_dir / "audit.log").exists()
    assert not (run_dir / "reports.json").exists()

    out = capsys.readouterr().out
    assert "Unmatched (original rate kept): 1" in out
    assert "ZZZZZZ → IPOH" in out


def test_main_succeeds_when_everything_resolves(tmp_path, fake_pdf, rates_csv, row_fragments, trip_tokens):
    pages = {1: row_fragments(800, ["Driver Name : ALI"]) + row_fragments(760, trip_tokens())}
    out_root = tmp_path / "out"

    with pytest.raises(SystemExit) as exc:
        audit.main([fake_pdf(pages), rates_csv, "--output-root", str(out_root), "--debug"])

    assert exc.value.code == 0
    run_dir = _run_dir(out_root)
    reports = json.loads((run_dir / "reports.json").read_text(encoding="utf-8"))
    assert reports[0]["driver_name"] == "ALI"
    assert reports[0]["transactions"][0]["match_type"] == "EXACT"
    assert len((run_dir / "rows.jsonl").read_text(encoding="utf-8").splitlines()) == 1


def test_no_trips_is_a_failure(tmp_path, fake_pdf, rates_csv, row_fragments, capsys):
    pages = {1: row_fragments(800, ["Monthly Trip Statement"])}
    with pytest.raises(SystemExit) as exc:
        audit.main([fake_pdf(pages), rates_csv, "--output-root", str(tmp_path / "out")])

    assert exc.value.code == 1
    assert "Total trips: 0" in capsys.readouterr().out
    assert not (_run_dir(tmp_path / "out") / audit.REPORT_PDF_NAME).exists()


def test_bad_rate_csv_reports_csv_error(tmp_path, fake_pdf, two_driver_pages, capsys):
    csv_path = tmp_path / "rates.csv"
    csv_path.write_text("PickLoc,DropLoc\nPENANG,IPOH\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        audit.main([fake_pdf(two_driver_pages), str(csv_path), "--output-root", str(tmp_path / "out")])

    assert exc.value.code == 1
    assert audit.CSV_ERROR_MESSAGE in capsys.readouterr().out


def test_unreadable_pdf_reports_pdf_error(tmp_path, monkeypatch, rates_csv, capsys):
    def _raise(pdf_path, pages=None):
        raise PdfReadError("No text found in scan.pdf")

    monkeypatch.setattr("trip_extractor.extractor.read_pdf_fragments", _raise)

    with pytest.raises(SystemExit) as exc:
        audit.main(["scan.pdf", rates_csv, "--output-root", str(tmp_path / "out")])

    assert exc.value.code == 1
    assert audit.PDF_ERROR_MESSAGE in capsys.readouterr().out
