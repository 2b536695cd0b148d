"""
命令行接口模块（调试入口）

职责：
- 解析命令行参数
- 按阶段输出中间结果：碎片 → 版面行 → 司机报表
- 数据流：reader → preprocessor → extractor → validator → writer
"""

import sys
import logging
import argparse

from trip_extractor.reader import read_pdf_elements, read_pdf_fragments, PdfReadError
from trip_extractor.preprocessor import group_document_rows, rows_to_dicts
from trip_extractor.extractor import parse_driver_pdf
from trip_extractor.validator import validate_reports
from trip_extractor.writer import write_auto, print_auto

logger = logging.getLogger("pdf_text")
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_pages_arg(pages_str: str) -> list[int] | None:
    """
    解析页码参数字符串。

    Args:
        pages_str: 页码字符串，如 "1,3,5" 或 "1-3"

    Returns:
        页码列表（1-based），或 None 表示全部
    """
    if not pages_str:
        return None

    out = []
    for part in pages_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            a, b = part.split("-", 1)
            out.extend(range(int(a), int(b) + 1))
        else:
            out.append(int(part))

    return sorted(set(out))


def setup_parser() -> argparse.ArgumentParser:
    """设置命令行参数解析器"""
    parser = argparse.ArgumentParser(
        description="Driver Incentive Audit - PDF trip table extraction (debug stages)",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    def add_common_args(p):
        """添加通用参数"""
        p.add_argument("pdf", help="PDF file path")
        p.add_argument(
            "--out",
            default="",
            help="Output file path (.json/.jsonl/.csv), stdout if not specified"
        )
        p.add_argument(
            "--pages",
            default="",
            help="Pages to read, e.g. '1,3-4' (default: all)"
        )

    fragments_parser = subparsers.add_parser(
        "fragments",
        help="Dump raw positioned text fragments"
    )
    add_common_args(fragments_parser)

    rows_parser = subparsers.add_parser(
        "rows",
        help="Dump reconstructed table rows"
    )
    add_common_args(rows_parser)

    reports_parser = subparsers.add_parser(
        "reports",
        help="Parse driver reports against a rate CSV"
    )
    add_common_args(reports_parser)
    reports_parser.add_argument(
        "--csv",
        required=True,
        help="Rate CSV file path (PickLoc, DropLoc, Driver Rev_Rate)"
    )

    return parser


def run_fragments(args) -> None:
    """执行 fragments 子命令"""
    rows = read_pdf_elements(args.pdf, pages=parse_pages_arg(args.pages))
    if args.out:
        write_auto(rows, args.out)
        print(f"Wrote {len(rows)} fragment(s) -> {args.out}")
    else:
        print_auto(rows, mode="jsonl")


def run_rows(args) -> None:
    """执行 rows 子命令"""
    fragments = read_pdf_fragments(args.pdf, pages=parse_pages_arg(args.pages))
    rows = rows_to_dicts(group_document_rows(fragments.values()))
    if args.out:
        write_auto(rows, args.out)
        print(f"Wrote {len(rows)} row(s) -> {args.out}")
    else:
        print_auto(rows, mode="jsonl")


def run_reports(args) -> None:
    """执行 reports 子命令"""
    from rate_table import load_rate_table
    from rate_resolver import make_resolver

    rate_data = load_rate_table(args.csv)
    reports = parse_driver_pdf(args.pdf, make_resolver(rate_data), pages=parse_pages_arg(args.pages))

    for warning in validate_reports(reports):
        logger.warning(warning)

    if args.out:
        write_auto(reports, args.out)
        total = sum(len(r.transactions) for r in reports)
        print(f"Extracted {len(reports)} driver(s), {total} trip(s) -> {args.out}")
    else:
        print_auto(reports, mode="json")


def main(argv=None):
    """CLI 主入口"""
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=DEFAULT_LOG_FORMAT
    )

    commands = {
        "fragments": run_fragments,
        "rows": run_rows,
        "reports": run_reports,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except (FileNotFoundError, PdfReadError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
