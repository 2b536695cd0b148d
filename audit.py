"""
司机佣金审计主程序
整合费率表读取、PDF 提取、费率匹配和报表输出
"""
import os
import sys
import logging
import argparse
from pathlib import Path
from datetime import datetime
from typing import List, NamedTuple

from rate_table import load_rate_table, DEFAULT_PICKUP_COL, DEFAULT_DROP_COL, DEFAULT_RATE_COL
from rate_resolver import make_resolver
from report_writer import write_revised_report_pdf, write_mismatch_csv
from trip_extractor.extractor import parse_driver_pdf
from trip_extractor.models import AuditSummary, DriverReport, summarize_reports
from trip_extractor.reader import PdfReadError
from trip_extractor.validator import validate_reports
from trip_extractor.writer import write_auto

logger = logging.getLogger(__name__)

CSV_ERROR_MESSAGE = "Failed to parse CSV file. Please check the format."
PDF_ERROR_MESSAGE = "Failed to parse PDF file. Ensure it is a text-based PDF."

REPORT_PDF_NAME = "revised_report.pdf"
MISMATCH_CSV_NAME = "mismatches.csv"


class AuditResult(NamedTuple):
    reports: List[DriverReport]
    summary: AuditSummary
    warnings: List[str]


def run_audit(
    pdf_path: str,
    csv_path: str,
    pickup_col: str = DEFAULT_PICKUP_COL,
    drop_col: str = DEFAULT_DROP_COL,
    rate_col: str = DEFAULT_RATE_COL,
) -> AuditResult:
    """
    执行审计（不写任何文件）

    参数:
        pdf_path: 司机行程 PDF 路径
        csv_path: 费率表 CSV 路径
        pickup_col / drop_col / rate_col: CSV 列名

    返回:
        AuditResult(司机报表, 汇总, 校验警告)

    异常:
        ValueError: CSV 无法解析或缺少列
        PdfReadError: PDF 无法打开或没有可提取文本
        FileNotFoundError: 输入文件不存在
    """
    logger.info(f"Loading rate table: {csv_path}")
    rate_data = load_rate_table(csv_path, pickup_col=pickup_col, drop_col=drop_col, rate_col=rate_col)

    logger.info(f"Parsing driver PDF: {pdf_path}")
    reports = parse_driver_pdf(pdf_path, make_resolver(rate_data))

    warnings = validate_reports(reports)
    for warning in warnings:
        logger.warning(warning)

    return AuditResult(reports, summarize_reports(reports), warnings)


def write_outputs(result: AuditResult, output_dir: str, debug: bool = False) -> dict:
    """
    输出审计结果到目录

    返回:
        {"report": PDF 路径, "mismatches": CSV 路径, ...}
    """
    paths = {
        "report": os.path.join(output_dir, REPORT_PDF_NAME),
        "mismatches": os.path.join(output_dir, MISMATCH_CSV_NAME),
    }
    write_revised_report_pdf(result.reports, paths["report"])
    write_mismatch_csv(result.reports, paths["mismatches"])

    if debug:
        paths["reports_json"] = os.path.join(output_dir, "reports.json")
        paths["rows_jsonl"] = os.path.join(output_dir, "rows.jsonl")
        write_auto(result.reports, paths["reports_json"])
        write_auto(result.reports, paths["rows_jsonl"])

    return paths


def print_summary(summary: AuditSummary) -> None:
    """打印汇总到控制台"""
    print(f"\n{'='*70}")
    print(f"Audit Summary:")
    print(f"  Drivers: {summary.total_drivers}")
    print(f"  Total trips: {summary.total_trips}")
    print(f"  Exact matches: {summary.exact_trips}")
    print(f"  Fuzzy matches: {summary.fuzzy_trips}")
    print(f"  Unmatched (original rate kept): {summary.mismatched_trips}")
    print(f"  Original commission: {summary.total_original_comm:.2f}")
    print(f"  Revised commission:  {summary.total_new_comm:.2f}")
    print(f"  Difference:          {summary.total_new_comm - summary.total_original_comm:.2f}")
    print(f"{'='*70}")

    if summary.missing_routes:
        print(f"\nRoutes missing from the rate sheet ({len(summary.missing_routes)}):")
        for route in summary.missing_routes:
            try:
                print(f"  - {route}")
            except UnicodeEncodeError:
                # Windows终端无法打印箭头，使用ASCII安全版本
                print(f"  - {route.encode('ascii', 'replace').decode('ascii')}")


def setup_logging(output_dir: str, debug: bool) -> None:
    """配置日志：控制台 + output 目录下的 audit.log"""
    log_level = logging.DEBUG if debug else logging.INFO

    # 移除默认的 handler
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    log_format = logging.Formatter('%(asctime)s - %(levelname)s: %(message)s')

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(log_format)
    try:
        console_handler.stream.reconfigure(encoding='utf-8')
    except AttributeError:
        pass
    logging.root.addHandler(console_handler)

    log_file = os.path.join(output_dir, "audit.log")
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(log_format)
    logging.root.addHandler(file_handler)

    logging.root.setLevel(log_level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Driver Incentive Audit - Recompute trip commissions from a PDF against a rate CSV'
    )
    parser.add_argument('pdf', help='Driver trip PDF file path')
    parser.add_argument('csv', help='Rate CSV file path')
    parser.add_argument(
        '--pickup-col',
        default=DEFAULT_PICKUP_COL,
        help=f'Pickup column name in CSV (default: {DEFAULT_PICKUP_COL})'
    )
    parser.add_argument(
        '--drop-col',
        default=DEFAULT_DROP_COL,
        help=f'Drop column name in CSV (default: {DEFAULT_DROP_COL})'
    )
    parser.add_argument(
        '--rate-col',
        default=DEFAULT_RATE_COL,
        help=f'Rate column name in CSV (default: "{DEFAULT_RATE_COL}")'
    )
    parser.add_argument(
        '--output-root',
        default='output',
        help='Root directory for run outputs (default: output)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Debug mode: DEBUG logging and intermediate JSON files'
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    # 创建输出目录：output/时间戳_pdf文件名/
    pdf_name = Path(args.pdf).stem
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = os.path.join(args.output_root, f"{timestamp}_{pdf_name}")
    os.makedirs(output_dir, exist_ok=True)

    setup_logging(output_dir, args.debug)
    logger.info(f"Output directory: {output_dir}")

    try:
        result = run_audit(
            args.pdf,
            args.csv,
            pickup_col=args.pickup_col,
            drop_col=args.drop_col,
            rate_col=args.rate_col
        )
    except FileNotFoundError as e:
        logger.error(f"Input file not found: {e}")
        print(f"\nInput file not found: {e}")
        sys.exit(1)
    except PdfReadError as e:
        logger.error(f"PDF extraction failed: {e}", exc_info=args.debug)
        print(f"\n{PDF_ERROR_MESSAGE}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Rate CSV failed: {e}", exc_info=args.debug)
        print(f"\n{CSV_ERROR_MESSAGE}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Audit failed: {e}", exc_info=args.debug)
        sys.exit(1)

    # 没有提取到任何交易，认为提取失败
    if result.summary.total_trips == 0:
        logger.error("PDF extraction failed: No trips extracted")
        print(f"\n{'='*70}")
        print(f"Audit Summary:")
        print(f"  Total trips: 0")
        print(f"  Extraction failed: Unable to extract any trips from the PDF")
        print(f"{'='*70}")
        sys.exit(1)

    paths = write_outputs(result, output_dir, debug=args.debug)
    print_summary(result.summary)
    print(f"\nRevised report saved to: {paths['report']}")

    if result.summary.mismatched_trips:
        print(f"Unmatched trips saved to: {paths['mismatches']}")
        sys.exit(1)

    print("\n✓ All trips resolved against the rate sheet.")
    sys.exit(0)


if __name__ == "__main__":
    main()
