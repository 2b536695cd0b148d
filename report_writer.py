"""
报表输出模块
- 修订后的司机佣金 PDF（每个司机一张表 + 合计行）
- 未匹配交易 CSV（供人工补充费率表）
"""
import logging
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak

from trip_extractor.models import DriverReport, MatchType
from trip_extractor.writer import write_csv

logger = logging.getLogger(__name__)

REPORT_TITLE = "Driver Incentive Report (Revised)"
TABLE_HEADER = ['Truck', 'Date', 'Pickup', 'Drop', 'DO#', 'Wt', 'Old Rt', 'New Rt', 'Old Comm', 'New Comm', 'Diff']
MISMATCH_FIELDS = ['Driver Name', 'Truck', 'Date', 'Pickup', 'Drop', 'DO#', 'Eff Wt', 'Eff Rt', 'Comm']

NEW_RATE_COL = 7
DIFF_COL = 10

HEADER_FILL = colors.Color(41 / 255, 128 / 255, 185 / 255)
NEW_RATE_COLOR = colors.Color(0, 100 / 255, 0)
FUZZY_FILL = colors.Color(1.0, 0.95, 0.80)
NONE_FILL = colors.Color(1.0, 0.88, 0.88)
TOTAL_FILL = colors.Color(0.93, 0.93, 0.93)


def build_driver_table_data(report: DriverReport) -> List[List[str]]:
    """
    生成单个司机的表格数据（含表头和合计行）

    模糊匹配的行在原地点下方用括号标出匹配到的标准地点
    """
    data = [TABLE_HEADER]
    for t in report.transactions:
        data.append([
            t.truck,
            t.date,
            t.pickup + (f"\n({t.matched_pickup})" if t.matched_pickup else ''),
            t.drop + (f"\n({t.matched_drop})" if t.matched_drop else ''),
            t.do_number,
            f"{t.eff_wt:.2f}",
            f"{t.original_eff_rt:.2f}",
            f"{t.new_eff_rt:.2f}",
            f"{t.original_comm:.2f}",
            f"{t.new_comm:.2f}",
            f"{t.diff:.2f}",
        ])

    data.append([
        '', '', '', '', 'TOTAL', '', '', '',
        f"{report.total_original_comm:.2f}",
        f"{report.total_new_comm:.2f}",
        f"{report.total_diff:.2f}",
    ])
    return data


def build_driver_table_style(report: DriverReport) -> TableStyle:
    last = len(report.transactions) + 1
    style = [
        ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ('FONTSIZE', (0, 0), (-1, -1), 7),
        ('TOPPADDING', (0, 0), (-1, -1), 1),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('ALIGN', (5, 1), (-1, -1), 'RIGHT'),
        # 表头
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_FILL),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        # 新费率 / 差额列
        ('FONTNAME', (NEW_RATE_COL, 1), (NEW_RATE_COL, -1), 'Helvetica-Bold'),
        ('TEXTCOLOR', (NEW_RATE_COL, 1), (NEW_RATE_COL, -1), NEW_RATE_COLOR),
        ('FONTNAME', (DIFF_COL, 1), (DIFF_COL, -1), 'Helvetica-Bold'),
        # 合计行
        ('BACKGROUND', (0, last), (-1, last), TOTAL_FILL),
        ('FONTNAME', (0, last), (-1, last), 'Helvetica-Bold'),
    ]

    for row_idx, t in enumerate(report.transactions, start=1):
        if t.match_type == MatchType.FUZZY:
            style.append(('BACKGROUND', (0, row_idx), (-1, row_idx), FUZZY_FILL))
        elif t.match_type == MatchType.NONE:
            style.append(('BACKGROUND', (0, row_idx), (-1, row_idx), NONE_FILL))

    return TableStyle(style)


def write_revised_report_pdf(reports: List[DriverReport], output_path: str) -> bool:
    """
    输出修订后的司机佣金 PDF

    参数:
        reports: 司机报表列表
        output_path: 输出 PDF 路径

    返回:
        是否写出文件（没有报表时不写）
    """
    if not reports:
        logger.warning("No driver reports to render")
        return False

    doc = SimpleDocTemplate(
        output_path,
        pagesize=landscape(A4),
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=10 * mm,
        bottomMargin=10 * mm,
        title=REPORT_TITLE,
    )
    styles = getSampleStyleSheet()
    elements = []

    for index, report in enumerate(reports):
        if index > 0:
            elements.append(PageBreak())

        elements.append(Paragraph(REPORT_TITLE, styles['Heading2']))
        elements.append(Paragraph(f"Driver Name: {escape(report.driver_name)}", styles['Normal']))
        if report.fuzzy_trips or report.mismatched_trips:
            elements.append(Paragraph(
                f"Fuzzy-matched trips: {report.fuzzy_trips} &nbsp;&nbsp; "
                f"Unmatched trips (original rate kept): {report.mismatched_trips}",
                styles['Normal']
            ))
        elements.append(Spacer(1, 4 * mm))

        table = Table(build_driver_table_data(report), repeatRows=1)
        table.setStyle(build_driver_table_style(report))
        elements.append(table)

    doc.build(elements)
    logger.info(f"Revised report saved to: {output_path}")
    return True


def mismatch_rows(reports: List[DriverReport]) -> List[dict]:
    """未匹配（NONE）的交易，一笔一行"""
    rows = []
    for report in reports:
        for t in report.transactions:
            if t.match_type != MatchType.NONE:
                continue
            rows.append({
                'Driver Name': report.driver_name,
                'Truck': t.truck,
                'Date': t.date,
                'Pickup': t.pickup,
                'Drop': t.drop,
                'DO#': t.do_number,
                'Eff Wt': f"{t.eff_wt:.2f}",
                'Eff Rt': f"{t.original_eff_rt:.2f}",
                'Comm': f"{t.original_comm:.2f}",
            })
    return rows


def write_mismatch_csv(reports: List[DriverReport], output_path: str) -> int:
    """
    输出未匹配交易 CSV（没有未匹配交易时只写表头）

    返回:
        写出的行数
    """
    rows = mismatch_rows(reports)
    write_csv(rows, output_path, fieldnames=MISMATCH_FIELDS)
    return len(rows)
