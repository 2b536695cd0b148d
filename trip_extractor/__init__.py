"""
司机行程 PDF 表格提取和校验工具

模块架构（按数据流）：
    reader.py       → PDF 文本碎片读取（PyMuPDF）
    preprocessor.py → 版面重建（碎片 → 行 → 单元格）
    extractor.py    → 司机分段与交易行抽取
    models.py       → 数据结构与司机报表累加
    validator.py    → 报表不变量校验
    writer.py       → 输出模块（JSON/CSV/JSONL）
    cli.py          → 命令行接口（调试入口）

公共 API：
    read_pdf_fragments  - 逐页读取带坐标的文本碎片
    group_rows          - 单页版面重建
    segment_drivers     - 按文档顺序分段为司机报表
    parse_driver_pdf    - PDF → 司机报表（一步完成）
    summarize_reports   - 全部报表汇总
    validate_reports    - 不变量校验
    write_auto          - 按扩展名输出
"""

__version__ = "1.0.0"

# === Models ===
from .models import (
    MatchType,
    TextFragment,
    LayoutRow,
    TripRow,
    Transaction,
    DriverReport,
    AuditSummary,
    summarize_reports,
)

# === Reader 模块 ===
from .reader import (
    PdfReadError,
    read_pdf_fragments,
    read_pdf_elements,
    ensure_file_exists,
)

# === Preprocessor 模块 ===
from .preprocessor import (
    group_rows,
    group_document_rows,
)

# === Extractor 模块 ===
from .extractor import (
    is_transaction_row,
    parse_trip_row,
    segment_drivers,
    parse_driver_pdf,
)

# === Validator 模块 ===
from .validator import (
    validate_reports,
)

# === Writer 模块 ===
from .writer import (
    write_json,
    write_jsonl,
    write_csv,
    write_auto,
)

__all__ = [
    # 版本
    "__version__",

    # Models
    "MatchType",
    "TextFragment",
    "LayoutRow",
    "TripRow",
    "Transaction",
    "DriverReport",
    "AuditSummary",
    "summarize_reports",

    # Reader
    "PdfReadError",
    "read_pdf_fragments",
    "read_pdf_elements",
    "ensure_file_exists",

    # Preprocessor
    "group_rows",
    "group_document_rows",

    # Extractor
    "is_transaction_row",
    "parse_trip_row",
    "segment_drivers",
    "parse_driver_pdf",

    # Validator
    "validate_reports",

    # Writer
    "write_json",
    "write_jsonl",
    "write_csv",
    "write_auto",
]
