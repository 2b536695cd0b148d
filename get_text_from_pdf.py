#!/usr/bin/env python3
"""
司机佣金审计工具 - 调试 CLI 入口

命令行用法：
    python get_text_from_pdf.py fragments trips.pdf --out fragments.csv
    python get_text_from_pdf.py rows trips.pdf --pages 1-2
    python get_text_from_pdf.py reports trips.pdf --csv rates.csv --out reports.json

依赖：
    pip install pymupdf pandas rapidfuzz
"""

from trip_extractor.cli import main

if __name__ == "__main__":
    main()
