"""
PDF 文本读取模块

职责：
- 打开 PDF 文件
- 逐页提取带坐标的文本碎片（span 级别）
- 返回原始数据，不做任何业务逻辑处理
"""

import os
import logging
from typing import List, Dict, Any, Optional

import fitz  # PyMuPDF

from .models import TextFragment

logger = logging.getLogger("pdf_text")


class PdfReadError(Exception):
    """PDF 无法打开或不含可提取文本（文档级错误）"""
    pass


def ensure_file_exists(pdf_path: str) -> None:
    """
    检查文件是否存在。

    Args:
        pdf_path: PDF 文件路径

    Raises:
        FileNotFoundError: 文件不存在
    """
    if not os.path.isfile(pdf_path):
        logger.error("File not found: %s", pdf_path)
        raise FileNotFoundError(pdf_path)


def open_document(pdf_path: str):
    """
    打开 PDF 文档。

    Args:
        pdf_path: PDF 文件路径

    Returns:
        PyMuPDF Document 对象（调用方负责 close）

    Raises:
        FileNotFoundError: 文件不存在
        PdfReadError: 文件损坏或加密
    """
    ensure_file_exists(pdf_path)

    try:
        doc = fitz.open(pdf_path)
    except Exception as e:
        logger.exception("Failed to open PDF")
        raise PdfReadError(f"open_failed: {e!r}") from e

    # 空密码可以打开的加密文档照常处理
    if doc.needs_pass and not doc.authenticate(""):
        doc.close()
        raise PdfReadError("encrypted_pdf_not_supported")

    return doc


def extract_fragments_from_page(page) -> List[TextFragment]:
    """
    从页面提取文本碎片。

    使用 page.get_text('dict') 遍历 blocks→lines→spans，每个 span 为一个碎片。
    坐标取 span 的基线原点，并把 y 翻转为自下而上（页面顶部 y 最大）。

    Args:
        page: PyMuPDF 页面对象

    Returns:
        [TextFragment(x, y, text), ...]，顺序不保证
    """
    height = float(page.rect.height)
    info = page.get_text("dict")
    out = []
    for blk in info.get("blocks", []):
        if blk.get("type", 0) != 0:
            continue
        for ln in blk.get("lines", []):
            for sp in ln.get("spans", []):
                txt = sp.get("text") or ""
                if not txt:
                    continue
                if "origin" in sp:
                    ox, oy = sp["origin"]
                else:
                    bx0, by0, bx1, by1 = sp.get("bbox") or ln.get("bbox") or (0, 0, 0, 0)
                    ox, oy = bx0, by1
                out.append(TextFragment(round(float(ox), 2), round(height - float(oy), 2), txt))
    return out


def read_pdf_fragments(
    pdf_path: str,
    pages: Optional[List[int]] = None
) -> Dict[int, List[TextFragment]]:
    """
    从 PDF 逐页读取文本碎片。

    整个文档作为一个整体：任何一页失败都不会返回部分结果。

    Args:
        pdf_path: PDF 文件路径
        pages: 指定页码（1-based），None 表示全部

    Returns:
        {页码: [TextFragment, ...]}，按页码顺序插入

    Raises:
        FileNotFoundError: 文件不存在
        PdfReadError: 无法打开，或整个文档没有可提取文本（扫描件）
    """
    doc = open_document(pdf_path)
    result: Dict[int, List[TextFragment]] = {}

    try:
        for pno in range(doc.page_count):
            page_num = pno + 1
            if pages and page_num not in pages:
                continue

            page = doc.load_page(pno)
            frags = extract_fragments_from_page(page)
            logger.debug("Page %d extracted, %d fragments", page_num, len(frags))
            result[page_num] = frags
    finally:
        doc.close()

    if not any(f.text.strip() for frags in result.values() for f in frags):
        logger.error("No extractable text in PDF: %s", pdf_path)
        raise PdfReadError(
            f"No text found in {os.path.basename(pdf_path)}. "
            "Ensure it is a text-based PDF, not a scanned image."
        )

    return result


def read_pdf_elements(
    pdf_path: str,
    pages: Optional[List[int]] = None
) -> List[Dict[str, Any]]:
    """
    以扁平字典列表形式读取碎片（用于 debug 输出）。

    Args:
        pdf_path: PDF 文件路径
        pages: 指定页码（1-based），None 表示全部

    Returns:
        [{"page": int, "index": int, "x": float, "y": float, "text": str}, ...]
    """
    rows = []
    for page_num, frags in read_pdf_fragments(pdf_path, pages=pages).items():
        for idx, frag in enumerate(frags, start=1):
            rows.append({
                "page": page_num,
                "index": idx,
                "x": frag.x,
                "y": frag.y,
                "text": frag.text
            })
    return rows
