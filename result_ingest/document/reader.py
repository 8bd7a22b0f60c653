from __future__ import annotations

import codecs
import csv
import io
from collections.abc import Sequence
from enum import Enum
from typing import Any

import pandas as pd
import pdfplumber

from ..errors import DocumentUnreadable

"""Cell matrix reader: document bytes -> rows of loosely typed cells.

Table recovery itself is delegated to pdfplumber (PDF result sheets) and
pandas (xlsx workbooks). CSV exports go through the csv module because
their title lines are narrower than the table. This module only picks the
reader from the buffer's magic bytes and flattens every table into one row
list in document order. No header handling happens here; the header locator decides
where the result table begins.
"""

__all__ = [
    "RawRow",
    "DocumentKind",
    "detect_kind",
    "read_document_rows",
]

RawRow = Sequence[Any]

_PDF_MAGIC = b"%PDF"
_ZIP_MAGIC = b"PK\x03\x04"
_OLE_MAGIC = b"\xd0\xcf\x11\xe0"
_SNIFF_BYTES = 4096


class DocumentKind(Enum):
    PDF = "pdf"
    XLSX = "xlsx"
    CSV = "csv"


def detect_kind(data: bytes) -> DocumentKind:
    """Guess the document type from its leading bytes.

    Raises:
        DocumentUnreadable: empty buffer, legacy .xls workbook or binary garbage
    """
    if not data:
        raise DocumentUnreadable("document is empty")
    # 先頭の BOM と空白を許容
    head = data[:1024]
    if head.startswith(codecs.BOM_UTF8):
        head = head[len(codecs.BOM_UTF8):]
    head = head.lstrip()
    if head.startswith(_PDF_MAGIC):
        return DocumentKind.PDF
    if data.startswith(_ZIP_MAGIC):
        return DocumentKind.XLSX
    if data.startswith(_OLE_MAGIC):
        raise DocumentUnreadable("legacy .xls workbooks are not supported; save as .xlsx")
    sample = data[:_SNIFF_BYTES]
    # 切り出し末尾で分断された文字はエラーにしない
    decoder = codecs.getincrementaldecoder("utf-8-sig")()
    try:
        decoder.decode(sample, final=len(sample) == len(data))
    except UnicodeDecodeError as e:
        raise DocumentUnreadable(f"unrecognised document format: {e}") from e
    return DocumentKind.CSV


def _read_pdf_rows(data: bytes) -> list[list[Any]]:
    rows: list[list[Any]] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            for table in page.extract_tables() or []:
                rows.extend(list(r) for r in table if r is not None)
    return rows


def _frame_rows(df: pd.DataFrame) -> list[list[Any]]:
    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        values = [None if pd.isna(v) else v for v in raw]
        if all(v is None for v in values):
            continue
        rows.append(values)
    return rows


def _read_xlsx_rows(data: bytes) -> list[list[Any]]:
    # ヘッダなしで生読み; 全シートをブック順に連結
    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None, engine="openpyxl")
    rows: list[list[Any]] = []
    for df in sheets.values():
        rows.extend(_frame_rows(df))
    return rows


def _read_csv_rows(data: bytes) -> list[list[Any]]:
    # 行ごとに列数が違う (タイトル行など) ため csv で読む
    rows: list[list[Any]] = []
    for raw in csv.reader(io.StringIO(data.decode("utf-8-sig"))):
        values = [v if v.strip() else None for v in raw]
        if all(v is None for v in values):
            continue
        rows.append(values)
    return rows


_READERS = {
    DocumentKind.PDF: _read_pdf_rows,
    DocumentKind.XLSX: _read_xlsx_rows,
    DocumentKind.CSV: _read_csv_rows,
}


def read_document_rows(data: bytes) -> list[RawRow]:
    """Turn a document buffer into rows of cells.

    Raises:
        DocumentUnreadable: the buffer cannot be parsed into rows
    """
    kind = detect_kind(data)
    try:
        rows = _READERS[kind](data)
    except DocumentUnreadable:
        raise
    except Exception as e:
        raise DocumentUnreadable(f"failed to read {kind.value} document: {e}") from e
    return rows
