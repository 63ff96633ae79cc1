"""
Spreadsheet reading and writing with pandas.

Uploads are read with every cell as an object so dates, Excel serial
numbers and amounts reach the validators untouched. Workbooks are written
with the openpyxl engine.
"""

import io
import os
import zipfile
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

import pandas as pd

from .exceptions import UnsupportedFileError

MAX_UPLOAD_SIZE = 10 * 1024 * 1024
ALLOWED_EXTENSIONS = ('.csv', '.xlsx')

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
CSV_CONTENT_TYPE = 'text/csv'


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def read_upload(upload) -> List[Dict]:
    """
    Rows of the first sheet of a CSV or XLSX upload, as dicts keyed by header.

    Blank cells become ''.

    Raises:
        UnsupportedFileError: Wrong extension, too large or unreadable
    """
    name = getattr(upload, 'name', '') or ''
    extension = os.path.splitext(name)[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileError('Invalid file type. Please upload Excel (.xlsx) or CSV files only.')

    if upload.size > MAX_UPLOAD_SIZE:
        raise UnsupportedFileError('File size exceeds 10MB limit')

    content = upload.read()
    try:
        if extension == '.csv':
            frame = pd.read_csv(io.BytesIO(content), dtype=object, keep_default_na=False, encoding='utf-8-sig')
        else:
            frame = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=object, engine='openpyxl')
    except (ValueError, UnicodeDecodeError, zipfile.BadZipFile, pd.errors.ParserError) as e:
        raise UnsupportedFileError(f"Unable to read {name}: {e}") from e

    frame.columns = [str(column).strip() for column in frame.columns]
    rows = frame.to_dict(orient='records')
    return [
        {key: '' if is_blank(value) else value for key, value in row.items()}
        for row in rows
    ]


def cell(value):
    """Spreadsheet-safe value: numbers as float, ids as text."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    return value


def _autosize(worksheet, frame: pd.DataFrame) -> None:
    for index, column in enumerate(frame.columns, start=1):
        values = [str(column)] + [str(v) for v in frame[column].tolist()]
        width = min(max(len(v) for v in values) + 2, 50)
        letter = worksheet.cell(row=1, column=index).column_letter
        worksheet.column_dimensions[letter].width = width


def write_workbook(sheets: Dict[str, pd.DataFrame]) -> bytes:
    """XLSX bytes with one sheet per entry, columns sized to their content."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet_name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=sheet_name[:31], index=False)
            _autosize(writer.sheets[sheet_name[:31]], frame)
    return buffer.getvalue()


def write_csv(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode('utf-8')
