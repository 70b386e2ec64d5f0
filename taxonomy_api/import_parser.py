"""Turn an uploaded category sheet into ``ImportRow`` records.

Sheets arrive as Excel workbooks (``.xlsx``, first worksheet) or as CSV with a
header line. Headers may use either the English or the Chinese column names.
"""

from __future__ import annotations

import csv
import io
import zipfile
from typing import Iterable, Sequence

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from taxonomy_api.errors import ValidationError
from taxonomy_api.models import ImportRow

NAME_HEADERS = ("name", "分类名称")
DESCRIPTION_HEADERS = ("description", "描述")
PARENT_HEADERS = ("parent", "parentName", "parent_name", "父分类名称")
ORDER_HEADERS = ("order", "排序")

XLSX_SUFFIX = ".xlsx"
ZIP_SIGNATURE = b"PK\x03\x04"


def _find_column(headers: list[str], aliases: tuple[str, ...]) -> int | None:
    for index, header in enumerate(headers):
        if header in aliases:
            return index
    return None


def _cell(row: Sequence[str], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip()


def _parse_order(value: str) -> int | None:
    if not value:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _build_rows(lines: list[Sequence[str]]) -> list[ImportRow]:
    if len(lines) < 2:
        raise ValidationError("Import file must contain a header row and at least one data row.")

    headers = [header.strip() for header in lines[0]]
    name_index = _find_column(headers, NAME_HEADERS)
    if name_index is None:
        raise ValidationError('Import file must contain a "name" column.')
    description_index = _find_column(headers, DESCRIPTION_HEADERS)
    parent_index = _find_column(headers, PARENT_HEADERS)
    order_index = _find_column(headers, ORDER_HEADERS)

    rows: list[ImportRow] = []
    for line in lines[1:]:
        name = _cell(line, name_index)
        if not name:
            continue
        rows.append(
            ImportRow(
                name=name,
                description=_cell(line, description_index) or None,
                parent_name=_cell(line, parent_index) or None,
                order=_parse_order(_cell(line, order_index)),
            )
        )
    return rows


def decode_upload(content: bytes) -> str:
    # utf-8-sig drops the BOM spreadsheet tools put in front of exported CSV.
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("Import file must be UTF-8 encoded CSV.") from exc


def parse_category_rows(text: str) -> list[ImportRow]:
    return _build_rows(list(csv.reader(io.StringIO(text))))


def parse_category_workbook(content: bytes) -> list[ImportRow]:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise ValidationError("Import file is not a readable .xlsx workbook.") from exc

    try:
        sheet = workbook.worksheets[0] if workbook.worksheets else None
        if sheet is None:
            raise ValidationError("Import workbook has no worksheets.")
        lines = [_text_row(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()
    return _build_rows(lines)


def _text_row(values: Iterable[object]) -> list[str]:
    return [_cell_text(value) for value in values]


def is_workbook(filename: str | None, content: bytes) -> bool:
    if filename and filename.lower().endswith(XLSX_SUFFIX):
        return True
    return content.startswith(ZIP_SIGNATURE)


def parse_upload(filename: str | None, content: bytes) -> list[ImportRow]:
    if is_workbook(filename, content):
        return parse_category_workbook(content)
    return parse_category_rows(decode_upload(content))
