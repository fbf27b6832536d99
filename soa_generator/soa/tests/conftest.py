import io
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
import xlrd
from openpyxl import Workbook
from xlrd.sheet import Cell

from soa.records import StatementConfig
from soa.tests.factories import OLE2_MAGIC


@pytest.fixture(autouse=True)
def _isolate_media_root(tmp_path, settings):
    """Keep generated PDFs out of the project's media directory."""
    settings.MEDIA_ROOT = str(tmp_path / "media")


@pytest.fixture
def make_xlsx():
    def _make(rows):
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(list(row))
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()
    return _make


@pytest.fixture
def january_config():
    return StatementConfig(
        operating_unit="FMCG",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
        opening_balance=Decimal("1000.00"),
    )


XLS_EPOCH = datetime(1899, 12, 30)


def _xls_cell(value):
    if value is None:
        return Cell(xlrd.XL_CELL_EMPTY, "")
    if isinstance(value, bool):
        return Cell(xlrd.XL_CELL_BOOLEAN, int(value))
    if isinstance(value, datetime):
        return Cell(xlrd.XL_CELL_DATE, (value - XLS_EPOCH).total_seconds() / 86400)
    if isinstance(value, (int, float)):
        return Cell(xlrd.XL_CELL_NUMBER, float(value))
    return Cell(xlrd.XL_CELL_TEXT, value)


@pytest.fixture
def make_xls(monkeypatch):
    """Excel 97-2003 upload bytes whose first sheet holds ``rows``.

    No BIFF writer is installed, so ``xlrd.open_workbook`` hands back a book
    made of real xlrd cells for exactly these bytes.
    """
    def _make(rows):
        width = max(len(r) for r in rows)
        cells = [[_xls_cell(v) for v in list(r) + [None] * (width - len(r))] for r in rows]
        sheet = SimpleNamespace(nrows=len(cells), row=lambda rx: cells[rx])
        book = SimpleNamespace(
            nsheets=1,
            datemode=0,
            sheet_by_index=lambda index: sheet,
            release_resources=lambda: None,
        )
        data = OLE2_MAGIC + b"\x00" * 504

        def open_workbook(filename=None, file_contents=None, **kwargs):
            assert file_contents == data
            return book

        monkeypatch.setattr(xlrd, "open_workbook", open_workbook)
        return data
    return _make
