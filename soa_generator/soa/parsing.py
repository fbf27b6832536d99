import csv
import io
import logging
import time
import zipfile
from datetime import datetime

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from . import conf
from .exceptions import EmptyData, HeaderNotFound, MalformedFile, NoValidTransactions
from .records import IngestResult, IngestTag, Transaction
from .utils import (
    cell_text,
    normalize_amount,
    normalize_customer_name,
    normalize_date,
)

logger = logging.getLogger(__name__)

CUSTOMER_KEYWORDS = ("customer", "client", "party name", "bill to", "account name", "payer")

# Ranked header aliases per canonical field. Order matters: "Total" sits above
# "Amount" so a dedicated total column beats compound names like "Net Amount".
FIELD_ALIASES = {
    "customer": (
        "Customer Name", "Customer", "Client", "Account Name",
        "Party Name", "Bill To", "Payer", "Account Description",
        "Cust Name", "Customer #", "English Name", "Arabic Name",
    ),
    "amount": ("Total", "Original", "Amount", "Value", "Debit", "Credit", "Balance", "Net"),
    "type": ("Trx Type", "Type", "Transaction Type", "Doc Type", "Category", "Description"),
    "date": ("Trx Date", "Date", "Transaction Date", "Invoice Date", "Gl Date"),
    "number": (
        "Number", "Invoice No", "Ref", "Reference", "Doc Num",
        "Transaction Number", "Document Number",
    ),
    "region": ("Region", "Area", "Territory", "Zone"),
    "site_location": ("Site Location", "Location", "Site", "Branch", "Store"),
    "gl_agency": ("Gl Agency", "Agency", "GL", "Account"),
    "note": ("Note", "Description", "Memo", "Remarks", "Details", "Narration"),
}

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_TEXT_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


# Grid reading
def _read_xlsx_grid(data):
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise MalformedFile() from exc
    try:
        if not wb.worksheets:
            raise MalformedFile("Workbook contains no worksheets.")
        ws = wb.worksheets[0]
        return [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _xls_cell_value(cell, datemode):
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate_as_datetime(cell.value, datemode)
        except xlrd.xldate.XLDateError:
            # left as a serial number for normalize_date
            return cell.value
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    return cell.value


def _read_xls_grid(data):
    """Excel 97-2003 workbooks; numbers stay floats and dates become datetimes."""
    try:
        book = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise MalformedFile() from exc
    try:
        if not book.nsheets:
            raise MalformedFile("Workbook contains no worksheets.")
        sheet = book.sheet_by_index(0)
        return [
            [_xls_cell_value(cell, book.datemode) for cell in sheet.row(rx)]
            for rx in range(sheet.nrows)
        ]
    finally:
        book.release_resources()


def _read_csv_grid(data):
    if b"\x00" in data:
        raise MalformedFile()
    text = None
    for enc in _TEXT_ENCODINGS:
        try:
            text = data.decode(enc)
            break
        except UnicodeDecodeError:
            continue
    if text is None:
        raise MalformedFile()

    sample = text[:8192]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
    except csv.Error:
        dialect = csv.excel
    try:
        return [row for row in csv.reader(io.StringIO(text, newline=""), dialect)]
    except csv.Error as exc:
        raise MalformedFile() from exc


def read_grid(data):
    """Return the first sheet of an uploaded workbook or CSV as rows of cells.

    The container is recognised from its leading bytes, not the file name.
    """
    if not data:
        raise MalformedFile("File is empty")
    if data.startswith(_OLE2_MAGIC):
        return _read_xls_grid(data)
    if data.startswith(_ZIP_MAGIC):
        return _read_xlsx_grid(data)
    return _read_csv_grid(data)


# Header location
def _is_blank(cell):
    return cell is None or (isinstance(cell, str) and cell.strip() == "")


def locate_header_row(grid, limit=None):
    """Index of the first row, within ``limit`` rows, naming a customer column."""
    limit = limit or conf.get("SOA_HEADER_SCAN_LIMIT")
    for i, row in enumerate(grid[:limit]):
        for cell in row or ():
            if cell is None or cell == "":
                continue
            text = str(cell).lower()
            if any(k in text for k in CUSTOMER_KEYWORDS):
                return i
    raise HeaderNotFound()


def _header_keys(header_row):
    keys = []
    seen = {}
    empty_count = 0
    for cell in header_row:
        if _is_blank(cell):
            key = "__EMPTY" if empty_count == 0 else f"__EMPTY_{empty_count}"
            empty_count += 1
        else:
            key = cell_text(cell)
        if key in seen:
            seen[key] += 1
            key = f"{key}_{seen[key]}"
        else:
            seen[key] = 0
        keys.append(key)
    return keys


def extract_records(grid, header_index):
    """Turn rows below ``header_index`` into dicts keyed by the header cells.

    Blank rows are skipped; missing cells become ``""``.
    """
    header = list(grid[header_index] or [])
    width = max((len(r or ()) for r in grid[header_index:]), default=0)
    header += [None] * (width - len(header))
    keys = _header_keys(header)

    records = []
    for row in grid[header_index + 1:]:
        row = list(row or ())
        if all(_is_blank(c) for c in row):
            continue
        row += [""] * (width - len(row))
        records.append({k: ("" if v is None else v) for k, v in zip(keys, row)})

    if not records:
        raise EmptyData()
    return records


# Field resolution
def _present(value):
    return value is not None and value != ""


def resolve_field(record, candidates):
    """Return the raw value of the best matching column, or ``None``.

    Each tier scans every candidate before the next tier is tried: exact key,
    then case-insensitive key, then a key containing the candidate.
    """
    keys = list(record.keys())

    for name in candidates:
        if _present(record.get(name)):
            return record[name]

    for name in candidates:
        wanted = name.strip().lower()
        found = next((k for k in keys if k.strip().lower() == wanted), None)
        if found is not None and _present(record[found]):
            return record[found]

    for name in candidates:
        wanted = name.lower()
        found = next((k for k in keys if wanted in k.lower()), None)
        if found is not None and _present(record[found]):
            return record[found]

    return None


def _text_field(record, field):
    value = resolve_field(record, FIELD_ALIASES[field])
    return cell_text(value) if value is not None else ""


# Transaction building
def build_transactions(records, now=None):
    """Build canonical transactions from extracted records.

    Rows with no customer name, or whose name contains "total", are skipped.
    Returns the transactions and the distinct customer names in first-seen
    order.
    """
    now = now or time.time()
    stamp = int(now * 1000)
    ingest_date = datetime.fromtimestamp(now).date()

    transactions = []
    customers = {}
    for index, record in enumerate(records):
        raw_name = resolve_field(record, FIELD_ALIASES["customer"])
        if raw_name is None or str(raw_name).strip() == "":
            logger.debug("Skipping row %s: no customer name", index)
            continue
        customer_name = normalize_customer_name(raw_name)
        if "total" in customer_name.lower():
            logger.debug("Skipping row %s: summary row %r", index, customer_name)
            continue
        customers.setdefault(customer_name, None)

        raw_amount = resolve_field(record, FIELD_ALIASES["amount"])
        amount = normalize_amount(raw_amount)

        type_raw = resolve_field(record, FIELD_ALIASES["type"])
        type_text = cell_text(type_raw) if type_raw is not None else IngestTag.INV.value
        is_payment = "payment" in type_text.lower()
        if is_payment and amount > 0:
            amount = -amount
        # "(100)" notation wins over the type-based sign
        if isinstance(raw_amount, str) and "(" in raw_amount and ")" in raw_amount:
            amount = -abs(amount)

        transactions.append(Transaction(
            id=f"file-{index}-{stamp}",
            trx_date=normalize_date(resolve_field(record, FIELD_ALIASES["date"]), today=ingest_date),
            number=_text_field(record, "number"),
            region=_text_field(record, "region"),
            site_location=_text_field(record, "site_location"),
            trx_type=IngestTag.PAYMENT if is_payment else IngestTag.INV,
            original_amount=amount,
            customer_name=customer_name,
            gl_agency=_text_field(record, "gl_agency"),
            note=_text_field(record, "note"),
        ))

    return transactions, list(customers)


# Dispatcher
def parse_file_to_transactions(data, filename=None, now=None):
    grid = read_grid(data)
    if not grid:
        raise MalformedFile("File appears empty")
    header_index = locate_header_row(grid)
    records = extract_records(grid, header_index)
    transactions, customers = build_transactions(records, now=now)
    if not transactions:
        raise NoValidTransactions()
    logger.info(
        "Parsed %s: header at row %s, %d records, %d transactions, %d customers",
        filename or "upload", header_index, len(records), len(transactions), len(customers),
    )
    return IngestResult(transactions=tuple(transactions), customers=tuple(customers))
