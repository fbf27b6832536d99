import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Spreadsheet serial day 0 (the 1900 leap-year bug is absorbed by the epoch)
SERIAL_EPOCH = date(1899, 12, 30)

_DMY_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})")

# Formats tried after the day-month-year pattern, in order
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d %b %Y",
    "%d-%b-%Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%d-%b-%y",
    "%m/%d/%y",
)


def normalize_amount(raw):
    """Convert a cell value to a signed ``Decimal``.

    Thousands separators are dropped and ``(1,250.50)`` reads as ``-1250.50``.
    Anything that is not a number becomes ``0``.
    """
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else Decimal("0")
    if isinstance(raw, (int, float)):
        raw = str(raw)
    s = str(raw).replace("\u00A0", " ").replace(",", "").strip()
    negative = False
    if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1].strip()
    try:
        value = Decimal(s)
    except InvalidOperation:
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return -abs(value) if negative else value


def _from_serial(value):
    try:
        return SERIAL_EPOCH + timedelta(days=int(value // 1))
    except (OverflowError, ValueError):
        return None


def _parse_text_date(s):
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def normalize_date(raw, today=None):
    """Return a calendar date for a cell value; never raises.

    Order: native date cells, spreadsheet serial numbers, ``D/M/YYYY`` text
    (day first, never swapped), common textual formats. Anything else falls
    back to ``today``.
    """
    today = today or date.today()
    if raw is None or raw == "" or isinstance(raw, bool):
        return today
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, (int, float, Decimal)):
        if not raw:
            return today
        return _from_serial(raw) or today

    s = str(raw).strip()
    m = _DMY_RE.match(s)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return today

    return _parse_text_date(s) or today


def normalize_customer_name(raw):
    if raw is None:
        return "Unknown"
    s = re.sub(r"[\r\n]+", " ", str(raw))
    s = re.sub(r"\s+", " ", s).strip()
    return s or "Unknown"


def format_currency(amount):
    q = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{q:,.2f}"


def format_date(value):
    if not value:
        return ""
    return value.strftime("%m/%d/%Y")


def format_period(start, end):
    return f"{format_date(start)} - {format_date(end)}"


def cell_text(value):
    """Text form of a cell; integral floats lose their trailing ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
