from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum


class IngestTag(str, Enum):
    """Type tag assigned while reading an uploaded file."""
    INV = "INV"
    PAYMENT = "Payment"


class RenderTag(str, Enum):
    """Type tag used on the statement itself."""
    INVOICE = "INVOICE"
    PAYMENT = "PAYMENT"


_TAGS = {t.value: t for t in (*IngestTag, *RenderTag)}


@dataclass(frozen=True)
class Transaction:
    id: str
    trx_date: date
    number: str
    region: str
    site_location: str
    trx_type: IngestTag | RenderTag
    original_amount: Decimal
    customer_name: str
    gl_agency: str = ""
    note: str = ""

    def to_dict(self):
        return {
            "id": self.id,
            "trx_date": self.trx_date.isoformat(),
            "number": self.number,
            "region": self.region,
            "site_location": self.site_location,
            "trx_type": self.trx_type.value,
            "original_amount": str(self.original_amount),
            "customer_name": self.customer_name,
            "gl_agency": self.gl_agency,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data["id"],
            trx_date=date.fromisoformat(data["trx_date"]),
            number=data.get("number", ""),
            region=data.get("region", ""),
            site_location=data.get("site_location", ""),
            trx_type=_TAGS[data["trx_type"]],
            original_amount=Decimal(data["original_amount"]),
            customer_name=data["customer_name"],
            gl_agency=data.get("gl_agency", ""),
            note=data.get("note", ""),
        )


@dataclass(frozen=True)
class StatementConfig:
    operating_unit: str
    start_date: date
    end_date: date
    opening_balance: Decimal = Decimal("0")
    # data: URL or filesystem path of the header logo
    logo: str | None = None

    def to_dict(self, include_logo=True):
        data = {
            "operating_unit": self.operating_unit,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "opening_balance": str(self.opening_balance),
        }
        if include_logo:
            data["logo"] = self.logo
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            operating_unit=data.get("operating_unit", ""),
            start_date=date.fromisoformat(data["start_date"]),
            end_date=date.fromisoformat(data["end_date"]),
            opening_balance=Decimal(data.get("opening_balance") or "0"),
            logo=data.get("logo"),
        )

    def with_changes(self, **changes):
        return replace(self, **changes)


@dataclass(frozen=True)
class LedgerRow:
    transaction: Transaction
    # signed amount applied to the balance: invoices positive, payments negative
    amount: Decimal
    balance: Decimal


@dataclass(frozen=True)
class Ledger:
    customer_name: str
    opening_balance: Decimal
    rows: tuple = field(default_factory=tuple)

    @property
    def closing_balance(self):
        if not self.rows:
            return self.opening_balance
        return self.rows[-1].balance


@dataclass(frozen=True)
class IngestResult:
    transactions: tuple
    customers: tuple


@dataclass(frozen=True)
class RenderedStatement:
    content: bytes
    file_name: str
    ledger: Ledger
