"""Per-user working set: uploaded transactions, manual payments and settings.

``StatementSession`` replaces ambient mutable state. Views load it from the
Django session, mutate it through its methods, and save it back; rendering
only ever sees tuple snapshots.
"""
import time
import uuid
from datetime import date
from decimal import Decimal

from . import conf
from .exceptions import RenderTargetMissing
from .records import RenderTag, StatementConfig, Transaction
from .utils import normalize_amount

SESSION_KEY = "soa_session"


def default_config(today=None):
    today = today or date.today()
    return StatementConfig(
        operating_unit=conf.get("SOA_DEFAULT_OPERATING_UNIT"),
        start_date=today.replace(day=1),
        end_date=today,
        opening_balance=Decimal("0"),
        logo=conf.get("SOA_DEFAULT_LOGO"),
    )


class StatementSession:
    def __init__(self, file_transactions=(), manual_transactions=(), selected_customer="", config=None):
        self.file_transactions = list(file_transactions)
        self.manual_transactions = list(manual_transactions)
        self.selected_customer = selected_customer
        self.config = config or default_config()

    # Collections
    @property
    def customers(self):
        return sorted({t.customer_name for t in self.file_transactions if t.customer_name})

    def load_file_transactions(self, transactions):
        self.file_transactions.extend(transactions)

    def add_manual_transaction(self, fields):
        """Record a payment for the selected customer.

        ``fields`` may carry ``trx_date``, ``number``, ``region``,
        ``site_location`` and ``amount``. The amount is always stored negative.
        """
        if not self.selected_customer:
            raise RenderTargetMissing("Please select a customer first.")
        amount = normalize_amount(fields.get("amount"))
        trx = Transaction(
            id=f"manual-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}",
            trx_date=fields.get("trx_date") or date.today(),
            number=fields.get("number") or "",
            region=fields.get("region") or "",
            site_location=fields.get("site_location") or "",
            trx_type=RenderTag.PAYMENT,
            original_amount=-abs(amount),
            customer_name=self.selected_customer,
        )
        self.manual_transactions.append(trx)
        return trx

    def delete_manual_transaction(self, trx_id):
        self.manual_transactions = [t for t in self.manual_transactions if t.id != trx_id]

    def manual_transactions_for(self, customer_name):
        return [t for t in self.manual_transactions if t.customer_name == customer_name]

    def select_customer(self, customer_name):
        self.selected_customer = customer_name or ""

    def update_config(self, **changes):
        self.config = self.config.with_changes(**changes)

    def clear(self):
        self.file_transactions = []
        self.manual_transactions = []
        self.selected_customer = ""
        self.config = self.config.with_changes(logo=conf.get("SOA_DEFAULT_LOGO"))

    def snapshot(self):
        """Immutable inputs for a render pass."""
        return tuple(self.file_transactions), tuple(self.manual_transactions), self.selected_customer, self.config

    # Serialisation
    def to_dict(self):
        return {
            "file_transactions": [t.to_dict() for t in self.file_transactions],
            "manual_transactions": [t.to_dict() for t in self.manual_transactions],
            "selected_customer": self.selected_customer,
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        return cls(
            file_transactions=[Transaction.from_dict(d) for d in data.get("file_transactions", [])],
            manual_transactions=[Transaction.from_dict(d) for d in data.get("manual_transactions", [])],
            selected_customer=data.get("selected_customer", ""),
            config=StatementConfig.from_dict(data["config"]) if data.get("config") else None,
        )

    @classmethod
    def load(cls, request):
        return cls.from_dict(request.session.get(SESSION_KEY))

    def save(self, request):
        request.session[SESSION_KEY] = self.to_dict()
