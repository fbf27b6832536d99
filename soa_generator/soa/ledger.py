"""Merging of file invoices with manual payments into a running-balance ledger."""
from dataclasses import replace
from decimal import Decimal

from .records import Ledger, LedgerRow, RenderTag

# Same-day ordering: invoices first, then payments, each in entry order
_KIND_ORDER = {RenderTag.INVOICE: 0, RenderTag.PAYMENT: 1}


def _in_period(trx, customer_name, config):
    return (
        trx.customer_name == customer_name
        and config.start_date <= trx.trx_date <= config.end_date
    )


def reference_transaction(manual_transactions, customer_name):
    """First manual entry for the customer; its location is authoritative."""
    return next((t for t in manual_transactions if t.customer_name == customer_name), None)


def merge_transactions(file_transactions, manual_transactions, customer_name, config):
    """Return ``(transaction, signed amount)`` pairs ordered by date.

    File rows become INVOICE entries that raise the balance; manual rows
    become PAYMENT entries that lower it, whatever sign they were entered
    with.
    """
    ref = reference_transaction(manual_transactions, customer_name)

    entries = []
    for seq, trx in enumerate(t for t in file_transactions if _in_period(t, customer_name, config)):
        overrides = {"trx_type": RenderTag.INVOICE}
        if ref is not None:
            overrides.update(region=ref.region, site_location=ref.site_location)
        entries.append((replace(trx, **overrides), abs(trx.original_amount), seq))

    for seq, trx in enumerate(t for t in manual_transactions if _in_period(t, customer_name, config)):
        entries.append((replace(trx, trx_type=RenderTag.PAYMENT), -abs(trx.original_amount), seq))

    entries.sort(key=lambda e: (e[0].trx_date, _KIND_ORDER[e[0].trx_type], e[2]))
    return [(trx, amount) for trx, amount, _ in entries]


def build_ledger(file_transactions, manual_transactions, customer_name, config):
    opening = Decimal(config.opening_balance)
    balance = opening
    rows = []
    for trx, amount in merge_transactions(file_transactions, manual_transactions, customer_name, config):
        balance += amount
        rows.append(LedgerRow(transaction=trx, amount=amount, balance=balance))
    return Ledger(customer_name=customer_name, opening_balance=opening, rows=tuple(rows))
