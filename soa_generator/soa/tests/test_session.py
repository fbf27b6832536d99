from datetime import date
from decimal import Decimal

import pytest

from soa.exceptions import RenderTargetMissing
from soa.records import RenderTag
from soa.session import StatementSession, default_config
from soa.tests.factories import file_trx


@pytest.fixture
def session():
    s = StatementSession(file_transactions=[
        file_trx(1, date(2024, 1, 5), "500"),
        file_trx(2, date(2024, 1, 6), "250", customer="Beta Foods"),
        file_trx(3, date(2024, 1, 7), "100"),
    ])
    s.select_customer("Acme Trading")
    return s


def test_default_config_covers_month_to_date():
    config = default_config(today=date(2024, 3, 17))
    assert config.operating_unit == "FMCG"
    assert config.start_date == date(2024, 3, 1)
    assert config.end_date == date(2024, 3, 17)
    assert config.opening_balance == Decimal("0")
    assert config.logo is None


def test_customers_are_distinct_and_sorted(session):
    assert session.customers == ["Acme Trading", "Beta Foods"]


def test_uploads_accumulate(session):
    session.load_file_transactions([file_trx(4, date(2024, 1, 8), "1", customer="Ceder Co")])
    assert len(session.file_transactions) == 4
    assert session.customers[-1] == "Ceder Co"


def test_manual_payment_is_stored_negative_for_selected_customer(session):
    trx = session.add_manual_transaction({
        "trx_date": date(2024, 1, 10), "number": "1001", "region": "Center",
        "site_location": "", "amount": Decimal("200"),
    })
    assert trx.original_amount == Decimal("-200")
    assert trx.trx_type is RenderTag.PAYMENT
    assert trx.customer_name == "Acme Trading"
    assert trx.id.startswith("manual-")
    assert session.manual_transactions_for("Acme Trading") == [trx]
    assert session.manual_transactions_for("Beta Foods") == []


def test_manual_payment_defaults_to_today(session):
    trx = session.add_manual_transaction({"amount": "-75"})
    assert trx.trx_date == date.today()
    assert trx.original_amount == Decimal("-75")


def test_manual_ids_do_not_collide(session):
    ids = {session.add_manual_transaction({"amount": 1}).id for _ in range(20)}
    assert len(ids) == 20


def test_manual_payment_needs_a_customer():
    with pytest.raises(RenderTargetMissing):
        StatementSession().add_manual_transaction({"amount": 10})


def test_delete_manual_transaction(session):
    keep = session.add_manual_transaction({"amount": 1})
    drop = session.add_manual_transaction({"amount": 2})
    session.delete_manual_transaction(drop.id)
    session.delete_manual_transaction("manual-unknown")
    assert session.manual_transactions == [keep]


def test_snapshot_is_immutable_copy(session):
    session.add_manual_transaction({"amount": 5})
    files, manual, customer, config = session.snapshot()
    session.add_manual_transaction({"amount": 6})
    assert isinstance(files, tuple) and isinstance(manual, tuple)
    assert len(manual) == 1
    assert customer == "Acme Trading"
    assert config is session.config


def test_update_config(session):
    session.update_config(opening_balance=Decimal("50"), operating_unit="Retail")
    assert session.config.opening_balance == Decimal("50")
    assert session.config.operating_unit == "Retail"


def test_clear_resets_data_and_logo(session):
    session.add_manual_transaction({"amount": 5})
    session.update_config(logo="data:image/png;base64,AAAA", opening_balance=Decimal("10"))
    session.clear()
    assert session.file_transactions == []
    assert session.manual_transactions == []
    assert session.selected_customer == ""
    assert session.config.logo is None
    assert session.config.opening_balance == Decimal("10")


def test_round_trip_through_plain_data(session):
    session.add_manual_transaction({"trx_date": date(2024, 1, 10), "amount": "200", "region": "East"})
    session.update_config(opening_balance=Decimal("1000.00"))

    restored = StatementSession.from_dict(session.to_dict())

    assert restored.file_transactions == session.file_transactions
    assert restored.manual_transactions == session.manual_transactions
    assert restored.selected_customer == "Acme Trading"
    assert restored.config == session.config


def test_missing_session_data_gives_fresh_state():
    s = StatementSession.from_dict(None)
    assert s.file_transactions == []
    assert s.selected_customer == ""
    assert s.config.operating_unit == "FMCG"
