import pytest
from django.core.files.storage import default_storage
from django.db import DatabaseError

from soa.exceptions import PersistenceFailure
from soa.models import Statement
from soa.storage import append_history, list_history, store_document

pytestmark = pytest.mark.django_db

FILE_NAME = "SOA_Acme Trading_2024-01-31.pdf"


class FullDisk:
    def save(self, name, content, max_length=None):
        raise OSError(28, "No space left on device")


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username="accounts", password="s3cret-pass")


def _history(user, reference):
    return append_history(
        user,
        customer_name="Acme Trading",
        period="01/01/2024 - 01/31/2024",
        file_name=FILE_NAME,
        reference=reference,
        config={"operating_unit": "FMCG"},
    )


def test_store_document_saves_under_owner_folder(user):
    reference = store_document(user, FILE_NAME, b"%PDF-1.4 test")
    assert reference == f"statements/{user.pk}/SOA_Acme_Trading_2024-01-31.pdf"
    with default_storage.open(reference, "rb") as fh:
        assert fh.read() == b"%PDF-1.4 test"


def test_storage_errors_become_persistence_failure(user, monkeypatch):
    monkeypatch.setattr("soa.storage.default_storage", FullDisk())
    with pytest.raises(PersistenceFailure) as excinfo:
        store_document(user, FILE_NAME, b"%PDF")
    assert excinfo.value.stage == "store"
    assert isinstance(excinfo.value.__cause__, OSError)


def test_database_errors_become_persistence_failure(user, monkeypatch):
    def _locked(**kwargs):
        raise DatabaseError("database is locked")

    monkeypatch.setattr(Statement.objects, "create", _locked)
    with pytest.raises(PersistenceFailure) as excinfo:
        _history(user, "statements/1/x.pdf")
    assert excinfo.value.stage == "append"
    assert str(excinfo.value) == "Failed to save statement to storage."


def test_history_is_per_owner_and_newest_first(user, django_user_model):
    other = django_user_model.objects.create_user(username="someone-else", password="x-pass-123")
    first = _history(user, "statements/a.pdf")
    second = _history(user, "statements/b.pdf")
    _history(other, "statements/c.pdf")

    assert list(list_history(user)) == [second, first]
    assert first.document.name == "statements/a.pdf"
