"""Persistence of generated statements: document bytes plus a history row.

The two steps are independent; a failure after the document is stored leaves
the file in place without a history entry.
"""
import logging

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import DatabaseError
from django.utils.text import get_valid_filename

from .exceptions import PersistenceFailure
from .models import Statement, statement_upload_to

logger = logging.getLogger(__name__)


def store_document(owner, file_name, content):
    """Save the PDF bytes and return the storage name used to read them back."""
    path = statement_upload_to(Statement(user_id=owner.pk), get_valid_filename(file_name))
    try:
        return default_storage.save(path, ContentFile(content))
    except OSError as exc:
        logger.exception("Storing %s for user %s failed", file_name, owner.pk)
        raise PersistenceFailure("store") from exc


def append_history(owner, *, customer_name, period, file_name, reference, config):
    try:
        return Statement.objects.create(
            user=owner,
            customer_name=customer_name,
            period=period,
            file_name=file_name,
            document=reference,
            config=config,
        )
    except DatabaseError as exc:
        logger.exception("Writing history for %s (user %s) failed", file_name, owner.pk)
        raise PersistenceFailure("append") from exc


def list_history(owner):
    """Statements generated by ``owner``, newest first."""
    return Statement.objects.filter(user=owner)
