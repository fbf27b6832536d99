"""Entry points tying the pipeline stages to storage."""
import logging
from dataclasses import dataclass

from .exceptions import PersistenceFailure
from .parsing import parse_file_to_transactions
from .pdf import generate_statement_pdf
from .storage import append_history, store_document
from .utils import format_period

logger = logging.getLogger(__name__)


def ingest(file_bytes, filename=None):
    return parse_file_to_transactions(file_bytes, filename)


def render(file_transactions, manual_transactions, customer_name, config):
    return generate_statement_pdf(file_transactions, manual_transactions, customer_name, config)


@dataclass
class GenerationResult:
    statement: object
    history: object = None
    error: PersistenceFailure | None = None


def generate_and_store(owner, session):
    """Render the selected customer's statement and persist it.

    Rendering errors propagate. A persistence failure is returned on the
    result instead, since the document itself is still usable.
    """
    file_trxs, manual_trxs, customer_name, config = session.snapshot()
    statement = render(file_trxs, manual_trxs, customer_name, config)

    try:
        reference = store_document(owner, statement.file_name, statement.content)
        history = append_history(
            owner,
            customer_name=customer_name,
            period=format_period(config.start_date, config.end_date),
            file_name=statement.file_name,
            reference=reference,
            config=config.to_dict(include_logo=False),
        )
    except PersistenceFailure as exc:
        logger.warning("Statement %s generated but not saved (%s)", statement.file_name, exc.stage)
        return GenerationResult(statement=statement, error=exc)
    return GenerationResult(statement=statement, history=history)
