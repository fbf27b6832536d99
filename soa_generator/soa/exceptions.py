class StatementError(Exception):
    """Base class for errors raised by the statement pipeline."""


class IngestionError(StatementError):
    """An uploaded file could not be turned into transactions.

    ``stage`` names the pipeline step that rejected the file so callers can
    report where ingestion stopped.
    """

    stage = "ingest"
    default_message = "Unknown error occurred during parsing"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class MalformedFile(IngestionError):
    stage = "read"
    default_message = "Invalid file format. Please upload Excel or CSV."


class HeaderNotFound(IngestionError):
    stage = "header"
    default_message = "Could not find a 'Customer' column. Please check file headers."


class EmptyData(IngestionError):
    stage = "extract"
    default_message = "No data found below the header row."


class NoValidTransactions(IngestionError):
    stage = "build"
    default_message = "Parsed headers but found no valid transactions."


class RenderTargetMissing(StatementError):
    def __init__(self, message="Please select a customer."):
        super().__init__(message)


class PersistenceFailure(StatementError):
    """Storing the rendered document or its history record failed."""

    def __init__(self, stage, message="Failed to save statement to storage."):
        super().__init__(message)
        self.stage = stage
