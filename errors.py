# errors.py


class BooksError(Exception):
    """Base exception for the bookkeeping core."""
    pass


class ValidationError(BooksError):
    """A required transaction field is missing or invalid."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InterchangeError(BooksError):
    """The imported text could not be turned into a ledger document."""
    pass


class FormatError(InterchangeError):
    """Import text is missing a header line plus at least one data line."""
    pass


class EmptyResultError(InterchangeError):
    """Every data row of the import text was rejected."""
    pass


class PersistenceReadError(BooksError):
    """A stored blob exists but could not be parsed."""
    pass


class AnalysisError(BooksError):
    """The analysis collaborator call failed."""
    pass


class NoDataRowsError(FormatError, EmptyResultError):
    """Import text has a header line but not a single data line."""
    pass
