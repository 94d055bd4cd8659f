"""Exceptions raised by the report engine."""


class ReportEngineError(Exception):
    """Base exception for report engine errors."""

    pass


class SourceUnavailable(ReportEngineError):
    """The record store could not be read."""

    pass


class EmptyStructure(ReportEngineError, IndexError):
    """A single-element heap or tree operation was invoked on zero elements."""

    pass


class RootNotFound(ReportEngineError, LookupError):
    """A relatedness query named a report that is not in the current snapshot."""

    def __init__(self, root_id: str):
        super().__init__(f"Report {root_id!r} not found in current snapshot")
        self.root_id = root_id
