from __future__ import annotations


class ExportError(RuntimeError):
    """Base class for failures that abort a document export."""


class ExportInProgressError(ExportError):
    pass


class ReportFetchError(ExportError):
    def __init__(self, report_type_id: str, message: str):
        super().__init__(message)
        self.report_type_id = report_type_id


class SummarizationError(ExportError):
    pass
