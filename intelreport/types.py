from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExportMode(str, Enum):
    single = 'single'
    all = 'all'
    summary = 'summary'


class ExportStatus(str, Enum):
    queued = 'queued'
    fetching_reports = 'fetching_reports'
    summarizing = 'summarizing'
    rendering = 'rendering'
    completed = 'completed'
    failed = 'failed'


class RequesterContext(BaseModel):
    user_id: str | None = None
    firm_id: str | None = None


class ReportRequest(BaseModel):
    report_type_id: str
    company_id: str
    competitor_ids: list[str] = Field(default_factory=list)
    requester: RequesterContext = Field(default_factory=RequesterContext)

    def payload(self) -> dict[str, Any]:
        return {
            'companyId': self.company_id,
            'competitorIds': list(self.competitor_ids),
            'userid': self.requester.user_id,
            'firmid': self.requester.firm_id,
        }


class ReportResult(BaseModel):
    success: bool
    content: str | None = None
    error: str | None = None


class SummaryRequest(BaseModel):
    company_id: str
    reports: list[str] = Field(default_factory=list)
    requester: RequesterContext = Field(default_factory=RequesterContext)

    def payload(self) -> dict[str, Any]:
        return {
            'companyId': self.company_id,
            'reports': list(self.reports),
            'userid': self.requester.user_id,
            'firmid': self.requester.firm_id,
        }


class SummaryResult(BaseModel):
    success: bool
    content: str | None = None
    error: str | None = None


class ExportSubject(BaseModel):
    """Who the bundle is about; drives the cover page and the filename."""

    company_id: str
    company_name: str | None = None
    competitor_ids: list[str] = Field(default_factory=list)
    analysis_period: str | None = None
    requester: RequesterContext = Field(default_factory=RequesterContext)


class ExportJob(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    mode: ExportMode
    report_list: list[ReportRequest] = Field(default_factory=list)

    status: ExportStatus = ExportStatus.queued
    progress_message: str = 'Export queued.'
    error: str | None = None

    output_path: str | None = None
    page_count: int = 0

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)
