from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from intelreport.errors import ReportFetchError, SummarizationError
from intelreport.report.content import normalize_report_content
from intelreport.types import ReportRequest, ReportResult, SummaryRequest, SummaryResult


logger = logging.getLogger(__name__)


@dataclass
class ReportProviderConfig:
    base_url: str
    api_key: str | None
    endpoint_template: str
    timeout_seconds: int


@dataclass
class SummaryProviderConfig:
    base_url: str | None
    api_key: str | None
    endpoint: str
    timeout_seconds: int


class ReportSource(Protocol):
    async def fetch_report(self, request: ReportRequest) -> ReportResult: ...


class SummarySource(Protocol):
    async def summarize(self, request: SummaryRequest) -> SummaryResult: ...


def _headers(api_key: str | None) -> dict[str, str]:
    headers = {'Content-Type': 'application/json'}
    token = str(api_key or '').strip()
    if token:
        headers['Authorization'] = f'Bearer {token}'
    return headers


def _join_url(base_url: str, endpoint: str) -> str:
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


class ReportContentProvider:
    """Fetches generated report bodies from the report backend."""

    def __init__(self, cfg: ReportProviderConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        timeout = max(20, int(self.cfg.timeout_seconds))
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    async def fetch_report(self, request: ReportRequest) -> ReportResult:
        endpoint = self.cfg.endpoint_template.format(report_type_id=request.report_type_id)
        url = _join_url(self.cfg.base_url, endpoint)
        logger.info('Fetching report %s for company %s', request.report_type_id, request.company_id)

        try:
            async with self._client() as client:
                response = await client.post(url, headers=_headers(self.cfg.api_key), json=request.payload())
            response.raise_for_status()
            data: Any = response.json()
        except httpx.HTTPError as exc:
            raise ReportFetchError(request.report_type_id, str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise ReportFetchError(request.report_type_id, f'invalid JSON payload: {exc}') from exc

        if not isinstance(data, dict):
            return ReportResult(success=False, error='invalid_remote_payload')
        if not data.get('success', True):
            return ReportResult(success=False, error=str(data.get('error') or 'Unknown error'))

        content = normalize_report_content(request.report_type_id, data.get('report'))
        return ReportResult(success=True, content=content)


class RemoteSummaryProvider:
    def __init__(self, cfg: SummaryProviderConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.cfg.base_url)

    async def summarize(self, request: SummaryRequest) -> SummaryResult:
        if not self.configured:
            raise SummarizationError('summary provider is not configured')
        base_url = self.cfg.base_url or ''

        url = _join_url(base_url, self.cfg.endpoint)
        logger.info('Requesting summary of %d reports for company %s', len(request.reports), request.company_id)
        try:
            async with httpx.AsyncClient(
                timeout=max(20, int(self.cfg.timeout_seconds)),
                transport=self.transport,
            ) as client:
                response = await client.post(url, headers=_headers(self.cfg.api_key), json=request.payload())
            response.raise_for_status()
            data: Any = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SummarizationError(f'summary request failed: {exc}') from exc

        if not isinstance(data, dict) or not data.get('success'):
            error = data.get('error') if isinstance(data, dict) else None
            return SummaryResult(success=False, error=str(error or 'Failed to generate summary.'))

        summary = data.get('summary')
        content = summary.get('content') if isinstance(summary, dict) else summary
        return SummaryResult(success=True, content=str(content or ''))
