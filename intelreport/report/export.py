from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import AsyncIterator, Callable

import httpx

from intelreport.adapters.llm import BasicLLMClient, BasicLLMConfig, LLMSummaryProvider
from intelreport.adapters.report_provider import (
    RemoteSummaryProvider,
    ReportContentProvider,
    ReportProviderConfig,
    ReportSource,
    SummaryProviderConfig,
    SummarySource,
)
from intelreport.config import Settings, get_settings
from intelreport.errors import ExportInProgressError, ReportFetchError, SummarizationError
from intelreport.state import complete_job, fail_job, save_job_state, set_progress, set_status
from intelreport.storage import safe_filename, save_export
from intelreport.types import (
    ExportJob,
    ExportMode,
    ExportStatus,
    ExportSubject,
    ReportRequest,
    SummaryRequest,
)

from .assembler import BuiltDocument, DocumentAssembler, TocEntry
from .blocks import Block, Section, parse_markdown
from .canvas import Canvas, ReportLabCanvas
from .catalog import DEFAULT_CATALOG, ReportCatalog, ReportType
from .content import looks_like_error_content, rendered_text
from .styles import StyleTable, build_style_table


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
CanvasFactory = Callable[[str], Canvas]

ALL_REPORTS_TITLE = 'Comprehensive Business Analysis'
SUMMARY_TITLE = 'Executive Summary'
ERROR_DOCUMENT_LINES = (
    'There was an error generating this report.',
    'Please try regenerating the report or contact support.',
)


@dataclass
class ExportOutcome:
    job: ExportJob
    path: Path
    page_count: int
    document: BuiltDocument | None = None
    error_document: bool = False


def single_report_filename(report_type_id: str, today: date) -> str:
    stem = str(report_type_id or '').replace('-', '_') or 'report'
    return f'{stem}_{today.isoformat()}.pdf'


def error_report_filename(report_type_id: str) -> str:
    stem = str(report_type_id or '').replace('-', '_') or 'error'
    return f'{stem}_report.pdf'


def bundle_filename(label: str, company_name: str | None, today: date) -> str:
    return f'{label}_{safe_filename(company_name or "Report")}_{today.isoformat()}.pdf'


class ExportOrchestrator:
    """Sequences report fetches and drives one document build at a time."""

    def __init__(
        self,
        *,
        reports: ReportSource,
        summarizer: SummarySource | None = None,
        styles: StyleTable | None = None,
        catalog: ReportCatalog = DEFAULT_CATALOG,
        brand: str = 'COMPA AI',
        canvas_factory: CanvasFactory | None = None,
        output_dir: Path | None = None,
        progress: ProgressCallback | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.reports = reports
        self.summarizer = summarizer
        self.styles = styles or StyleTable()
        self.catalog = catalog
        self.brand = brand
        self.canvas_factory = canvas_factory or self._default_canvas
        self.output_dir = output_dir
        self.progress_callback = progress
        self.today = today
        self._lock = asyncio.Lock()
        self.exporting = False

    def _default_canvas(self, title: str) -> Canvas:
        geometry = self.styles.geometry
        return ReportLabCanvas(
            page_width=geometry.page_width,
            page_height=geometry.page_height,
            title=title,
            author=self.brand,
            subject='Competitive intelligence report',
        )

    @asynccontextmanager
    async def _exclusive(self, job: ExportJob) -> AsyncIterator[None]:
        if self._lock.locked():
            raise ExportInProgressError('an export is already in progress')
        async with self._lock:
            self.exporting = True
            save_job_state(job)
            try:
                yield
            except Exception as exc:
                logger.exception('Export %s failed', job.id)
                fail_job(job.id, message='Export failed.', error=str(exc) or exc.__class__.__name__)
                raise
            finally:
                self.exporting = False

    def _progress(self, job: ExportJob, message: str) -> None:
        logger.info('[%s] %s', job.mode.value, message)
        job.progress_message = message
        set_progress(job.id, message)
        if self.progress_callback is not None:
            self.progress_callback(message)

    def _save(self, job: ExportJob, filename: str, content: bytes, page_count: int) -> Path:
        path = save_export(filename, content, directory=self.output_dir)
        updated = complete_job(job.id, output_path=str(path), page_count=page_count)
        job.status = updated.status
        job.output_path = updated.output_path
        job.page_count = updated.page_count
        logger.info('Saved %s (%d pages)', path, page_count)
        return path

    def _requests_for(self, subject: ExportSubject) -> list[ReportRequest]:
        return [
            ReportRequest(
                report_type_id=report_type.id,
                company_id=subject.company_id,
                competitor_ids=list(subject.competitor_ids),
                requester=subject.requester,
            )
            for report_type in self.catalog
        ]

    async def _fetch_content(self, request: ReportRequest) -> str:
        result = await self.reports.fetch_report(request)
        if not result.success:
            raise ReportFetchError(request.report_type_id, result.error or 'Unknown error')
        return str(result.content or '')

    async def _resolve_blocks(self, request: ReportRequest, report_type: ReportType) -> list[Block]:
        try:
            content = await self._fetch_content(request)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning('Report %s failed: %s', report_type.id, message)
            return [Block.paragraph(f'Error generating {report_type.name}: {message}')]
        return parse_markdown(content)

    def build_error_document(self, report_type_id: str) -> bytes:
        canvas = self.canvas_factory(f'{self.catalog.name_for(report_type_id)} (error)')
        for index, line in enumerate(ERROR_DOCUMENT_LINES):
            canvas.write_text(
                line,
                self.styles.geometry.margin_left,
                60 + index * 30,
                font_name=self.styles.body_font,
                font_size=16,
                color='#000000',
            )
        return canvas.to_bytes()

    async def export_single(
        self,
        report_type_id: str,
        content: str,
        *,
        company_name: str | None = None,
    ) -> ExportOutcome:
        job = ExportJob(mode=ExportMode.single, metadata={'report_type_id': report_type_id})
        async with self._exclusive(job):
            if looks_like_error_content(rendered_text(content)):
                logger.warning('Report %s content looks like an error; exporting error page', report_type_id)
                payload = self.build_error_document(report_type_id)
                path = self._save(job, error_report_filename(report_type_id), payload, 1)
                return ExportOutcome(job=job, path=path, page_count=1, error_document=True)

            set_status(job.id, ExportStatus.rendering, 'Rendering report...')
            title = self.catalog.name_for(report_type_id)
            assembler = DocumentAssembler(
                self.canvas_factory(title),
                self.styles,
                brand=self.brand,
                generated_on=self.today(),
            )
            assembler.add_section(
                Section(
                    title=title,
                    blocks=parse_markdown(content),
                    byline=f'Company: {company_name}' if company_name else None,
                )
            )
            document = assembler.finalize(footers=False)
            filename = single_report_filename(report_type_id, self.today())
            path = self._save(job, filename, document.content, document.page_count)
            return ExportOutcome(job=job, path=path, page_count=document.page_count, document=document)

    async def export_single_request(self, request: ReportRequest, *, company_name: str | None = None) -> ExportOutcome:
        content = await self._fetch_content(request)
        return await self.export_single(request.report_type_id, content, company_name=company_name)

    async def export_all(self, subject: ExportSubject) -> ExportOutcome:
        requests = self._requests_for(subject)
        job = ExportJob(mode=ExportMode.all, report_list=requests)
        async with self._exclusive(job):
            self._progress(job, 'Preparing comprehensive report export...')
            today = self.today()
            assembler = DocumentAssembler(
                self.canvas_factory(ALL_REPORTS_TITLE),
                self.styles,
                brand=self.brand,
                footer_label=ALL_REPORTS_TITLE,
                generated_on=today,
            )
            meta = [f'Generated on: {assembler.date_label}']
            if subject.competitor_ids:
                meta.append(f'Analyzing {len(subject.competitor_ids)} competitors')
            assembler.add_cover_page(ALL_REPORTS_TITLE, subject=subject.company_name, meta_lines=meta)
            # The contents page is a fixed plan, written before anything is fetched.
            assembler.add_table_of_contents([TocEntry(rt.name, rt.description) for rt in self.catalog])

            set_status(job.id, ExportStatus.fetching_reports, 'Fetching reports...')
            total = len(requests)
            for index, (report_type, request) in enumerate(zip(self.catalog, requests), start=1):
                self._progress(job, f'Processing: {report_type.name} ({index}/{total})')
                blocks = await self._resolve_blocks(request, report_type)
                assembler.add_section(Section(title=report_type.name, blocks=blocks, description=report_type.description))

            assembler.add_closing_page()
            self._progress(job, 'Finalizing PDF...')
            document = assembler.finalize(footers=True)
            filename = bundle_filename('Comprehensive_Business_Analysis', subject.company_name, today)
            path = self._save(job, filename, document.content, document.page_count)
            return ExportOutcome(job=job, path=path, page_count=document.page_count, document=document)

    async def export_summary(self, subject: ExportSubject) -> ExportOutcome:
        requests = self._requests_for(subject)
        job = ExportJob(mode=ExportMode.summary, report_list=requests)
        async with self._exclusive(job):
            self._progress(job, 'Gathering all reports...')
            set_status(job.id, ExportStatus.fetching_reports, 'Gathering all reports...')
            collected: list[str] = []
            for report_type, request in zip(self.catalog, requests):
                try:
                    collected.append(await self._fetch_content(request))
                except Exception as exc:
                    message = str(exc) or exc.__class__.__name__
                    logger.warning('Report %s failed: %s', report_type.id, message)
                    collected.append(f'Error fetching {report_type.name}: {message}')

            self._progress(job, 'Generating AI summary...')
            set_status(job.id, ExportStatus.summarizing, 'Generating AI summary...')
            if self.summarizer is None:
                raise SummarizationError('no summarization provider configured')
            result = await self.summarizer.summarize(
                SummaryRequest(company_id=subject.company_id, reports=collected, requester=subject.requester)
            )
            if not result.success:
                raise SummarizationError(result.error or 'Failed to generate summary.')

            self._progress(job, 'Creating summary PDF...')
            set_status(job.id, ExportStatus.rendering, 'Creating summary PDF...')
            today = self.today()
            assembler = DocumentAssembler(
                self.canvas_factory(SUMMARY_TITLE),
                self.styles,
                brand=self.brand,
                footer_label=SUMMARY_TITLE,
                generated_on=today,
            )
            meta = [f'Generated: {assembler.date_label}']
            if subject.analysis_period:
                meta.append(f'Analysis Period: {subject.analysis_period}')
            meta.append(f'Competitors Analyzed: {len(subject.competitor_ids)}')
            meta.append(f'Total Reports: {len(self.catalog)}')
            company_line = f'{subject.company_name} - Strategic Analysis' if subject.company_name else None
            assembler.add_cover_page(SUMMARY_TITLE, subject=company_line, meta_lines=meta)
            assembler.add_section(Section(title='', blocks=parse_markdown(result.content or '')))
            assembler.add_closing_page()

            self._progress(job, 'Finalizing summary PDF...')
            document = assembler.finalize(footers=True)
            filename = bundle_filename('Executive_Summary', subject.company_name, today)
            path = self._save(job, filename, document.content, document.page_count)
            return ExportOutcome(job=job, path=path, page_count=document.page_count, document=document)


def build_summarizer(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> SummarySource | None:
    if settings.summary_api_base_url:
        return RemoteSummaryProvider(
            SummaryProviderConfig(
                base_url=settings.summary_api_base_url,
                api_key=settings.report_api_key,
                endpoint=settings.summary_endpoint,
                timeout_seconds=settings.summary_timeout_seconds,
            ),
            transport=transport,
        )
    if settings.openai_api_key:
        llm = BasicLLMClient(
            BasicLLMConfig(
                base_url=settings.openai_base_url,
                api_key=settings.openai_api_key,
                model=settings.summary_model,
                timeout_seconds=settings.summary_timeout_seconds,
                temperature=settings.summary_temperature,
                max_tokens=settings.summary_max_tokens,
            )
        )
        return LLMSummaryProvider(llm, max_input_chars=settings.max_report_chars_to_model)
    return None


def build_orchestrator(
    settings: Settings | None = None,
    *,
    progress: ProgressCallback | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExportOrchestrator:
    settings = settings or get_settings()
    reports = ReportContentProvider(
        ReportProviderConfig(
            base_url=settings.report_api_base_url,
            api_key=settings.report_api_key,
            endpoint_template=settings.report_endpoint_template,
            timeout_seconds=settings.report_fetch_timeout_seconds,
        ),
        transport=transport,
    )
    styles = build_style_table(
        body_font=settings.pdf_font_name,
        bold_font=settings.pdf_bold_font_name,
        margin=settings.pdf_page_margin,
    )
    return ExportOrchestrator(
        reports=reports,
        summarizer=build_summarizer(settings, transport=transport),
        styles=styles,
        brand=settings.brand_name,
        progress=progress,
    )
