"""
Shared pytest fixtures.

Usage:
    def test_something(fake_canvas, styles):
        cursor = PageCursor(fake_canvas, styles.geometry)
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Generator

import pytest

from intelreport.config import get_settings
from intelreport.report.canvas import RectOp, TextOp, wrap_text
from intelreport.report.catalog import ReportCatalog, ReportType
from intelreport.report.cursor import PageCursor
from intelreport.report.styles import PAGE_HEIGHT, PAGE_WIDTH, StyleTable
from intelreport.types import ReportRequest, ReportResult, SummaryRequest, SummaryResult


EXPORT_DATE = date(2024, 5, 1)
ISOLATED_ENV = (
    'OPENAI_API_KEY',
    'LLM_API_KEY',
    'SUMMARY_API_BASE_URL',
    'SUMMARY_BASE_URL',
    'API_BASE',
    'API_BASE_URL',
    'REPORT_API_BASE_URL',
)


# ============================================================================
# Fakes
# ============================================================================

class FakeCanvas:
    """Recording canvas with monospace metrics: each glyph is half the font size wide."""

    def __init__(self, page_width: float = PAGE_WIDTH, page_height: float = PAGE_HEIGHT):
        self.page_width = page_width
        self.page_height = page_height
        self.pages: list[list] = [[]]
        self.current = 1

    def add_page(self) -> int:
        self.pages.append([])
        self.current = len(self.pages)
        return self.current

    def current_page(self) -> int:
        return self.current

    def page_count(self) -> int:
        return len(self.pages)

    def set_page(self, page: int) -> None:
        self.current = page

    def is_blank_page(self, page: int | None = None) -> bool:
        return not self.pages[(page or self.current) - 1]

    def write_text(self, text, x, y, *, font_name, font_size, color, align='left') -> None:
        self.pages[self.current - 1].append(TextOp(text, x, y, font_name, font_size, color, align))

    def write_rect(self, x, y, width, height, *, fill=None, stroke=None, line_width=1.0) -> None:
        self.pages[self.current - 1].append(RectOp(x, y, width, height, fill, stroke, line_width))

    def measure_text(self, text, *, font_name, font_size) -> float:
        return len(str(text)) * font_size * 0.5

    def measure_wrap(self, text, width, *, font_name, font_size) -> list[str]:
        return wrap_text(text, width, lambda value: len(value) * font_size * 0.5)

    def to_bytes(self) -> bytes:
        return f'%FAKE-PDF pages={len(self.pages)}'.encode('ascii')

    # Inspection helpers

    def texts(self, page: int | None = None) -> list[TextOp]:
        pages = [self.pages[page - 1]] if page else self.pages
        return [op for ops in pages for op in ops if isinstance(op, TextOp)]

    def strings(self, page: int | None = None) -> list[str]:
        return [op.text for op in self.texts(page)]

    def rects(self, page: int | None = None) -> list[RectOp]:
        pages = [self.pages[page - 1]] if page else self.pages
        return [op for ops in pages for op in ops if isinstance(op, RectOp)]


class FakeReportSource:
    """Answers report fetches from a table keyed by report type ID.

    A value may be markdown text, a ReportResult, or an exception to raise.
    Unknown IDs get a short generated report.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.calls: list[str] = []

    async def fetch_report(self, request: ReportRequest) -> ReportResult:
        self.calls.append(request.report_type_id)
        response = self.responses.get(
            request.report_type_id,
            f'## Overview\n\nBody for {request.report_type_id}.',
        )
        if isinstance(response, Exception):
            raise response
        if isinstance(response, ReportResult):
            return response
        return ReportResult(success=True, content=response)


class FakeSummarizer:
    def __init__(self, result: SummaryResult | Exception | None = None):
        self.result = result or SummaryResult(
            success=True,
            content='# Executive Overview\n\nAcme leads on price.\n\n- Expand EU\n- Fix churn',
        )
        self.requests: list[SummaryRequest] = []

    async def summarize(self, request: SummaryRequest) -> SummaryResult:
        self.requests.append(request)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point settings (job state, exports) at a temporary directory."""
    root = tmp_path / 'data'
    for name in ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('DATA_DIR', str(root))
    get_settings.cache_clear()
    yield root
    get_settings.cache_clear()


# ============================================================================
# Layout Fixtures
# ============================================================================

@pytest.fixture
def styles() -> StyleTable:
    return StyleTable()


@pytest.fixture
def fake_canvas() -> FakeCanvas:
    return FakeCanvas()


@pytest.fixture
def cursor(fake_canvas: FakeCanvas, styles: StyleTable) -> PageCursor:
    return PageCursor(fake_canvas, styles.geometry)


@pytest.fixture
def small_catalog() -> ReportCatalog:
    return ReportCatalog(
        tuple(ReportType(f'type-{index}', f'Type {index}', f'Description {index}') for index in range(1, 6))
    )


@pytest.fixture
def canvases() -> list[FakeCanvas]:
    """Every canvas handed out by ``canvas_factory`` during a test."""
    return []


@pytest.fixture
def canvas_factory(canvases: list[FakeCanvas]):
    def factory(title: str) -> FakeCanvas:
        canvas = FakeCanvas()
        canvases.append(canvas)
        return canvas

    return factory
