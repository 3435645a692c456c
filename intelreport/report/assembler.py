from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum
from typing import Iterable, Sequence

from .blocks import Section
from .canvas import BASELINE_RATIO, Canvas
from .cursor import PageCursor
from .renderer import BlockRenderer
from .styles import StyleTable


logger = logging.getLogger(__name__)


class AssemblyStage(IntEnum):
    init = 0
    cover = 1
    table_of_contents = 2
    sections = 3
    closing = 4
    finalized = 5


@dataclass(frozen=True)
class SectionPlacement:
    title: str
    first_page: int
    last_page: int


@dataclass(frozen=True)
class TocEntry:
    title: str
    description: str = ''


@dataclass
class BuiltDocument:
    content: bytes
    page_count: int
    footer_pages: list[int] = field(default_factory=list)
    sections: list[SectionPlacement] = field(default_factory=list)


def format_footer_date(value: date) -> str:
    return f'{value.month}/{value.day}/{value.year}'


class SectionComposer:
    def __init__(self, canvas: Canvas, styles: StyleTable, renderer: BlockRenderer | None = None):
        self.canvas = canvas
        self.styles = styles
        self.renderer = renderer or BlockRenderer(canvas, styles)
        self.pages_started = 0

    def fit_font_size(self, text: str, font_name: str, font_size: float, width: float) -> float:
        size = font_size
        while size > 10 and self.canvas.measure_text(text, font_name=font_name, font_size=size) > width:
            size -= 1
        return size

    def start_page(self, cursor: PageCursor) -> int:
        """Move to a fresh page; the untouched first page of a document is reused."""
        first = self.pages_started == 0
        self.pages_started += 1
        if first and self.canvas.page_count() == 1 and self.canvas.is_blank_page(1):
            cursor.move_to(cursor.top)
            return cursor.page_index
        return cursor.new_page()

    def draw_banner(self, cursor: PageCursor, title: str, *, byline: str | None = None) -> None:
        styles = self.styles
        page_width = cursor.geometry.page_width
        height = styles.single_banner_height if byline else styles.section_banner_height
        self.canvas.write_rect(0, 0, page_width, height, fill=styles.accent_color)

        if byline:
            size = self.fit_font_size(title, styles.bold_font, 20, cursor.content_width)
            self.canvas.write_text(
                title,
                page_width / 2,
                35,
                font_name=styles.bold_font,
                font_size=size,
                color=styles.banner_text_color,
                align='center',
            )
            self.canvas.write_text(
                byline,
                page_width / 2,
                55,
                font_name=styles.body_font,
                font_size=14,
                color=styles.banner_text_color,
                align='center',
            )
        else:
            size = self.fit_font_size(title, styles.bold_font, 18, cursor.content_width)
            self.canvas.write_text(
                title,
                cursor.left,
                35,
                font_name=styles.bold_font,
                font_size=size,
                color=styles.banner_text_color,
            )
        cursor.move_to(height + styles.banner_content_gap)

    def compose_section(self, section: Section, cursor: PageCursor) -> SectionPlacement:
        first_page = self.start_page(cursor)
        if section.title:
            self.draw_banner(cursor, section.title, byline=section.byline)
        self.renderer.render_all(section.blocks, cursor)
        logger.debug('Section %r spans pages %d..%d', section.title, first_page, cursor.page_index)
        return SectionPlacement(section.title, first_page, cursor.page_index)


class DocumentAssembler:
    """Builds one document: cover, contents, sections, closing page, footers.

    Stages only move forward. The canvas belongs to this build alone and is
    not reused once the document is finalized.
    """

    def __init__(
        self,
        canvas: Canvas,
        styles: StyleTable,
        *,
        brand: str = 'COMPA AI',
        footer_label: str = 'Executive Summary',
        generated_on: date | None = None,
    ):
        self.canvas = canvas
        self.styles = styles
        self.brand = brand
        self.footer_label = footer_label
        self.generated_on = generated_on or date.today()

        self.cursor = PageCursor(canvas, styles.geometry)
        self.composer = SectionComposer(canvas, styles)
        self.stage = AssemblyStage.init
        self.cover_page: int | None = None
        self.closing_page: int | None = None
        self.sections: list[SectionPlacement] = []

    def _enter(self, stage: AssemblyStage) -> None:
        if stage < self.stage or (stage == self.stage and stage != AssemblyStage.sections):
            raise RuntimeError(f'cannot enter {stage.name} after {self.stage.name}')
        self.stage = stage

    @property
    def date_label(self) -> str:
        return format_footer_date(self.generated_on)

    def add_cover_page(
        self,
        title: str,
        *,
        subject: str | None = None,
        meta_lines: Sequence[str] = (),
    ) -> int:
        self._enter(AssemblyStage.cover)
        styles = self.styles
        geometry = styles.geometry
        page = self.composer.start_page(self.cursor)
        center = geometry.page_width / 2

        self.canvas.write_rect(0, 0, geometry.page_width, styles.cover_banner_height, fill=styles.accent_color)
        self.canvas.write_text(
            title,
            center,
            50,
            font_name=styles.bold_font,
            font_size=self.composer.fit_font_size(title, styles.bold_font, 28, geometry.content_width),
            color=styles.banner_text_color,
            align='center',
        )
        if subject:
            self.canvas.write_text(
                subject,
                center,
                85,
                font_name=styles.bold_font,
                font_size=self.composer.fit_font_size(subject, styles.bold_font, 20, geometry.content_width),
                color=styles.banner_text_color,
                align='center',
            )

        meta_y = geometry.page_height / 2
        for index, line in enumerate(line for line in meta_lines if line):
            self.canvas.write_text(
                line,
                center,
                meta_y + index * 30,
                font_name=styles.body_font,
                font_size=14 if index == 0 else 12,
                color='#000000',
                align='center',
            )
        self.cover_page = page
        return page

    def add_table_of_contents(self, entries: Sequence[TocEntry], *, heading: str = 'Table of Contents') -> int:
        self._enter(AssemblyStage.table_of_contents)
        styles = self.styles
        cursor = self.cursor
        first_page = self.composer.start_page(cursor)

        cursor.move_to(cursor.top + 20)
        cursor.ensure_space(40)
        self.canvas.write_text(
            heading,
            cursor.left,
            cursor.y + 20 * BASELINE_RATIO,
            font_name=styles.bold_font,
            font_size=20,
            color=styles.accent_color,
        )
        cursor.advance(40)

        entry_height = 35.0
        for index, entry in enumerate(entries, start=1):
            cursor.ensure_space(entry_height)
            baseline = cursor.y + 12 * BASELINE_RATIO
            self.canvas.write_text(
                f'{index}. {entry.title}',
                cursor.left + 20,
                baseline,
                font_name=styles.body_font,
                font_size=12,
                color='#000000',
            )
            if entry.description:
                self.canvas.write_text(
                    entry.description,
                    cursor.left + 40,
                    baseline + 15,
                    font_name=styles.body_font,
                    font_size=10,
                    color=styles.muted_color,
                )
            cursor.advance(entry_height)
        return first_page

    def add_section(self, section: Section) -> SectionPlacement:
        self._enter(AssemblyStage.sections)
        placement = self.composer.compose_section(section, self.cursor)
        self.sections.append(placement)
        return placement

    def add_closing_page(self, *, message: str | None = None) -> int:
        self._enter(AssemblyStage.closing)
        styles = self.styles
        geometry = styles.geometry
        page = self.cursor.new_page()
        center = geometry.page_width / 2
        middle = geometry.page_height / 2

        self.canvas.write_rect(
            30,
            30,
            geometry.page_width - 60,
            geometry.page_height - 60,
            fill=styles.closing_fill_color,
            stroke=styles.accent_color,
            line_width=3,
        )
        self.canvas.write_text(
            'Thank You',
            center,
            middle - 20,
            font_name=styles.bold_font,
            font_size=24,
            color=styles.accent_color,
            align='center',
        )
        self.canvas.write_text(
            message or f'For using {self.brand} Strategic Analysis',
            center,
            middle + 20,
            font_name=styles.body_font,
            font_size=16,
            color=styles.muted_color,
            align='center',
        )
        self.closing_page = page
        return page

    def stamp_footers(self) -> list[int]:
        styles = self.styles
        geometry = styles.geometry
        total = self.canvas.page_count()
        excluded = {page for page in (self.cover_page, self.closing_page) if page is not None}
        baseline = geometry.page_height - styles.footer_offset

        stamped: list[int] = []
        for page in range(1, total + 1):
            if page in excluded:
                continue
            self.canvas.set_page(page)
            self.canvas.write_text(
                f'{self.footer_label} | {self.brand} | {self.date_label}',
                geometry.margin_left,
                baseline,
                font_name=styles.body_font,
                font_size=styles.footer_font_size,
                color=styles.footer_color,
            )
            self.canvas.write_text(
                f'Page {page} of {total}',
                geometry.page_width - geometry.margin_right,
                baseline,
                font_name=styles.body_font,
                font_size=styles.footer_font_size,
                color=styles.footer_color,
                align='right',
            )
            stamped.append(page)
        return stamped

    def finalize(self, *, footers: bool = True) -> BuiltDocument:
        self._enter(AssemblyStage.finalized)
        footer_pages = self.stamp_footers() if footers else []
        content = self.canvas.to_bytes()
        page_count = self.canvas.page_count()
        logger.info(
            'Document finalized: %d pages, %d sections, %d bytes',
            page_count,
            len(self.sections),
            len(content),
        )
        return BuiltDocument(
            content=content,
            page_count=page_count,
            footer_pages=footer_pages,
            sections=list(self.sections),
        )


def assemble_document(
    canvas: Canvas,
    styles: StyleTable,
    sections: Iterable[Section],
    *,
    cover_title: str | None = None,
    cover_subject: str | None = None,
    cover_meta: Sequence[str] = (),
    toc: Sequence[TocEntry] | None = None,
    closing: bool = False,
    footers: bool = False,
    brand: str = 'COMPA AI',
    footer_label: str = 'Executive Summary',
    generated_on: date | None = None,
) -> BuiltDocument:
    """One-shot build over already-resolved sections."""
    assembler = DocumentAssembler(
        canvas,
        styles,
        brand=brand,
        footer_label=footer_label,
        generated_on=generated_on,
    )
    if cover_title:
        assembler.add_cover_page(cover_title, subject=cover_subject, meta_lines=cover_meta)
    if toc is not None:
        assembler.add_table_of_contents(toc)
    for section in sections:
        assembler.add_section(section)
    if closing:
        assembler.add_closing_page()
    return assembler.finalize(footers=footers)

