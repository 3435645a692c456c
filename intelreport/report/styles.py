from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from reportlab.lib.pagesizes import A4

from .blocks import BlockKind


PAGE_WIDTH, PAGE_HEIGHT = A4

MIN_PRINTABLE_WIDTH = 72.0
MIN_PRINTABLE_HEIGHT = 72.0

BODY_FONT = 'Helvetica'
BOLD_FONT = 'Helvetica-Bold'

ACCENT_COLOR = '#3498DB'
TEXT_COLOR = '#000000'
WHITE = '#FFFFFF'
MUTED_COLOR = '#646464'
FOOTER_COLOR = '#808080'
ALT_ROW_COLOR = '#F5F5F5'
CLOSING_FILL_COLOR = '#F0F8FF'


@dataclass(frozen=True)
class PageGeometry:
    page_width: float = PAGE_WIDTH
    page_height: float = PAGE_HEIGHT
    margin_left: float = 40.0
    margin_right: float = 40.0
    margin_top: float = 40.0
    margin_bottom: float = 40.0

    def __post_init__(self) -> None:
        if min(self.margin_left, self.margin_right, self.margin_top, self.margin_bottom) < 0:
            raise ValueError('page margins must be non-negative')
        if self.content_width < MIN_PRINTABLE_WIDTH:
            raise ValueError(f'printable width {self.content_width:.1f}pt is below {MIN_PRINTABLE_WIDTH}pt')
        if self.content_height < MIN_PRINTABLE_HEIGHT:
            raise ValueError(f'printable height {self.content_height:.1f}pt is below {MIN_PRINTABLE_HEIGHT}pt')

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def content_height(self) -> float:
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.margin_bottom

    @classmethod
    def uniform(cls, margin: float, *, page_width: float = PAGE_WIDTH, page_height: float = PAGE_HEIGHT) -> PageGeometry:
        return cls(
            page_width=page_width,
            page_height=page_height,
            margin_left=margin,
            margin_right=margin,
            margin_top=margin,
            margin_bottom=margin,
        )


@dataclass(frozen=True)
class StyleRule:
    font_name: str
    font_size: float
    color: str
    line_height: float
    top_gap: float = 0.0
    bottom_gap: float = 0.0
    indent: float = 0.0
    item_gap: float = 0.0


@dataclass(frozen=True)
class TableStyle:
    font_name: str = BODY_FONT
    header_font_name: str = BOLD_FONT
    font_size: float = 10.0
    line_height: float = 12.0
    cell_padding: float = 4.0
    text_color: str = TEXT_COLOR
    header_fill: str = ACCENT_COLOR
    header_text_color: str = WHITE
    alternate_fill: str | None = ALT_ROW_COLOR
    border_color: str = '#C8C8C8'
    bottom_gap: float = 15.0

    @property
    def single_row_height(self) -> float:
        return self.line_height + 2 * self.cell_padding


def _default_rules(body_font: str, bold_font: str) -> dict[BlockKind, StyleRule]:
    return {
        BlockKind.heading1: StyleRule(bold_font, 18, ACCENT_COLOR, 22, top_gap=20, bottom_gap=10),
        BlockKind.heading2: StyleRule(bold_font, 16, '#27AE60', 20, top_gap=15, bottom_gap=8),
        BlockKind.heading3: StyleRule(bold_font, 14, '#9B59B6', 18, top_gap=12, bottom_gap=6),
        BlockKind.paragraph: StyleRule(body_font, 11, TEXT_COLOR, 14, top_gap=5, bottom_gap=8),
        BlockKind.unordered_list: StyleRule(
            body_font, 11, TEXT_COLOR, 14, top_gap=5, bottom_gap=8, indent=20, item_gap=2
        ),
        BlockKind.ordered_list: StyleRule(
            body_font, 11, TEXT_COLOR, 14, top_gap=5, bottom_gap=8, indent=20, item_gap=2
        ),
    }


@dataclass(frozen=True)
class StyleTable:
    geometry: PageGeometry = field(default_factory=PageGeometry)
    rules: Mapping[BlockKind, StyleRule] = field(
        default_factory=lambda: MappingProxyType(_default_rules(BODY_FONT, BOLD_FONT))
    )
    table: TableStyle = field(default_factory=TableStyle)

    body_font: str = BODY_FONT
    bold_font: str = BOLD_FONT
    accent_color: str = ACCENT_COLOR
    banner_text_color: str = WHITE
    muted_color: str = MUTED_COLOR
    footer_color: str = FOOTER_COLOR
    closing_fill_color: str = CLOSING_FILL_COLOR

    section_banner_height: float = 60.0
    single_banner_height: float = 80.0
    cover_banner_height: float = 120.0
    banner_content_gap: float = 20.0
    footer_font_size: float = 8.0
    footer_offset: float = 15.0

    def style_for(self, kind: BlockKind | str, ordinal: int | None = None) -> StyleRule:
        try:
            key = BlockKind(kind)
        except ValueError:
            key = BlockKind.paragraph
        rule = self.rules.get(key)
        if rule is None:
            return self.rules[BlockKind.paragraph]
        return rule

    def list_marker(self, kind: BlockKind | str, ordinal: int) -> str:
        if kind == BlockKind.ordered_list:
            return f'{int(ordinal)}.'
        return '•'

    def with_geometry(self, geometry: PageGeometry) -> StyleTable:
        return replace(self, geometry=geometry)


def build_style_table(
    *,
    body_font: str = BODY_FONT,
    bold_font: str = BOLD_FONT,
    margin: float = 40.0,
) -> StyleTable:
    return StyleTable(
        geometry=PageGeometry.uniform(margin),
        rules=MappingProxyType(_default_rules(body_font, bold_font)),
        table=TableStyle(font_name=body_font, header_font_name=bold_font),
        body_font=body_font,
        bold_font=bold_font,
    )
