from __future__ import annotations

import logging

from .blocks import HEADING_KINDS, LIST_KINDS, Block, BlockKind
from .canvas import BASELINE_RATIO, Canvas
from .cursor import PageCursor
from .styles import StyleRule, StyleTable
from .tables import TablePaginator


logger = logging.getLogger(__name__)


class BlockRenderer:
    def __init__(self, canvas: Canvas, styles: StyleTable, paginator: TablePaginator | None = None):
        self.canvas = canvas
        self.styles = styles
        self.paginator = paginator or TablePaginator(canvas, styles.geometry, styles.table)

    def wrap(self, text: str, width: float, rule: StyleRule) -> list[str]:
        return self.canvas.measure_wrap(
            str(text or '').strip(),
            width,
            font_name=rule.font_name,
            font_size=rule.font_size,
        )

    def _write_line(self, cursor: PageCursor, text: str, x: float, rule: StyleRule) -> None:
        cursor.ensure_space(rule.line_height)
        self.canvas.write_text(
            text,
            x,
            cursor.y + rule.font_size * BASELINE_RATIO,
            font_name=rule.font_name,
            font_size=rule.font_size,
            color=rule.color,
        )
        cursor.advance(rule.line_height)

    def render(self, block: Block, cursor: PageCursor) -> None:
        if block.is_empty():
            return
        if block.kind in HEADING_KINDS:
            self._render_heading(block, cursor)
        elif block.kind in LIST_KINDS:
            self._render_list(block, cursor)
        elif block.kind == BlockKind.table:
            self._render_table(block, cursor)
        else:
            self._render_paragraph(block, cursor)

    def render_all(self, blocks: list[Block], cursor: PageCursor) -> None:
        for block in blocks:
            self.render(block, cursor)

    def _render_heading(self, block: Block, cursor: PageCursor) -> None:
        rule = self.styles.style_for(block.kind)
        lines = self.wrap(block.text or '', cursor.content_width, rule)
        if not lines:
            return
        cursor.gap(rule.top_gap)
        # A heading is never split across pages.
        cursor.ensure_space(len(lines) * rule.line_height)
        for line in lines:
            self._write_line(cursor, line, cursor.left, rule)
        cursor.gap(rule.bottom_gap)

    def _render_paragraph(self, block: Block, cursor: PageCursor) -> None:
        rule = self.styles.style_for(block.kind)
        lines = self.wrap(block.text or '', cursor.content_width, rule)
        if not lines:
            return
        cursor.gap(rule.top_gap)
        for line in lines:
            self._write_line(cursor, line, cursor.left, rule)
        cursor.gap(rule.bottom_gap)

    def _render_list(self, block: Block, cursor: PageCursor) -> None:
        rule = self.styles.style_for(block.kind)
        width = cursor.content_width - rule.indent
        rendered_any = False

        for index, item in enumerate(block.items):
            lines = self.wrap(item, width, rule)
            if not lines:
                continue
            if not rendered_any:
                cursor.gap(rule.top_gap)
                rendered_any = True

            marker = self.styles.list_marker(block.kind, block.start + index)
            for line_index, line in enumerate(lines):
                cursor.ensure_space(rule.line_height)
                if line_index == 0:
                    self.canvas.write_text(
                        marker,
                        cursor.left,
                        cursor.y + rule.font_size * BASELINE_RATIO,
                        font_name=rule.font_name,
                        font_size=rule.font_size,
                        color=rule.color,
                    )
                self._write_line(cursor, line, cursor.left + rule.indent, rule)
            cursor.gap(rule.item_gap)

        if rendered_any:
            cursor.gap(rule.bottom_gap)

    def _render_table(self, block: Block, cursor: PageCursor) -> None:
        placement = self.paginator.render_table(block.table_headers, block.table_rows, cursor)
        cursor.sync(placement.page_index, placement.y)
        if placement.rows_drawn or block.table_headers:
            cursor.gap(self.styles.table.bottom_gap)
