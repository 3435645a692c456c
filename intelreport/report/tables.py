from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from .canvas import BASELINE_RATIO, Canvas
from .cursor import PageCursor
from .styles import PageGeometry, TableStyle


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TablePlacement:
    page_index: int
    y: float
    first_page: int
    rows_drawn: int


@dataclass
class _Frame:
    page_index: int
    y: float
    fresh: bool
    rows_on_page: int = 0


class TablePaginator:
    """Lays a table out across as many pages as its rows need.

    The header row is repeated at the top of every continuation page. The
    paginator tracks its own position and hands the final one back to the
    caller, which synchronizes its cursor.
    """

    def __init__(self, canvas: Canvas, geometry: PageGeometry, style: TableStyle):
        self.canvas = canvas
        self.geometry = geometry
        self.style = style

    def column_widths(self, headers: Sequence[str], rows: Sequence[Sequence[str]], column_count: int) -> list[float]:
        total_width = self.geometry.content_width
        auto_size = getattr(self.canvas, 'auto_column_widths', None)
        if callable(auto_size):
            widths = auto_size(
                headers,
                rows,
                column_count=column_count,
                total_width=total_width,
                font_name=self.style.font_name,
                font_size=self.style.font_size,
                padding=self.style.cell_padding,
            )
            if widths and len(widths) == column_count:
                return list(widths)
        return [total_width / column_count] * column_count

    def _wrap_row(self, cells: Sequence[str], widths: list[float], *, font_name: str) -> list[list[str]]:
        wrapped: list[list[str]] = []
        for cell, width in zip(cells, widths):
            inner = max(1.0, width - 2 * self.style.cell_padding)
            wrapped.append(
                self.canvas.measure_wrap(str(cell or ''), inner, font_name=font_name, font_size=self.style.font_size)
            )
        return wrapped

    def _row_height(self, wrapped: list[list[str]]) -> float:
        return self._line_count(wrapped) * self.style.line_height + 2 * self.style.cell_padding

    @staticmethod
    def _line_count(wrapped: list[list[str]]) -> int:
        return max([1, *[len(lines) for lines in wrapped]])

    def _line_capacity(self, frame: _Frame) -> int:
        available = self.geometry.bottom_limit - frame.y - 2 * self.style.cell_padding
        return math.floor(available / self.style.line_height + 1e-9)

    def _draw_slice(
        self,
        frame: _Frame,
        wrapped: list[list[str]],
        widths: list[float],
        *,
        header: bool,
        shaded: bool,
    ) -> None:
        style = self.style
        height = self._row_height(wrapped)
        fill = style.header_fill if header else (style.alternate_fill if shaded else None)
        font_name = style.header_font_name if header else style.font_name
        color = style.header_text_color if header else style.text_color

        x = self.geometry.margin_left
        for lines, width in zip(wrapped, widths):
            self.canvas.write_rect(x, frame.y, width, height, fill=fill, stroke=style.border_color, line_width=0.5)
            baseline = frame.y + style.cell_padding + style.font_size * BASELINE_RATIO
            for index, line in enumerate(lines):
                self.canvas.write_text(
                    line,
                    x + style.cell_padding,
                    baseline + index * style.line_height,
                    font_name=font_name,
                    font_size=style.font_size,
                    color=color,
                )
            x += width
        frame.y += height

    def _draw_row(
        self,
        frame: _Frame,
        wrapped: list[list[str]],
        widths: list[float],
        *,
        header: bool,
        shaded: bool,
        repeat_header: list[list[str]] | None = None,
    ) -> None:
        """Draw a row, continuing it on new pages when it is taller than the space left."""
        remaining = wrapped
        just_broke = False
        while True:
            capacity = self._line_capacity(frame)
            if self._line_count(remaining) <= capacity:
                self._draw_slice(frame, remaining, widths, header=header, shaded=shaded)
                return
            if capacity < 1 and not just_broke:
                self._continue_on_new_page(frame, widths, repeat_header)
                just_broke = True
                continue
            # At least one line per page, even when a repeated header fills it.
            capacity = max(1, capacity)
            self._draw_slice(frame, [lines[:capacity] for lines in remaining], widths, header=header, shaded=shaded)
            remaining = [lines[capacity:] for lines in remaining]
            logger.debug('Table row continues after page %d', frame.page_index)
            self._continue_on_new_page(frame, widths, repeat_header)
            just_broke = True

    def _continue_on_new_page(
        self,
        frame: _Frame,
        widths: list[float],
        repeat_header: list[list[str]] | None,
    ) -> None:
        self._start_page(frame)
        if repeat_header is not None:
            self._draw_row(frame, repeat_header, widths, header=True, shaded=False)

    def _start_page(self, frame: _Frame) -> None:
        frame.page_index = self.canvas.add_page()
        frame.y = self.geometry.margin_top
        frame.fresh = True
        frame.rows_on_page = 0

    def _start_space(self, header_height: float, first_row_height: float) -> float:
        needed = header_height + first_row_height
        if needed > self.geometry.content_height:
            # The first row continues across pages anyway; its first line must fit.
            needed = header_height + self.style.single_row_height
        return needed

    def render_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        cursor: PageCursor,
    ) -> TablePlacement:
        header_cells = [str(cell or '') for cell in headers]
        body = [[str(cell or '') for cell in row] for row in rows]
        has_header = any(cell.strip() for cell in header_cells)

        frame = _Frame(page_index=cursor.page_index, y=cursor.y, fresh=cursor.at_page_top())
        if not has_header and not body:
            return TablePlacement(frame.page_index, frame.y, frame.page_index, 0)

        column_count = max([len(header_cells), *[len(row) for row in body], 1])
        header_cells = header_cells + [''] * (column_count - len(header_cells))
        body = [row + [''] * (column_count - len(row)) for row in body]

        widths = self.column_widths(header_cells, body, column_count)
        wrapped_header = self._wrap_row(header_cells, widths, font_name=self.style.header_font_name)
        wrapped_body = [self._wrap_row(row, widths, font_name=self.style.font_name) for row in body]
        repeat_header = wrapped_header if has_header else None

        header_height = self._row_height(wrapped_header) if has_header else 0.0
        first_row_height = self._row_height(wrapped_body[0]) if wrapped_body else 0.0
        needed = self._start_space(header_height, first_row_height)
        if not frame.fresh and frame.y + needed > self.geometry.bottom_limit:
            self._start_page(frame)
        first_page = frame.page_index

        if has_header:
            self._draw_row(frame, wrapped_header, widths, header=True, shaded=False)

        for index, wrapped in enumerate(wrapped_body):
            row_height = self._row_height(wrapped)
            fits = frame.y + row_height <= self.geometry.bottom_limit
            oversized = header_height + row_height > self.geometry.content_height
            if not fits and not oversized and (frame.rows_on_page > 0 or not frame.fresh):
                self._continue_on_new_page(frame, widths, repeat_header)
            self._draw_row(
                frame,
                wrapped,
                widths,
                header=False,
                shaded=index % 2 == 1,
                repeat_header=repeat_header,
            )
            frame.rows_on_page += 1

        logger.debug(
            'Table with %d rows laid out on pages %d..%d',
            len(body),
            first_page,
            frame.page_index,
        )
        return TablePlacement(frame.page_index, frame.y, first_page, len(body))
