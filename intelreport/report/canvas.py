from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence, Union, runtime_checkable

from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas as pdf_canvas

from .styles import PAGE_HEIGHT, PAGE_WIDTH


logger = logging.getLogger(__name__)

# Baseline sits this fraction of the font size below the top of a line box.
BASELINE_RATIO = 0.8


@dataclass(frozen=True)
class TextOp:
    text: str
    x: float
    y: float
    font_name: str
    font_size: float
    color: str
    align: str = 'left'


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: str | None = None
    stroke: str | None = None
    line_width: float = 1.0


DrawOp = Union[TextOp, RectOp]


@runtime_checkable
class Canvas(Protocol):
    """Drawing capabilities the layout engine relies on.

    Coordinates are top-down: ``y`` grows from the top edge of the page.
    Text ``y`` is the baseline; rectangle ``y`` is the top edge.
    """

    page_width: float
    page_height: float

    def add_page(self) -> int: ...

    def current_page(self) -> int: ...

    def page_count(self) -> int: ...

    def set_page(self, page: int) -> None: ...

    def is_blank_page(self, page: int | None = None) -> bool: ...

    def write_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font_name: str,
        font_size: float,
        color: str,
        align: str = 'left',
    ) -> None: ...

    def write_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: str | None = None,
        stroke: str | None = None,
        line_width: float = 1.0,
    ) -> None: ...

    def measure_text(self, text: str, *, font_name: str, font_size: float) -> float: ...

    def measure_wrap(self, text: str, width: float, *, font_name: str, font_size: float) -> list[str]: ...

    def to_bytes(self) -> bytes: ...


def _split_token_by_width(token: str, *, max_width: float, measure: Callable[[str], float]) -> list[str]:
    chunks: list[str] = []
    current = ''
    for char in token:
        candidate = f'{current}{char}'
        if measure(candidate) <= max_width:
            current = candidate
            continue
        if current:
            chunks.append(current)
            current = char
            continue
        chunks.append(char)
        current = ''
    if current:
        chunks.append(current)
    return chunks


def wrap_text(text: str, width: float, measure: Callable[[str], float]) -> list[str]:
    """Greedy word wrap. Explicit newlines are kept; blank lines are dropped."""
    lines: list[str] = []
    max_width = max(1.0, float(width))
    for raw_line in str(text or '').replace('\r\n', '\n').split('\n'):
        words = raw_line.split()
        if not words:
            continue
        current = ''
        for word in words:
            candidate = f'{current} {word}' if current else word
            if measure(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
                current = ''
            if measure(word) <= max_width:
                current = word
                continue
            pieces = _split_token_by_width(word, max_width=max_width, measure=measure)
            lines.extend(pieces[:-1])
            current = pieces[-1] if pieces else ''
        if current:
            lines.append(current)
    return lines


def _measure_text_width(text: str, *, font_name: str, font_size: float) -> float:
    text_value = str(text or '')
    if not text_value:
        return 0.0
    normalized_font_size = max(1.0, float(font_size))
    try:
        return float(pdfmetrics.stringWidth(text_value, font_name, normalized_font_size))
    except Exception:
        pass

    width = 0.0
    for char in text_value:
        if char.isspace():
            width += normalized_font_size * 0.45
        elif ord(char) > 127:
            width += normalized_font_size * 0.98
        else:
            width += normalized_font_size * 0.56
    return width


def _safe_canvas_font(canvas, font_name: str, size: float) -> None:
    for candidate in (str(font_name or '').strip(), 'Helvetica'):
        if not candidate:
            continue
        try:
            canvas.setFont(candidate, size)
            return
        except Exception:
            continue


class ReportLabCanvas:
    """Page-addressable canvas backed by reportlab.

    reportlab's canvas only writes forward, so drawing operations are kept
    per page and replayed when the document is serialized.
    """

    def __init__(
        self,
        *,
        page_width: float = PAGE_WIDTH,
        page_height: float = PAGE_HEIGHT,
        title: str = '',
        author: str = '',
        subject: str = '',
        auto_size_columns: bool = True,
    ):
        self.page_width = float(page_width)
        self.page_height = float(page_height)
        self.title = title
        self.author = author
        self.subject = subject
        self.auto_size_columns = auto_size_columns
        self._pages: list[list[DrawOp]] = [[]]
        self._current = 1

    def add_page(self) -> int:
        self._pages.append([])
        self._current = len(self._pages)
        return self._current

    def current_page(self) -> int:
        return self._current

    def page_count(self) -> int:
        return len(self._pages)

    def set_page(self, page: int) -> None:
        if page < 1 or page > len(self._pages):
            raise IndexError(f'page {page} out of range 1..{len(self._pages)}')
        self._current = page

    def is_blank_page(self, page: int | None = None) -> bool:
        return not self._pages[(page or self._current) - 1]

    def page_ops(self, page: int) -> list[DrawOp]:
        return list(self._pages[page - 1])

    def write_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font_name: str,
        font_size: float,
        color: str,
        align: str = 'left',
    ) -> None:
        self._pages[self._current - 1].append(
            TextOp(str(text), float(x), float(y), font_name, float(font_size), color, align)
        )

    def write_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: str | None = None,
        stroke: str | None = None,
        line_width: float = 1.0,
    ) -> None:
        self._pages[self._current - 1].append(
            RectOp(float(x), float(y), float(width), float(height), fill, stroke, float(line_width))
        )

    def measure_text(self, text: str, *, font_name: str, font_size: float) -> float:
        return _measure_text_width(text, font_name=font_name, font_size=font_size)

    def measure_wrap(self, text: str, width: float, *, font_name: str, font_size: float) -> list[str]:
        return wrap_text(
            text,
            width,
            lambda value: _measure_text_width(value, font_name=font_name, font_size=font_size),
        )

    def auto_column_widths(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        column_count: int,
        total_width: float,
        font_name: str,
        font_size: float,
        padding: float,
    ) -> list[float] | None:
        if not self.auto_size_columns or column_count <= 0:
            return None

        natural = [0.0] * column_count
        longest_word = [0.0] * column_count
        for row in [list(headers), *[list(r) for r in rows]]:
            for index, cell in enumerate(row[:column_count]):
                width = _measure_text_width(cell, font_name=font_name, font_size=font_size) + 2 * padding
                natural[index] = max(natural[index], width)
                for word in str(cell or '').split():
                    word_width = _measure_text_width(word, font_name=font_name, font_size=font_size) + 2 * padding
                    longest_word[index] = max(longest_word[index], word_width)

        fair_share = total_width / column_count
        floor = min(fair_share, 48.0)
        weighted = [max(width, floor) for width in natural]
        total_natural = sum(weighted)
        if total_natural <= 0:
            return None
        widths = [total_width * width / total_natural for width in weighted]

        # No column narrower than its longest word, capped at an even share.
        minimum = [min(fair_share, max(floor, word)) for word in longest_word]
        shortfall = sum(max(0.0, low - width) for width, low in zip(widths, minimum))
        if shortfall <= 0:
            return widths
        widths = [max(width, low) for width, low in zip(widths, minimum)]
        slack = [width - low for width, low in zip(widths, minimum)]
        total_slack = sum(slack)
        return [width - shortfall * extra / total_slack for width, extra in zip(widths, slack)]

    def _draw_op(self, canvas, op: DrawOp) -> None:
        if isinstance(op, RectOp):
            bottom = self.page_height - op.y - op.height
            if op.fill:
                canvas.setFillColor(colors.HexColor(op.fill))
            if op.stroke:
                canvas.setStrokeColor(colors.HexColor(op.stroke))
                canvas.setLineWidth(op.line_width)
            canvas.rect(op.x, bottom, op.width, op.height, stroke=1 if op.stroke else 0, fill=1 if op.fill else 0)
            return

        baseline = self.page_height - op.y
        canvas.setFillColor(colors.HexColor(op.color))
        _safe_canvas_font(canvas, op.font_name, op.font_size)
        if op.align == 'center':
            canvas.drawCentredString(op.x, baseline, op.text)
        elif op.align == 'right':
            canvas.drawRightString(op.x, baseline, op.text)
        else:
            canvas.drawString(op.x, baseline, op.text)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        canvas = pdf_canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height), pageCompression=1)
        canvas.setTitle(self.title)
        canvas.setAuthor(self.author)
        canvas.setSubject(self.subject)
        canvas.setProducer(self.author or 'intelreport')

        for page_ops in self._pages:
            canvas.saveState()
            for op in page_ops:
                self._draw_op(canvas, op)
            canvas.restoreState()
            canvas.showPage()
        canvas.save()

        payload = buffer.getvalue()
        logger.debug('Serialized %d pages (%d bytes)', len(self._pages), len(payload))
        return payload
