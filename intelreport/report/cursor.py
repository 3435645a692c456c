from __future__ import annotations

import logging

from .canvas import Canvas
from .styles import PageGeometry


logger = logging.getLogger(__name__)


class PageCursor:
    """Vertical write position within the page margins.

    Owns every page-break decision of a build. ``page_index`` and ``y`` only
    move forward; ``y`` resets to ``margin_top`` whenever a page starts.
    """

    def __init__(self, canvas: Canvas, geometry: PageGeometry):
        self.canvas = canvas
        self.geometry = geometry
        self.page_index = canvas.current_page()
        self.y = geometry.margin_top

    @property
    def top(self) -> float:
        return self.geometry.margin_top

    @property
    def bottom(self) -> float:
        return self.geometry.bottom_limit

    @property
    def left(self) -> float:
        return self.geometry.margin_left

    @property
    def content_width(self) -> float:
        return self.geometry.content_width

    def remaining(self) -> float:
        return self.bottom - self.y

    def at_page_top(self) -> bool:
        return self.y <= self.top

    def new_page(self) -> int:
        self.page_index = self.canvas.add_page()
        self.y = self.top
        return self.page_index

    def ensure_space(self, required_height: float) -> bool:
        """Break the page when ``required_height`` does not fit below ``y``.

        Returns True when a new page was started. Content taller than a whole
        page is placed at the top of a fresh page and left to the caller.
        """
        if self.y + required_height <= self.bottom:
            return False
        if self.at_page_top():
            logger.debug(
                'Block of %.1fpt exceeds printable height %.1fpt on page %d',
                required_height,
                self.geometry.content_height,
                self.page_index,
            )
            return False
        self.new_page()
        return True

    def advance(self, height: float) -> None:
        self.y = min(self.bottom, self.y + max(0.0, float(height)))

    def gap(self, height: float) -> None:
        # Gaps are dropped at the top of a page.
        if self.at_page_top():
            return
        self.advance(height)

    def move_to(self, y: float) -> None:
        self.y = min(self.bottom, max(self.top, float(y)))

    def sync(self, page_index: int, y: float) -> None:
        if page_index < self.page_index:
            raise ValueError(f'cursor cannot move back from page {self.page_index} to {page_index}')
        self.page_index = page_index
        self.move_to(y)
