# layout_primitives.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from reportlab.lib.colors import HexColor
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

# ====== PAGE GEOMETRY ======
PAGE_W, PAGE_H = A4
MARGIN = 20 * mm
CONTENT_W = PAGE_W - 2 * MARGIN
CONTENT_TOP = 32 * mm             # first cursor offset below the logo strip
BOTTOM_LIMIT = PAGE_H - 28 * mm   # cursor offsets past this belong to the footer
FOOTER_Y = 12 * mm

SECTION_HEADER_HEIGHT = 15 * mm
HEADER_BAR_HEIGHT = 10 * mm
ROW_HEIGHT = 8 * mm
LOGO_BOX = (PAGE_W - MARGIN - 32 * mm, PAGE_H - 24 * mm, 32 * mm, 16 * mm)

# ====== COLORS ======
NAVY = HexColor('#1F4E79')
GOLD = HexColor('#C9A227')
CREAM = HexColor('#FBF8F1')
PANEL = HexColor('#F1ECE0')
TEXT_DARK = HexColor('#3C3C3C')
MUTED = HexColor('#646464')
SHADOW = HexColor('#B8B8B8')
PLACEHOLDER_FILL = HexColor('#E6E6E6')
WHITE = colors.white

# ====== TYPOGRAPHY ======
FALLBACK_FONT = "Helvetica"
FALLBACK_FONT_BOLD = "Helvetica-Bold"


@dataclass(frozen=True)
class FontSet:
    """Registered font names, resolved once by the configuration layer.

    Either entry may be None. Arabic text prefers the Arabic font, Latin text
    the body font, and each falls back to the other before Helvetica.
    """
    arabic_font: Optional[str] = None
    body_font: Optional[str] = None

    @property
    def body(self) -> str:
        return self.body_font or self.arabic_font or FALLBACK_FONT

    @property
    def body_bold(self) -> str:
        # TTF fonts are registered without a bold face
        return self.body_font or self.arabic_font or FALLBACK_FONT_BOLD

    @property
    def arabic(self) -> str:
        return self.arabic_font or self.body_font or FALLBACK_FONT

    @property
    def arabic_bold(self) -> str:
        return self.arabic_font or self.body_font or FALLBACK_FONT_BOLD

    def regular(self, direction: "Direction") -> str:
        return self.arabic if direction.is_rtl else self.body

    def bold(self, direction: "Direction") -> str:
        return self.arabic_bold if direction.is_rtl else self.body_bold


class Direction(Enum):
    LTR = "ltr"
    RTL = "rtl"

    @property
    def is_rtl(self) -> bool:
        return self is Direction.RTL

    def leading_x(self, left: float, width: float) -> float:
        """X of the side a line starts from."""
        return left + width if self.is_rtl else left

    def inset(self, left: float, width: float, offset: float) -> float:
        """X moved `offset` from the leading edge into the box."""
        return left + width - offset if self.is_rtl else left + offset

    def columns(self, left: float, width: float, count: int = 2) -> List[float]:
        """Left edges of equal columns in reading order."""
        col_w = width / count
        xs = [left + i * col_w for i in range(count)]
        return list(reversed(xs)) if self.is_rtl else xs

    def draw_at(self, c: canvas.Canvas, x: float, y: float, text: str):
        """Draw with `x` as the leading edge of the text."""
        if self.is_rtl:
            c.drawRightString(x, y, text)
        else:
            c.drawString(x, y, text)

    def draw_string(self, c: canvas.Canvas, left: float, width: float, y: float, text: str):
        if self.is_rtl:
            c.drawRightString(left + width, y, text)
        else:
            c.drawString(left, y, text)


@dataclass(frozen=True)
class LayoutCursor:
    """Distance from the top edge of the page to the next free line."""
    top: float = CONTENT_TOP

    def advance(self, dy: float) -> "LayoutCursor":
        return LayoutCursor(self.top + dy)

    @property
    def y(self) -> float:
        """The same position in canvas coordinates (origin bottom-left)."""
        return PAGE_H - self.top

    def fits(self, height: float, limit: float = BOTTOM_LIMIT) -> bool:
        return self.top + height <= limit


NewPage = Callable[[], LayoutCursor]


def ensure_space(cursor: LayoutCursor, height: float, new_page: Optional[NewPage]) -> LayoutCursor:
    """Start a new page when a block of `height` would cross the bottom limit."""
    if new_page is None or cursor.fits(height):
        return cursor
    return new_page()


# ====== TEXT ======
def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """Greedy word wrap. Blank input lines are kept as paragraph breaks."""
    if not text:
        return []
    lines: List[str] = []
    for paragraph in str(text).splitlines():
        words = paragraph.split()
        if not words:
            if lines and lines[-1] != "":
                lines.append("")
            continue
        line = ""
        for word in words:
            test = f"{line} {word}" if line else word
            if pdfmetrics.stringWidth(test, font_name, font_size) <= max_width or not line:
                line = test
            else:
                lines.append(line)
                line = word
        if line:
            lines.append(line)
    while lines and lines[-1] == "":
        lines.pop()
    return lines


def draw_paragraph(c: canvas.Canvas, text: str, cursor: LayoutCursor, direction: Direction,
                   font_name: str, font_size: float, leading: float, color=TEXT_DARK,
                   left: float = MARGIN, width: float = CONTENT_W,
                   new_page: Optional[NewPage] = None) -> LayoutCursor:
    for line in wrap_text(text, font_name, font_size, width):
        cursor = ensure_space(cursor, leading, new_page)
        if line:
            c.saveState()
            c.setFont(font_name, font_size)
            c.setFillColor(color)
            direction.draw_string(c, left, width, cursor.y - font_size, line)
            c.restoreState()
        cursor = cursor.advance(leading)
    return cursor


def draw_centered_lines(c: canvas.Canvas, lines: Sequence[str], cursor: LayoutCursor,
                        font_name: str, font_size: float, leading: float, color) -> LayoutCursor:
    c.saveState()
    c.setFont(font_name, font_size)
    c.setFillColor(color)
    for line in lines:
        c.drawCentredString(PAGE_W / 2, cursor.y - font_size, line)
        cursor = cursor.advance(leading)
    c.restoreState()
    return cursor


# ====== HEADERS ======
def section_header(c: canvas.Canvas, title: str, cursor: LayoutCursor, direction: Direction,
                   fonts: FontSet, icon: bool = False) -> LayoutCursor:
    """Filled bar with the title on the reading side and a gold rule beneath."""
    bar_y = cursor.y - HEADER_BAR_HEIGHT
    c.saveState()
    c.setFillColor(NAVY)
    c.rect(MARGIN, bar_y, CONTENT_W, HEADER_BAR_HEIGHT, fill=1, stroke=0)
    c.setStrokeColor(GOLD)
    c.setLineWidth(1.2)
    c.line(MARGIN, bar_y - 1 * mm, MARGIN + CONTENT_W, bar_y - 1 * mm)

    text_offset = 4 * mm
    if icon:
        cx = direction.inset(MARGIN, CONTENT_W, 5 * mm)
        draw_diamond(c, cx, bar_y + HEADER_BAR_HEIGHT / 2, 2.2 * mm, GOLD)
        text_offset = 9 * mm
    c.setFillColor(WHITE)
    c.setFont(fonts.bold(direction), 13)
    baseline = bar_y + HEADER_BAR_HEIGHT / 2 - 13 * 0.35
    direction.draw_string(c, MARGIN + text_offset, CONTENT_W - 2 * text_offset, baseline, title)
    c.restoreState()
    return cursor.advance(SECTION_HEADER_HEIGHT)


# ====== GRID ======
def two_column_grid(items: Sequence[str], cursor: LayoutCursor, draw_item: Callable,
                    direction: Direction = Direction.LTR, left: float = MARGIN,
                    width: float = CONTENT_W, row_height: float = ROW_HEIGHT,
                    new_page: Optional[NewPage] = None) -> LayoutCursor:
    """Place items two per row, reading order first.

    `draw_item(item, x, column_width, cursor)` draws one cell. The grid takes
    exactly ceil(n / 2) rows.
    """
    columns = direction.columns(left, width, 2)
    col_w = width / 2
    for row_start in range(0, len(items), 2):
        cursor = ensure_space(cursor, row_height, new_page)
        for col, item in enumerate(items[row_start:row_start + 2]):
            draw_item(item, columns[col], col_w, cursor)
        cursor = cursor.advance(row_height)
    return cursor


def grid_height(count: int, row_height: float = ROW_HEIGHT) -> float:
    return math.ceil(count / 2) * row_height


# ====== MARKS ======
def draw_bullet(c: canvas.Canvas, cx: float, cy: float, radius: float = 1.3 * mm, color=GOLD):
    c.saveState()
    c.setFillColor(color)
    c.circle(cx, cy, radius, fill=1, stroke=0)
    c.restoreState()


def draw_checkmark(c: canvas.Canvas, x: float, y: float, size: float = 3.2 * mm, color=GOLD):
    """Tick drawn with two strokes; (x, y) is its bottom-left corner."""
    c.saveState()
    c.setStrokeColor(color)
    c.setLineWidth(1.4)
    c.setLineCap(1)
    path = c.beginPath()
    path.moveTo(x, y + size * 0.5)
    path.lineTo(x + size * 0.38, y + size * 0.1)
    path.lineTo(x + size, y + size * 0.95)
    c.drawPath(path, stroke=1, fill=0)
    c.restoreState()


def draw_diamond(c: canvas.Canvas, cx: float, cy: float, size: float, color=GOLD):
    c.saveState()
    c.setFillColor(color)
    path = c.beginPath()
    path.moveTo(cx, cy + size)
    path.lineTo(cx + size, cy)
    path.lineTo(cx, cy - size)
    path.lineTo(cx - size, cy)
    path.close()
    c.drawPath(path, stroke=0, fill=1)
    c.restoreState()


def draw_drop_shadow(c: canvas.Canvas, x: float, y: float, w: float, h: float,
                     offset: float = 1.5 * mm):
    c.saveState()
    c.setFillColor(SHADOW)
    c.rect(x + offset, y - offset, w, h, fill=1, stroke=0)
    c.restoreState()


def draw_border(c: canvas.Canvas, x: float, y: float, w: float, h: float,
                color=GOLD, width: float = 1.0):
    c.saveState()
    c.setStrokeColor(color)
    c.setLineWidth(width)
    c.rect(x, y, w, h, fill=0, stroke=1)
    c.restoreState()


# ====== PAGE DECORATION ======
def draw_page_background(c: canvas.Canvas):
    c.saveState()
    c.setFillColor(CREAM)
    c.rect(0, 0, PAGE_W, PAGE_H, fill=1, stroke=0)
    c.setFillColor(NAVY)
    c.rect(0, PAGE_H - 6 * mm, PAGE_W, 6 * mm, fill=1, stroke=0)
    c.setFillColor(GOLD)
    c.rect(0, PAGE_H - 7 * mm, PAGE_W, 1 * mm, fill=1, stroke=0)
    c.restoreState()


def draw_corner_ornaments(c: canvas.Canvas):
    arm = 12 * mm
    inset = 10 * mm
    c.saveState()
    c.setStrokeColor(GOLD)
    c.setLineWidth(1)
    corners = [
        (inset, inset, 1, 1),
        (PAGE_W - inset, inset, -1, 1),
        (inset, PAGE_H - inset - 7 * mm, 1, -1),
        (PAGE_W - inset, PAGE_H - inset - 7 * mm, -1, -1),
    ]
    for x, y, dx, dy in corners:
        c.line(x, y, x + dx * arm, y)
        c.line(x, y, x, y + dy * arm)
        draw_diamond(c, x, y, 1.2 * mm, GOLD)
    c.restoreState()


def draw_page_number(c: canvas.Canvas, page_num: int, fonts: FontSet):
    c.saveState()
    c.setStrokeColor(GOLD)
    c.setLineWidth(0.6)
    c.line(MARGIN + 30 * mm, FOOTER_Y + 5 * mm, PAGE_W / 2 - 8 * mm, FOOTER_Y + 5 * mm)
    c.line(PAGE_W / 2 + 8 * mm, FOOTER_Y + 5 * mm, PAGE_W - MARGIN - 30 * mm, FOOTER_Y + 5 * mm)
    draw_diamond(c, PAGE_W / 2, FOOTER_Y + 5 * mm, 1.5 * mm, GOLD)
    c.setFillColor(MUTED)
    c.setFont(fonts.body, 9)
    c.drawCentredString(PAGE_W / 2, FOOTER_Y, str(page_num))
    c.restoreState()


def draw_decorative_footer(c: canvas.Canvas, cursor: LayoutCursor) -> None:
    """Gold rule with three diamonds; leaves the cursor alone."""
    y = cursor.y
    c.saveState()
    c.setStrokeColor(GOLD)
    c.setLineWidth(0.8)
    c.line(MARGIN + 25 * mm, y, PAGE_W - MARGIN - 25 * mm, y)
    c.restoreState()
    for dx in (-6 * mm, 0, 6 * mm):
        draw_diamond(c, PAGE_W / 2 + dx, y, 1.6 * mm if dx == 0 else 1.0 * mm, GOLD)
