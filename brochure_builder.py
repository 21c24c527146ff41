# brochure_builder.py
from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from brochure_config import BrochureSettings
from formatting import format_location, format_price
from image_pipeline import ImagePipeline, ImageUnavailable
from layout_primitives import (
    BOTTOM_LIMIT,
    CONTENT_TOP,
    CONTENT_W,
    GOLD,
    LOGO_BOX,
    MARGIN,
    MUTED,
    NAVY,
    PAGE_W,
    PANEL,
    ROW_HEIGHT,
    SECTION_HEADER_HEIGHT,
    TEXT_DARK,
    WHITE,
    Direction,
    FontSet,
    LayoutCursor,
    draw_border,
    draw_bullet,
    draw_centered_lines,
    draw_checkmark,
    draw_corner_ornaments,
    draw_decorative_footer,
    draw_diamond,
    draw_drop_shadow,
    draw_page_background,
    draw_page_number,
    draw_paragraph,
    ensure_space,
    section_header,
    two_column_grid,
    wrap_text,
)
from localization import ResolvedContent, resolve
from performance_tracker import log_capture, track_time
from property_models import Language, PropertyRecord

# ====== PAGE CONTENT GEOMETRY ======
HERO_H = 100 * mm
GALLERY_SLOTS = 4
GALLERY_CELL_H = 60 * mm
GALLERY_GAP = 8 * mm
SECTION_GAP = 6 * mm
BULLET_INDENT = 7 * mm
CARD_ROW_H = 10 * mm

# ====== TYPOGRAPHY ======
BODY_SIZE = 10.5
BODY_LEADING = 5.5 * mm
TITLE_SIZE = 22
MESSAGE_LEADING = 7 * mm


class BrochureGenerationError(Exception):
    """The finished document could not be serialized."""


@dataclass
class RenderedBrochure:
    language: str
    pdf_bytes: bytes
    page_numbers: List[int] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.page_numbers)


class _Document:
    """One canvas being drawn, with the decoration every page receives."""

    def __init__(self, c: canvas.Canvas, fonts: FontSet, images: ImagePipeline,
                 logo_url: Optional[str] = None):
        self.c = c
        self.fonts = fonts
        self.images = images
        self.logo_url = logo_url
        self.page_numbers: List[int] = []

    def start_page(self) -> LayoutCursor:
        draw_page_background(self.c)
        draw_corner_ornaments(self.c)
        if self.logo_url:
            x, y, w, h = LOGO_BOX
            try:
                self.images.fetch_and_fit(self.logo_url, x, y, w, h)
            except ImageUnavailable:
                log_capture.log(f"[PDF] Logo skipped on page {self.c.getPageNumber()}", "WARNING", silent=True)
        return LayoutCursor(CONTENT_TOP)

    def finish_page(self):
        page_num = self.c.getPageNumber()
        draw_page_number(self.c, page_num, self.fonts)
        self.page_numbers.append(page_num)
        self.c.showPage()

    def continue_on_new_page(self) -> LayoutCursor:
        log_capture.info(f"[PDF] Page {self.c.getPageNumber()} is full; continuing on a new page")
        self.finish_page()
        return self.start_page()


def _open_document(record: PropertyRecord, content: ResolvedContent, fonts: FontSet,
                   settings: BrochureSettings):
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(content.title)
    c.setSubject("Property brochure")
    if record.agent.name:
        c.setAuthor(record.agent.name)
    images = ImagePipeline(c, timeout=settings.image_fetch_timeout,
                           max_workers=settings.image_fetch_workers)
    images.prefetch(list(record.image_urls[:1 + GALLERY_SLOTS]) + [settings.logo_url])
    return _Document(c, fonts, images, settings.logo_url), buffer


def _serialize(doc: _Document, buffer: BytesIO) -> bytes:
    try:
        doc.c.save()
    except Exception as e:
        log_capture.error(f"[PDF] Serialization failed: {e}")
        raise BrochureGenerationError(f"failed to generate PDF: {e}") from e
    return buffer.getvalue()


# ====== BLOCKS ======
def _draw_bullet_item(doc: _Document, text: str, cursor: LayoutCursor, direction: Direction,
                      new_page) -> LayoutCursor:
    font = doc.fonts.regular(direction)
    width = CONTENT_W - BULLET_INDENT
    lines = wrap_text(text, font, BODY_SIZE, width)
    cursor = ensure_space(cursor, len(lines) * BODY_LEADING, new_page)
    cx = direction.inset(MARGIN, CONTENT_W, 2.5 * mm)
    draw_bullet(doc.c, cx, cursor.y - BODY_SIZE * 0.65)
    left = MARGIN if direction.is_rtl else MARGIN + BULLET_INDENT
    cursor = draw_paragraph(doc.c, text, cursor, direction, font, BODY_SIZE, BODY_LEADING,
                            left=left, width=width)
    return cursor.advance(1.5 * mm)


def _draw_panel_background(c: canvas.Canvas, cursor: LayoutCursor, height: float,
                           direction: Direction):
    c.saveState()
    c.setFillColor(PANEL)
    c.rect(MARGIN, cursor.y - height, CONTENT_W, height, fill=1, stroke=0)
    c.setFillColor(GOLD)
    bar_x = MARGIN + CONTENT_W - 1.5 * mm if direction.is_rtl else MARGIN
    c.rect(bar_x, cursor.y - height, 1.5 * mm, height, fill=1, stroke=0)
    c.restoreState()


def _draw_panel_text(doc: _Document, text: str, cursor: LayoutCursor, direction: Direction,
                     new_page) -> LayoutCursor:
    """Shaded text panel. Text past the bottom limit continues in a new panel on the next page."""
    c = doc.c
    font = doc.fonts.regular(direction)
    pad = 5 * mm
    lines = wrap_text(text, font, BODY_SIZE, CONTENT_W - 2 * pad)
    while lines:
        if new_page is None:
            room = len(lines)
        else:
            room = int((BOTTOM_LIMIT - cursor.top - 2 * pad) // BODY_LEADING)
            if room < 1:
                cursor = new_page()
                continue
        chunk, lines = lines[:room], lines[room:]
        panel_h = len(chunk) * BODY_LEADING + 2 * pad
        _draw_panel_background(c, cursor, panel_h, direction)
        row = cursor.advance(pad)
        c.saveState()
        c.setFont(font, BODY_SIZE)
        c.setFillColor(TEXT_DARK)
        for line in chunk:
            if line:
                direction.draw_string(c, MARGIN + pad, CONTENT_W - 2 * pad, row.y - BODY_SIZE, line)
            row = row.advance(BODY_LEADING)
        c.restoreState()
        cursor = cursor.advance(panel_h)
        if lines:
            cursor = new_page()
    return cursor


def _draw_gallery(doc: _Document, urls: Sequence[str], cursor: LayoutCursor,
                  direction: Direction, content: ResolvedContent) -> LayoutCursor:
    """2x2 grid; a slot that would cross the bottom limit is skipped."""
    c = doc.c
    cell_w = (CONTENT_W - GALLERY_GAP) / 2
    columns = direction.columns(MARGIN, CONTENT_W + GALLERY_GAP, 2)
    step = GALLERY_CELL_H + GALLERY_GAP
    rows_used = 0
    for index, url in enumerate(urls[:GALLERY_SLOTS]):
        row, col = divmod(index, 2)
        slot = cursor.advance(row * step)
        if not slot.fits(GALLERY_CELL_H):
            log_capture.warning(f"[PDF] Gallery image {index + 1} skipped: no room on page")
            continue
        x = columns[col]
        y = slot.y - GALLERY_CELL_H
        draw_drop_shadow(c, x, y, cell_w, GALLERY_CELL_H)
        c.saveState()
        c.setFillColor(WHITE)
        c.rect(x, y, cell_w, GALLERY_CELL_H, fill=1, stroke=0)
        c.restoreState()
        doc.images.place_or_placeholder(url, x, y, cell_w, GALLERY_CELL_H,
                                        caption=content.label("image_placeholder"),
                                        caption_font=doc.fonts.regular(direction))
        draw_border(c, x, y, cell_w, GALLERY_CELL_H, GOLD, 0.8)
        rows_used = row + 1
    return cursor.advance(rows_used * step)


# ====== PAGES ======
@track_time("compose_cover_page")
def _compose_cover(doc: _Document, record: PropertyRecord, content: ResolvedContent,
                   direction: Direction):
    c, fonts = doc.c, doc.fonts
    bold = fonts.bold(direction)
    cursor = doc.start_page()

    cursor = draw_centered_lines(c, [content.label("cover_heading")], cursor, bold, 12, 9 * mm, GOLD)

    box_y = cursor.y - HERO_H
    doc.images.place_or_placeholder(record.hero_image_url, MARGIN, box_y, CONTENT_W, HERO_H,
                                    caption=content.label("image_placeholder"),
                                    caption_font=fonts.regular(direction))
    draw_border(c, MARGIN, box_y, CONTENT_W, HERO_H, GOLD, 1.5)
    cursor = cursor.advance(HERO_H + 10 * mm)

    title_lines = wrap_text(content.title, bold, TITLE_SIZE, CONTENT_W)[:3]
    cursor = draw_centered_lines(c, title_lines, cursor, bold, TITLE_SIZE, 10 * mm, NAVY)
    cursor = cursor.advance(3 * mm)

    cursor = draw_centered_lines(c, [content.label("price_label")], cursor,
                                 fonts.regular(direction), 10, 5 * mm, MUTED)
    price = format_price(record.price, record.currency)
    cursor = draw_centered_lines(c, [price], cursor, fonts.body_bold, 18, 10 * mm, GOLD)

    placeholder = content.label("location_placeholder")
    location = format_location(record.address, record.city, record.state, record.zip_code,
                               placeholder=placeholder)
    loc_font = fonts.regular(direction) if location == placeholder else fonts.body
    draw_centered_lines(c, wrap_text(location, loc_font, 11, CONTENT_W)[:2], cursor,
                        loc_font, 11, 6 * mm, MUTED)

    draw_decorative_footer(c, LayoutCursor(BOTTOM_LIMIT))
    doc.finish_page()


@track_time("compose_details_page")
def _compose_details(doc: _Document, content: ResolvedContent, direction: Direction):
    c, fonts = doc.c, doc.fonts
    regular = fonts.regular(direction)
    new_page = doc.continue_on_new_page
    cursor = doc.start_page()

    cursor = section_header(c, content.label("property_description_label"), cursor, direction,
                            fonts, icon=True)
    cursor = draw_paragraph(c, content.description, cursor, direction, regular, BODY_SIZE,
                            BODY_LEADING, new_page=new_page)
    cursor = cursor.advance(SECTION_GAP)

    if content.highlights:
        cursor = ensure_space(cursor, SECTION_HEADER_HEIGHT + BODY_LEADING, new_page)
        cursor = section_header(c, content.label("key_highlights_label"), cursor, direction, fonts)
        for highlight in content.highlights:
            cursor = _draw_bullet_item(doc, highlight, cursor, direction, new_page)
        cursor = cursor.advance(SECTION_GAP)

    if content.amenities:
        cursor = ensure_space(cursor, SECTION_HEADER_HEIGHT + ROW_HEIGHT, new_page)
        cursor = section_header(c, content.label("amenities_label"), cursor, direction, fonts)

        def draw_amenity(item: str, x: float, col_w: float, row: LayoutCursor):
            check = 3.2 * mm
            check_x = x + col_w - 2 * mm - check if direction.is_rtl else x + 2 * mm
            draw_checkmark(doc.c, check_x, row.y - 6 * mm)
            text_w = col_w - 10 * mm
            lines = wrap_text(item, regular, BODY_SIZE, text_w)
            text = lines[0] if lines else ""
            if len(lines) > 1:
                text = text.rstrip(".,;") + "..."
            left = x + 2 * mm if direction.is_rtl else x + 8 * mm
            doc.c.saveState()
            doc.c.setFont(regular, BODY_SIZE)
            doc.c.setFillColor(TEXT_DARK)
            direction.draw_string(doc.c, left, text_w, row.y - 5.6 * mm, text)
            doc.c.restoreState()

        two_column_grid(content.amenities, cursor, draw_amenity, direction, new_page=new_page)

    doc.finish_page()


@track_time("compose_investment_gallery_page")
def _compose_investment_gallery(doc: _Document, record: PropertyRecord,
                                content: ResolvedContent, direction: Direction):
    c, fonts = doc.c, doc.fonts
    new_page = doc.continue_on_new_page
    cursor = doc.start_page()

    # heading stays with the first panel lines
    cursor = ensure_space(cursor, SECTION_HEADER_HEIGHT + BODY_LEADING + 10 * mm, new_page)
    cursor = section_header(c, content.label("investment_heading"), cursor, direction, fonts,
                            icon=True)
    cursor = _draw_panel_text(doc, content.label("investment_text"), cursor, direction, new_page)

    gallery_urls = record.image_urls[1:1 + GALLERY_SLOTS]
    if gallery_urls:
        cursor = cursor.advance(SECTION_GAP)
        cursor = ensure_space(cursor, SECTION_HEADER_HEIGHT + GALLERY_CELL_H, new_page)
        cursor = section_header(c, content.label("property_gallery_label"), cursor, direction, fonts)
        _draw_gallery(doc, gallery_urls, cursor, direction, content)

    doc.finish_page()


@track_time("compose_contact_page")
def _compose_contact(doc: _Document, record: PropertyRecord, content: ResolvedContent,
                     direction: Direction):
    c, fonts = doc.c, doc.fonts
    regular, bold = fonts.regular(direction), fonts.bold(direction)
    new_page = doc.continue_on_new_page
    cursor = doc.start_page()

    cursor = section_header(c, content.label("agent_label"), cursor, direction, fonts, icon=True)

    rows = [
        (content.label("name_label"), record.agent.name),
        (content.label("email_label"), record.agent.email),
        (content.label("phone_label"), record.agent.phone),
    ]
    card_h = len(rows) * CARD_ROW_H + 8 * mm
    card_y = cursor.y - card_h
    c.saveState()
    c.setFillColor(PANEL)
    c.roundRect(MARGIN, card_y, CONTENT_W, card_h, 3 * mm, fill=1, stroke=0)
    c.setFillColor(GOLD)
    bar_x = MARGIN + CONTENT_W - 2 * mm if direction.is_rtl else MARGIN
    c.rect(bar_x, card_y, 2 * mm, card_h, fill=1, stroke=0)
    c.restoreState()

    label_x = direction.inset(MARGIN, CONTENT_W, 10 * mm)
    value_x = direction.inset(MARGIN, CONTENT_W, 55 * mm)
    row = cursor.advance(4 * mm)
    for label, value in rows:
        baseline = row.y - 6.5 * mm
        c.saveState()
        c.setFillColor(NAVY)
        c.setFont(bold, 11)
        direction.draw_at(c, label_x, baseline, label)
        c.setFillColor(TEXT_DARK)
        c.setFont(fonts.body, 11)
        direction.draw_at(c, value_x, baseline, value or "-")
        c.restoreState()
        row = row.advance(CARD_ROW_H)
    cursor = cursor.advance(card_h + 25 * mm)

    cursor = ensure_space(cursor, 14 * mm + MESSAGE_LEADING, new_page)
    for dx in (-10 * mm, 10 * mm):
        draw_diamond(c, PAGE_W / 2 + dx, cursor.y + 4 * mm, 1.8 * mm, GOLD)
    cursor = draw_centered_lines(c, [content.label("thank_you_heading")], cursor, bold, 24,
                                 14 * mm, NAVY)
    message = wrap_text(content.label("thank_you_message"), regular, 12, CONTENT_W - 30 * mm)
    for line in message:
        cursor = ensure_space(cursor, MESSAGE_LEADING, new_page)
        cursor = draw_centered_lines(c, [line], cursor, regular, 12, MESSAGE_LEADING, MUTED)

    draw_decorative_footer(c, LayoutCursor(BOTTOM_LIMIT))
    doc.finish_page()


@track_time("compose_arabic_description_page")
def _compose_arabic_interstitial(doc: _Document, arabic: ResolvedContent):
    direction = Direction.RTL
    cursor = doc.start_page()
    cursor = section_header(doc.c, arabic.label("arabic_description_heading"), cursor, direction,
                            doc.fonts, icon=True)
    draw_paragraph(doc.c, arabic.description, cursor, direction, doc.fonts.arabic, BODY_SIZE,
                   BODY_LEADING, new_page=doc.continue_on_new_page)
    doc.finish_page()


# ====== PUBLIC API ======
@track_time("render_brochure")
def render_brochure(record: PropertyRecord, language, fonts: Optional[FontSet] = None,
                    settings: Optional[BrochureSettings] = None) -> RenderedBrochure:
    """Draw the four-page brochure for one language."""
    language = Language(language)
    fonts = fonts or FontSet()
    settings = settings or BrochureSettings()
    content = resolve(record, language)
    direction = Direction.RTL if language is Language.ARABIC else Direction.LTR

    doc, buffer = _open_document(record, content, fonts, settings)
    _compose_cover(doc, record, content, direction)
    _compose_details(doc, content, direction)
    _compose_investment_gallery(doc, record, content, direction)
    _compose_contact(doc, record, content, direction)
    pdf_bytes = _serialize(doc, buffer)

    log_capture.info(
        f"[PDF] {language.value} brochure generated: {len(doc.page_numbers)} pages, "
        f"{len(pdf_bytes)} bytes ({content.source} content)"
    )
    return RenderedBrochure(language.value, pdf_bytes, list(doc.page_numbers))


@track_time("render_combined_brochure")
def render_combined_brochure(record: PropertyRecord, fonts: Optional[FontSet] = None,
                             settings: Optional[BrochureSettings] = None) -> RenderedBrochure:
    """English brochure with the Arabic description on its own page before the contact page."""
    fonts = fonts or FontSet()
    settings = settings or BrochureSettings()
    english = resolve(record, Language.ENGLISH)
    arabic = resolve(record, Language.ARABIC)
    direction = Direction.LTR

    doc, buffer = _open_document(record, english, fonts, settings)
    _compose_cover(doc, record, english, direction)
    _compose_details(doc, english, direction)
    _compose_investment_gallery(doc, record, english, direction)
    _compose_arabic_interstitial(doc, arabic)
    _compose_contact(doc, record, english, direction)
    pdf_bytes = _serialize(doc, buffer)

    log_capture.info(
        f"[PDF] combined brochure generated: {len(doc.page_numbers)} pages, {len(pdf_bytes)} bytes"
    )
    return RenderedBrochure("combined", pdf_bytes, list(doc.page_numbers))


def build_brochure_pdf(record: PropertyRecord, language, fonts: Optional[FontSet] = None,
                       settings: Optional[BrochureSettings] = None) -> bytes:
    return render_brochure(record, language, fonts, settings).pdf_bytes


def build_combined_brochure_pdf(record: PropertyRecord, fonts: Optional[FontSet] = None,
                                settings: Optional[BrochureSettings] = None) -> bytes:
    return render_combined_brochure(record, fonts, settings).pdf_bytes
