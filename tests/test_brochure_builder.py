import re
from contextlib import ExitStack
from unittest.mock import MagicMock, patch

import pytest
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from brochure_builder import (
    GALLERY_CELL_H,
    GALLERY_GAP,
    BrochureGenerationError,
    _compose_investment_gallery,
    _Document,
    _draw_gallery,
    build_brochure_pdf,
    render_brochure,
    render_combined_brochure,
)
from brochure_config import BrochureSettings
from image_pipeline import ImagePipeline
from layout_primitives import (
    BOTTOM_LIMIT,
    CONTENT_TOP,
    CONTENT_W,
    FOOTER_Y,
    MARGIN,
    PAGE_H,
    Direction,
    FontSet,
    LayoutCursor,
)
from localization import resolve
from property_models import PropertyRecord

LOGO_URL = "https://cdn.example.com/brand/logo.png"


def _pdf_page_count(pdf_bytes):
    return len(re.findall(rb"/Type /Page[^s]", pdf_bytes))


@pytest.mark.parametrize("language", ["en", "ar"])
def test_full_record_renders_four_pages(full_record, all_images, language):
    brochure = render_brochure(full_record, language, FontSet(), BrochureSettings())
    assert brochure.pdf_bytes.startswith(b"%PDF")
    assert brochure.page_numbers == [1, 2, 3, 4]
    assert brochure.page_count == 4
    assert _pdf_page_count(brochure.pdf_bytes) == 4


def test_images_are_fetched_once_per_document(full_record, all_images):
    render_brochure(full_record, "en")
    assert all_images.call_count == len(full_record.image_urls)


def test_record_without_images_still_renders(serve_images):
    get = serve_images({})
    record = PropertyRecord(title="Empty Lot", price=75000)
    brochure = render_brochure(record, "en")
    assert brochure.page_numbers == [1, 2, 3, 4]
    get.assert_not_called()


def test_unreachable_images_degrade_to_placeholders(full_record, serve_images):
    serve_images({})
    for language in ("en", "ar"):
        assert render_brochure(full_record, language).page_count == 4


def test_logo_is_downloaded_once_and_drawn_on_every_page(full_record, serve_images, png_bytes):
    get = serve_images({LOGO_URL: (png_bytes(300, 150), 200)})
    original = ImagePipeline.fetch_and_fit
    with patch.object(ImagePipeline, "fetch_and_fit", autospec=True, side_effect=original) as fit:
        render_brochure(full_record, "en", settings=BrochureSettings(logo_url=LOGO_URL))
    logo_calls = [call for call in fit.call_args_list if call.args[1] == LOGO_URL]
    assert len(logo_calls) == 4
    assert get.call_count == len(full_record.image_urls) + 1


def test_long_description_continues_on_next_page(record_payload, all_images):
    sentence = "The residence offers generous rooms and a calm setting near the waterfront. "
    record_payload["englishContent"]["description"] = "\n".join([sentence * 3] * 40)
    record = PropertyRecord.model_validate(record_payload)
    brochure = render_brochure(record, "en")
    assert brochure.page_count > 4
    assert brochure.page_numbers == list(range(1, brochure.page_count + 1))


def test_legacy_only_record_renders(record_payload, all_images):
    del record_payload["englishContent"]
    del record_payload["arabicContent"]
    record = PropertyRecord.model_validate(record_payload)
    assert render_brochure(record, "ar").page_count == 4


def test_combined_brochure_has_arabic_page(full_record, all_images):
    brochure = render_combined_brochure(full_record)
    assert brochure.language == "combined"
    assert brochure.page_numbers == [1, 2, 3, 4, 5]
    assert _pdf_page_count(brochure.pdf_bytes) == 5


def test_build_brochure_pdf_returns_bytes(full_record, all_images):
    pdf = build_brochure_pdf(full_record, "en")
    assert isinstance(pdf, bytes) and pdf.startswith(b"%PDF")


def test_serialization_failure_raises(full_record, serve_images):
    serve_images({})
    with patch("reportlab.pdfgen.canvas.Canvas.save", side_effect=IOError("disk full")):
        with pytest.raises(BrochureGenerationError, match="disk full"):
            render_brochure(full_record, "en")


def _record_text_positions(stack):
    positions = []
    for name in ("drawString", "drawRightString", "drawCentredString"):
        original = getattr(canvas.Canvas, name)

        def spy(self, x, y, text, *args, _original=original, **kwargs):
            positions.append((self.getPageNumber(), y, text))
            return _original(self, x, y, text, *args, **kwargs)

        stack.enter_context(patch.object(canvas.Canvas, name, spy))
    return positions


@pytest.mark.parametrize("language", ["en", "ar"])
def test_long_investment_and_thank_you_copy_paginate(record_payload, all_images, language):
    block = "englishContent" if language == "en" else "arabicContent"
    record_payload[block]["investmentText"] = "Strong rental yields in a growing district. " * 300
    record_payload[block]["thankYouMessage"] = "We look forward to hosting your private viewing. " * 200
    record = PropertyRecord.model_validate(record_payload)

    with ExitStack() as stack:
        positions = _record_text_positions(stack)
        brochure = render_brochure(record, language)

    assert brochure.page_count > 6
    assert brochure.page_numbers == list(range(1, brochure.page_count + 1))
    bottom = PAGE_H - BOTTOM_LIMIT
    below = [p for p in positions if p[1] != FOOTER_Y and p[1] < bottom]
    assert below == []
    investment_pages = {page for page, _, text in positions if text.startswith("Strong rental")}
    thank_you_pages = {page for page, _, text in positions if text.startswith("We look forward")}
    assert len(investment_pages) > 1
    assert len(thank_you_pages) > 1
    assert max(investment_pages) < min(thank_you_pages)


def _gallery_document():
    images = MagicMock()
    return _Document(MagicMock(), FontSet(), images), images


GALLERY = [f"https://cdn.example.com/gallery/{n}.png" for n in range(6)]
GALLERY_STEP = GALLERY_CELL_H + GALLERY_GAP


def test_gallery_places_at_most_four_images(full_record):
    doc, images = _gallery_document()
    start = LayoutCursor(CONTENT_TOP)
    end = _draw_gallery(doc, GALLERY, start, Direction.LTR, resolve(full_record, "en"))
    placed = [call.args[0] for call in images.place_or_placeholder.call_args_list]
    assert placed == GALLERY[:4]
    assert end.top - start.top == pytest.approx(2 * GALLERY_STEP)


def test_gallery_skips_slots_past_bottom_limit(full_record):
    doc, images = _gallery_document()
    start = LayoutCursor(BOTTOM_LIMIT - GALLERY_CELL_H - 5 * mm)
    end = _draw_gallery(doc, GALLERY, start, Direction.LTR, resolve(full_record, "en"))
    placed = [call.args[0] for call in images.place_or_placeholder.call_args_list]
    assert placed == GALLERY[:2]
    assert end.top - start.top == pytest.approx(GALLERY_STEP)
    for call in images.place_or_placeholder.call_args_list:
        assert call.args[2] >= PAGE_H - BOTTOM_LIMIT - 1e-6


def test_gallery_with_no_room_places_nothing(full_record):
    doc, images = _gallery_document()
    start = LayoutCursor(BOTTOM_LIMIT - 10 * mm)
    end = _draw_gallery(doc, GALLERY, start, Direction.LTR, resolve(full_record, "en"))
    images.place_or_placeholder.assert_not_called()
    assert end == start


def test_gallery_rtl_fills_right_column_first(full_record):
    doc, images = _gallery_document()
    _draw_gallery(doc, GALLERY[:2], LayoutCursor(), Direction.RTL, resolve(full_record, "ar"))
    xs = [call.args[1] for call in images.place_or_placeholder.call_args_list]
    assert xs[0] == pytest.approx(MARGIN + (CONTENT_W + GALLERY_GAP) / 2)
    assert xs[1] == pytest.approx(MARGIN)


def _investment_page_texts(record):
    doc, _ = _gallery_document()
    _compose_investment_gallery(doc, record, resolve(record, "en"), Direction.LTR)
    return [call.args[2] for call in doc.c.drawString.call_args_list]


def test_single_image_record_has_no_gallery_section():
    record = PropertyRecord(title="Loft", price=1, image_urls=["https://cdn.example.com/1.png"])
    texts = _investment_page_texts(record)
    assert "Investment Opportunity" in texts
    assert "Property Gallery" not in texts


def test_gallery_section_drawn_with_several_images(full_record):
    assert "Property Gallery" in _investment_page_texts(full_record)


def test_only_hero_and_four_gallery_images_are_downloaded(record_payload, serve_images, png_bytes):
    record_payload["imageUrls"] = GALLERY
    get = serve_images({url: (png_bytes(), 200) for url in GALLERY})
    render_brochure(PropertyRecord.model_validate(record_payload), "en")
    fetched = {call.args[0] for call in get.call_args_list}
    assert fetched == set(GALLERY[:5])
