"""
Remote image placement for brochure pages.

Images are fetched once per document, measured with Pillow and drawn
aspect-fit inside the requested box. Every failure along the way (network,
HTTP status, undecodable bytes, a draw error) is local to that one image:
the caller gets ImageUnavailable and draws a placeholder instead.
"""
from __future__ import annotations

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Iterable, Optional, Tuple, Union

import requests
from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from layout_primitives import FALLBACK_FONT, MUTED, PLACEHOLDER_FILL, SHADOW
from performance_tracker import log_capture

DEFAULT_TIMEOUT = 15
DEFAULT_WORKERS = 4


class ImageUnavailable(Exception):
    """The image could not be fetched or drawn; draw a placeholder."""


@dataclass(frozen=True)
class RenderedImage:
    url: str
    data: bytes
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def decoded(self) -> bool:
        return bool(self.width and self.height)


@dataclass(frozen=True)
class PlacedImage:
    image_id: str
    x: float
    y: float
    width: float
    height: float
    aspect_corrected: bool = True


def fit_rect(intrinsic_w: float, intrinsic_h: float, box_x: float, box_y: float,
             box_w: float, box_h: float) -> Tuple[float, float, float, float]:
    """Largest rectangle with the source aspect ratio inside the box, centered."""
    scale = min(box_w / intrinsic_w, box_h / intrinsic_h)
    draw_w = intrinsic_w * scale
    draw_h = intrinsic_h * scale
    return (
        box_x + (box_w - draw_w) / 2,
        box_y + (box_h - draw_h) / 2,
        draw_w,
        draw_h,
    )


def measure_image(data: bytes) -> Tuple[Optional[int], Optional[int]]:
    try:
        with Image.open(BytesIO(data)) as im:
            width, height = im.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None, None
    if width <= 0 or height <= 0:
        return None, None
    return width, height


class ImagePipeline:
    """Fetches and places images on one canvas. Not shared between documents."""

    def __init__(self, c: canvas.Canvas, timeout: float = DEFAULT_TIMEOUT,
                 max_workers: int = DEFAULT_WORKERS):
        self.canvas = c
        self.timeout = timeout
        self.max_workers = max(1, int(max_workers))
        self._fetched: Dict[str, Union[RenderedImage, ImageUnavailable]] = {}
        self.registered: Dict[str, str] = {}

    # ---- fetching ----
    def _download(self, url: str) -> Union[RenderedImage, ImageUnavailable]:
        if not url or not url.strip():
            return ImageUnavailable("empty image URL")
        try:
            resp = requests.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log_capture.warning(f"[Images] Download failed for {url}: {e}")
            return ImageUnavailable(str(e))
        data = resp.content or b""
        if not data:
            log_capture.warning(f"[Images] Empty response body for {url}")
            return ImageUnavailable("empty response body")
        width, height = measure_image(data)
        if width is None:
            log_capture.warning(f"[Images] Could not decode {url}; placing without aspect correction")
        return RenderedImage(url=url, data=data, width=width, height=height)

    def fetch(self, url: str) -> RenderedImage:
        """Blocking fetch. A failed URL is not retried within the document."""
        if url not in self._fetched:
            self._fetched[url] = self._download(url)
        result = self._fetched[url]
        if isinstance(result, ImageUnavailable):
            raise ImageUnavailable(str(result))
        return result

    def prefetch(self, urls: Iterable[str]) -> None:
        """Download distinct URLs concurrently; drawing order is unaffected."""
        pending = [u for u in dict.fromkeys(urls) if u and u not in self._fetched]
        if not pending:
            return
        if len(pending) == 1 or self.max_workers == 1:
            for url in pending:
                self._fetched[url] = self._download(url)
            return
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(pending))) as pool:
            for url, result in zip(pending, pool.map(self._download, pending)):
                self._fetched[url] = result

    # ---- placement ----
    def image_id(self, url: str, x: float, y: float) -> str:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
        base = f"img_{digest}_{x:.0f}_{y:.0f}"
        image_id = base
        n = 1
        while image_id in self.registered:
            n += 1
            image_id = f"{base}_{n}"
        return image_id

    def fetch_and_fit(self, url: str, box_x: float, box_y: float,
                      box_w: float, box_h: float) -> PlacedImage:
        image = self.fetch(url)
        if image.decoded:
            x, y, w, h = fit_rect(image.width, image.height, box_x, box_y, box_w, box_h)
        else:
            x, y, w, h = box_x, box_y, box_w, box_h
        image_id = self.image_id(url, box_x, box_y)
        try:
            self.canvas.drawImage(ImageReader(BytesIO(image.data)), x, y,
                                  width=w, height=h, mask='auto')
        except Exception as e:
            log_capture.warning(f"[Images] Could not draw {url}: {e}")
            raise ImageUnavailable(str(e)) from e
        self.registered[image_id] = url
        return PlacedImage(image_id, x, y, w, h, aspect_corrected=image.decoded)

    def place_or_placeholder(self, url: Optional[str], box_x: float, box_y: float,
                             box_w: float, box_h: float, caption: str = "",
                             caption_font: str = FALLBACK_FONT) -> Optional[PlacedImage]:
        if url:
            try:
                return self.fetch_and_fit(url, box_x, box_y, box_w, box_h)
            except ImageUnavailable:
                pass
        draw_placeholder(self.canvas, box_x, box_y, box_w, box_h, caption, caption_font)
        return None


def draw_placeholder(c: canvas.Canvas, x: float, y: float, w: float, h: float,
                     caption: str = "", caption_font: str = FALLBACK_FONT):
    c.saveState()
    c.setFillColor(PLACEHOLDER_FILL)
    c.setStrokeColor(SHADOW)
    c.setLineWidth(0.6)
    c.rect(x, y, w, h, fill=1, stroke=1)
    if caption:
        c.setFillColor(MUTED)
        c.setFont(caption_font, 10)
        c.drawCentredString(x + w / 2, y + h / 2 - 3, caption)
    c.restoreState()
