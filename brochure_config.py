"""
Environment configuration for the brochure generator.

Values come from the process environment, optionally seeded from a .env
file in the working directory. Fonts are resolved here once and handed to
the composer as a FontSet.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from image_pipeline import DEFAULT_TIMEOUT, DEFAULT_WORKERS
from layout_primitives import FontSet
from performance_tracker import log_capture

ARABIC_FONT_NAME = "BrochureArabic"
BODY_FONT_NAME = "BrochureBody"


def _load_env_file_if_present(env_path: Path = Path(".env")):
    """Copy KEY=VALUE lines into os.environ without overriding set variables."""
    env_path = Path(env_path)
    if not env_path.exists():
        return
    try:
        lines = env_path.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError as e:
        log_capture.warning(f"[Config] Could not read {env_path}: {e}")
        return
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip()
        v = v.strip().strip('"').strip("'")
        if k and k not in os.environ:
            os.environ[k] = v


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _env_number(name: str, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        log_capture.warning(f"[Config] {name}={raw!r} is not a number; using {default}")
        return default
    if value <= 0:
        log_capture.warning(f"[Config] {name} must be positive; using {default}")
        return default
    return value


@dataclass(frozen=True)
class BrochureSettings:
    arabic_font_path: Optional[str] = None
    body_font_path: Optional[str] = None
    logo_url: Optional[str] = None
    image_fetch_timeout: float = DEFAULT_TIMEOUT
    image_fetch_workers: int = DEFAULT_WORKERS
    output_dir: Path = field(default_factory=lambda: Path("output"))


def load_settings(env_file: Optional[Path] = Path(".env")) -> BrochureSettings:
    if env_file is not None:
        _load_env_file_if_present(env_file)
    return BrochureSettings(
        arabic_font_path=_env_str("ARABIC_FONT_PATH"),
        body_font_path=_env_str("BODY_FONT_PATH"),
        logo_url=_env_str("BROCHURE_LOGO_URL"),
        image_fetch_timeout=_env_number("IMAGE_FETCH_TIMEOUT", DEFAULT_TIMEOUT, float),
        image_fetch_workers=_env_number("IMAGE_FETCH_WORKERS", DEFAULT_WORKERS, int),
        output_dir=Path(_env_str("BROCHURE_OUTPUT_DIR") or "output"),
    )


def _register_font(name: str, path: Optional[str], purpose: str) -> Optional[str]:
    if not path:
        log_capture.warning(f"[Fonts] No {purpose} font configured; using fallback")
        return None
    font_path = Path(path)
    if not font_path.is_file():
        log_capture.warning(f"[Fonts] {purpose} font not found at {font_path}; using fallback")
        return None
    try:
        pdfmetrics.registerFont(TTFont(name, str(font_path)))
    except Exception as e:
        log_capture.warning(f"[Fonts] Could not load {purpose} font {font_path}: {e}")
        return None
    log_capture.info(f"[Fonts] {purpose} font loaded: {font_path}")
    return name


def load_font_set(settings: BrochureSettings) -> FontSet:
    """Register configured TTF fonts. Missing or broken files degrade, never fail."""
    return FontSet(
        arabic_font=_register_font(ARABIC_FONT_NAME, settings.arabic_font_path, "Arabic"),
        body_font=_register_font(BODY_FONT_NAME, settings.body_font_path, "body"),
    )
