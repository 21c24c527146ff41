import argparse
import json
import re
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from brochure_builder import BrochureGenerationError, build_brochure_pdf, build_combined_brochure_pdf
from brochure_config import BrochureSettings, load_font_set, load_settings
from layout_primitives import FontSet
from performance_tracker import get_timings, log_capture, track_time
from property_models import Language, PropertyRecord

COMBINED = "combined"


def load_record(path: Path) -> PropertyRecord:
    """Read a property record from a JSON file (camelCase or snake_case keys)."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return PropertyRecord.model_validate(payload)


@track_time("generate_brochures")
def generate_brochures(record: PropertyRecord, languages: Iterable[str] = ("en", "ar"),
                       combined: bool = False, settings: Optional[BrochureSettings] = None,
                       fonts: Optional[FontSet] = None) -> Dict[str, bytes]:
    """
    Produce one PDF per requested language, plus the bilingual variant on request.

    Keys of the result are "en", "ar" and "combined". Only serialization
    failures raise; every upstream problem degrades inside the document.
    """
    settings = settings or BrochureSettings()
    fonts = fonts or FontSet()
    brochures: Dict[str, bytes] = {}
    for language in dict.fromkeys(Language(lang) for lang in languages):
        brochures[language.value] = build_brochure_pdf(record, language, fonts, settings)
    if combined:
        brochures[COMBINED] = build_combined_brochure_pdf(record, fonts, settings)
    return brochures


def _slugify(title: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title or "").strip("-").lower()
    return slug[:60] or "property"


def write_brochures(brochures: Dict[str, bytes], output_dir: Path, title: str) -> List[Path]:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = _slugify(title)
    written = []
    for variant, pdf_bytes in brochures.items():
        out_path = output_dir / f"{stem}_brochure_{variant}.pdf"
        out_path.write_bytes(pdf_bytes)
        written.append(out_path)
    return written


def main_cli(argv: Optional[List[str]] = None) -> int:
    """Command-line interface."""
    parser = argparse.ArgumentParser(description="Generate property brochure PDFs from a JSON record.")
    parser.add_argument("record", type=Path, help="Property record JSON file")
    parser.add_argument("--languages", nargs="+", choices=[lang.value for lang in Language],
                        default=[lang.value for lang in Language])
    parser.add_argument("--combined", action="store_true", help="Also write the bilingual brochure")
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument("--env-file", type=Path, default=Path(".env"))
    args = parser.parse_args(argv)

    settings = load_settings(args.env_file)
    fonts = load_font_set(settings)

    try:
        record = load_record(args.record)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        log_capture.error(f"[CLI] Could not read property record {args.record}: {e}")
        return 2

    try:
        brochures = generate_brochures(record, args.languages, args.combined, settings, fonts)
    except BrochureGenerationError as e:
        log_capture.error(f"[CLI] Brochure generation failed: {e}")
        return 1

    for path in write_brochures(brochures, args.output_dir or settings.output_dir, record.title):
        log_capture.info(f"[CLI] Saved {path}")
    timing = get_timings().get("generate_brochures")
    if timing:
        log_capture.info(f"[CLI] Done in {timing['last']['duration']:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main_cli())
