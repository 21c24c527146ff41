"""
Per-language content selection for brochures.

AI-localized content wins when it carries a description; otherwise the
legacy single-language fields are used with built-in labels. Arabic output
is always passed through the mojibake repair before it is rendered.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, NamedTuple, Optional

from performance_tracker import log_capture
from property_models import Language, LocalizedContent, PropertyRecord, validate_localized
from text_sanitizer import repair_mojibake, strip_bullet_prefix

# AI label fields, in the order the AI reply lists them.
AI_LABEL_KEYS = (
    "price_label",
    "address_label",
    "city_label",
    "state_label",
    "zip_code_label",
    "amenities_label",
    "agent_label",
    "property_description_label",
    "key_highlights_label",
    "property_gallery_label",
)

DEFAULT_LABELS: Dict[Language, Dict[str, str]] = {
    Language.ENGLISH: {
        "price_label": "Price",
        "address_label": "Address",
        "city_label": "City",
        "state_label": "State",
        "zip_code_label": "ZIP Code",
        "amenities_label": "Amenities & Features",
        "agent_label": "Contact Your Agent",
        "property_description_label": "Property Description",
        "key_highlights_label": "Key Highlights",
        "property_gallery_label": "Property Gallery",
        "cover_heading": "EXCLUSIVE PROPERTY LISTING",
        "investment_heading": "Investment Opportunity",
        "investment_text": (
            "This property offers an exceptional opportunity for buyers and investors alike. "
            "Its location, quality finishes and amenities make it a valuable long-term asset "
            "with strong potential for appreciation."
        ),
        "name_label": "Name",
        "email_label": "Email",
        "phone_label": "Phone",
        "thank_you_heading": "Thank You",
        "thank_you_message": (
            "Thank you for your interest in this property. "
            "Contact your agent today to arrange a private viewing."
        ),
        "arabic_description_heading": "Arabic Description | الوصف بالعربية",
        "image_placeholder": "Image not available",
        "location_placeholder": "Location not specified",
        "default_description": "Full details of this property are available from the listing agent.",
    },
    Language.ARABIC: {
        "price_label": "السعر",
        "address_label": "العنوان",
        "city_label": "المدينة",
        "state_label": "الولاية",
        "zip_code_label": "الرمز البريدي",
        "amenities_label": "المرافق والميزات",
        "agent_label": "اتصل بوكيلك",
        "property_description_label": "وصف العقار",
        "key_highlights_label": "المميزات الرئيسية",
        "property_gallery_label": "معرض العقار",
        "cover_heading": "عرض عقاري حصري",
        "investment_heading": "فرصة استثمارية",
        "investment_text": (
            "يوفر هذا العقار فرصة استثنائية للمشترين والمستثمرين على حد سواء. "
            "موقعه وتشطيباته عالية الجودة ومرافقه المتكاملة تجعله أصلاً قيماً "
            "على المدى الطويل مع إمكانات نمو قوية."
        ),
        "name_label": "الاسم",
        "email_label": "البريد الإلكتروني",
        "phone_label": "الهاتف",
        "thank_you_heading": "شكراً لكم",
        "thank_you_message": (
            "شكراً لاهتمامكم بهذا العقار. تواصلوا مع وكيلكم اليوم لترتيب معاينة خاصة."
        ),
        "arabic_description_heading": "الوصف بالعربية",
        "image_placeholder": "الصورة غير متوفرة",
        "location_placeholder": "الموقع غير محدد",
        "default_description": "تتوفر التفاصيل الكاملة لهذا العقار لدى الوكيل العقاري.",
    },
}

_NUMBERING = re.compile(r"^\d+\s*[.)]\s*")


@dataclass(frozen=True)
class ResolvedContent:
    language: Language
    title: str
    description: str
    highlights: List[str] = field(default_factory=list)
    amenities: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    source: str = "legacy"

    def label(self, key: str) -> str:
        return self.labels.get(key) or DEFAULT_LABELS[self.language].get(key, "")


def _clean_items(items: List[str]) -> List[str]:
    cleaned = [strip_bullet_prefix(item) for item in items or []]
    return [item for item in cleaned if item]


def _labels_from(localized: LocalizedContent, defaults: Dict[str, str]) -> Dict[str, str]:
    labels = dict(defaults)
    for key in AI_LABEL_KEYS:
        value = getattr(localized, key).strip()
        if value:
            labels[key] = value
    if localized.investment_text.strip():
        labels["investment_text"] = localized.investment_text.strip()
    if localized.thank_you_message.strip():
        labels["thank_you_message"] = localized.thank_you_message.strip()
    return labels


def _legacy_description(record: PropertyRecord, language: Language, defaults: Dict[str, str]) -> str:
    if language is Language.ARABIC:
        candidates = [record.legacy.arabic_description]
    else:
        candidates = [record.legacy.english_description, record.description]
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return defaults["default_description"]


def _repaired(content: ResolvedContent) -> ResolvedContent:
    return replace(
        content,
        title=repair_mojibake(content.title),
        description=repair_mojibake(content.description),
        highlights=[repair_mojibake(h) for h in content.highlights],
        amenities=[repair_mojibake(a) for a in content.amenities],
        labels={k: repair_mojibake(v) for k, v in content.labels.items()},
    )


def resolve(record: PropertyRecord, language) -> ResolvedContent:
    """Pick the content one brochure variant is rendered from."""
    language = Language(language)
    defaults = DEFAULT_LABELS[language]
    localized = record.localized(language)

    if localized is not None and localized.description.strip():
        resolved = ResolvedContent(
            language=language,
            title=localized.title.strip() or record.title,
            description=localized.description.strip(),
            highlights=_clean_items(localized.highlights),
            amenities=_clean_items(localized.translated_amenities) or list(record.amenities),
            labels=_labels_from(localized, defaults),
            source="localized",
        )
    else:
        log_capture.warning(
            f"[Localization] No localized {language.value} description; using legacy content"
        )
        highlights = _clean_items(record.legacy.key_highlights) if language is Language.ENGLISH else []
        resolved = ResolvedContent(
            language=language,
            title=record.title,
            description=_legacy_description(record, language, defaults),
            highlights=highlights,
            amenities=list(record.amenities),
            labels=dict(defaults),
            source="legacy",
        )

    if language is Language.ARABIC:
        resolved = _repaired(resolved)
    return resolved


# ====== AI REPLY PARSING ======
class LocalizedReply(NamedTuple):
    english: Optional[LocalizedContent]
    arabic: Optional[LocalizedContent]


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_localized_reply(text: str) -> LocalizedReply:
    """Parse the AI reply holding englishContent/arabicContent blocks.

    A block that fails the schema comes back as None; a reply that is not
    JSON at all yields two Nones.
    """
    if not text:
        return LocalizedReply(None, None)
    body = _strip_code_fence(text)
    start = body.find("{")
    end = body.rfind("}") + 1
    if start < 0 or end <= start:
        log_capture.warning("[Localization] AI reply holds no JSON object")
        return LocalizedReply(None, None)
    try:
        payload = json.loads(body[start:end])
    except json.JSONDecodeError as e:
        log_capture.warning(f"[Localization] AI reply is not valid JSON: {e}")
        return LocalizedReply(None, None)
    if not isinstance(payload, dict):
        return LocalizedReply(None, None)
    return LocalizedReply(
        english=validate_localized(payload.get("englishContent")),
        arabic=validate_localized(payload.get("arabicContent")),
    )


def parse_highlight_lines(text: str) -> List[str]:
    """One highlight per line, bullets and "1." numbering removed."""
    highlights = []
    for line in (text or "").splitlines():
        line = strip_bullet_prefix(line)
        line = _NUMBERING.sub("", line).strip()
        if line:
            highlights.append(line)
    return highlights
