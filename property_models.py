"""
Input records for brochure generation.

A PropertyRecord arrives fully validated from the request layer. The
AI-localized blocks are held to a strict schema: a block that is missing a
key or carries the wrong type is dropped as a whole and the brochure falls
back to the legacy content instead of rendering a half-filled block.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
)

from performance_tracker import log_capture


class Language(str, Enum):
    ENGLISH = "en"
    ARABIC = "ar"


class AgentInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""


class LegacyContent(BaseModel):
    """Single-language AI content kept for records created before localization."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    english_description: str = Field(
        default="", validation_alias=AliasChoices("english_description", "englishDescription")
    )
    arabic_description: str = Field(
        default="", validation_alias=AliasChoices("arabic_description", "arabicDescription")
    )
    key_highlights: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("key_highlights", "keyHighlights")
    )


class LocalizedContent(BaseModel):
    """
    Fully localized content for one language.

    Every AI-produced key is required. Label values may be empty strings;
    the resolver fills those from its default table.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: StrictStr
    description: StrictStr
    highlights: List[StrictStr]
    translated_amenities: List[StrictStr] = Field(
        validation_alias=AliasChoices("translated_amenities", "translatedAmenities", "amenities")
    )
    price_label: StrictStr = Field(validation_alias=AliasChoices("price_label", "priceLabel"))
    address_label: StrictStr = Field(validation_alias=AliasChoices("address_label", "addressLabel"))
    city_label: StrictStr = Field(validation_alias=AliasChoices("city_label", "cityLabel"))
    state_label: StrictStr = Field(validation_alias=AliasChoices("state_label", "stateLabel"))
    zip_code_label: StrictStr = Field(validation_alias=AliasChoices("zip_code_label", "zipCodeLabel"))
    amenities_label: StrictStr = Field(
        validation_alias=AliasChoices("amenities_label", "amenitiesLabel")
    )
    agent_label: StrictStr = Field(validation_alias=AliasChoices("agent_label", "agentLabel"))
    property_description_label: StrictStr = Field(
        validation_alias=AliasChoices("property_description_label", "propertyDescriptionLabel")
    )
    key_highlights_label: StrictStr = Field(
        validation_alias=AliasChoices("key_highlights_label", "keyHighlightsLabel")
    )
    property_gallery_label: StrictStr = Field(
        validation_alias=AliasChoices("property_gallery_label", "propertyGalleryLabel")
    )
    # Optional copy; the AI reply does not always carry it.
    investment_text: StrictStr = Field(
        default="", validation_alias=AliasChoices("investment_text", "investmentText")
    )
    thank_you_message: StrictStr = Field(
        default="", validation_alias=AliasChoices("thank_you_message", "thankYouMessage")
    )


def validate_localized(payload) -> Optional[LocalizedContent]:
    """Validate one language block; any schema violation means "absent"."""
    if payload is None:
        return None
    if isinstance(payload, LocalizedContent):
        return payload
    try:
        return LocalizedContent.model_validate(payload)
    except ValidationError as e:
        log_capture.warning(
            f"[Localization] Discarding localized content block ({e.error_count()} schema errors)"
        )
        return None


class PropertyRecord(BaseModel):
    """Immutable property listing handed to the brochure generator."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    description: str = ""
    price: float = Field(ge=0.0)
    currency: str = "Dollar"
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", validation_alias=AliasChoices("zip_code", "zipCode"))
    amenities: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("image_urls", "imageUrls")
    )
    agent: AgentInfo = Field(
        default_factory=AgentInfo, validation_alias=AliasChoices("agent", "agentInfo")
    )
    legacy: LegacyContent = Field(
        default_factory=LegacyContent, validation_alias=AliasChoices("legacy", "aiContent")
    )
    english_content: Optional[LocalizedContent] = Field(
        default=None, validation_alias=AliasChoices("english_content", "englishContent")
    )
    arabic_content: Optional[LocalizedContent] = Field(
        default=None, validation_alias=AliasChoices("arabic_content", "arabicContent")
    )

    @field_validator("english_content", "arabic_content", mode="before")
    @classmethod
    def drop_invalid_localized(cls, v):
        return validate_localized(v)

    @field_validator("amenities", "image_urls")
    @classmethod
    def drop_blank_entries(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]

    @property
    def hero_image_url(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    def localized(self, language: Language) -> Optional[LocalizedContent]:
        if Language(language) is Language.ARABIC:
            return self.arabic_content
        return self.english_content
