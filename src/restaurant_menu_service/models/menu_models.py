"""Menu data models.

Categories and menu items as stored in DynamoDB. The read models (Category,
MenuItem) mirror stored documents and are deliberately lenient; the write
intents (CategoryData, MenuItemData and their partial *Update variants) carry
the field limits the admin forms enforce, so that anything reaching the
repositories through the service layer has already been validated.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

TITLE_MAX_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 180
TAGLINE_MAX_LENGTH = 25
EXTRAS_MAX_LENGTH = 150
ITEM_NAME_MAX_LENGTH = 65

# Attributes an update may change but never clear
CATEGORY_REQUIRED_FIELDS = ("order", "main_image", "title", "description")
ITEM_REQUIRED_FIELDS = ("order", "name", "image")


class Language(str, Enum):
    """Languages the menu is published in."""

    EN = "en"
    AR = "ar"


def resolve_language(value: str | None) -> Language:
    """Pick the menu language from a query value or Accept-Language header.

    Only the primary tag of the first entry is considered; anything that is
    not Arabic falls back to English.
    """
    if not value:
        return Language.EN

    primary = value.split(",")[0].split(";")[0].strip().split("-")[0].lower()
    return Language.AR if primary == Language.AR.value else Language.EN


def text_direction(language: Language) -> str:
    """Return the HTML text direction for a language."""
    return "rtl" if language == Language.AR else "ltr"


class BilingualText(BaseModel):
    """A string published in both English and Arabic."""

    en: str = Field(default="", description="English text")
    ar: str = Field(default="", description="Arabic text")

    def localized(self, language: Language) -> str:
        """Look up the text for a language, falling back to English when empty."""
        value = self.ar if language == Language.AR else self.en
        return value or self.en


class PricingScheme(str, Enum):
    """How a menu item is priced."""

    SINGLE = "single"
    SIZED = "sized"
    UNSET = "unset"
    # Both schemes present; kept verbatim, precedence is undefined
    MIXED = "mixed"


def _check_bilingual(
    value: BilingualText | None, field: str, max_length: int, required: bool
) -> BilingualText | None:
    """Apply the admin form rules to a bilingual field.

    Args:
        value: The submitted text, or None when the field was not supplied
        field: Field name used in error messages
        max_length: Maximum characters per language
        required: Whether both languages must be non-blank

    Returns:
        The value unchanged

    Raises:
        ValueError: If a rule is broken (pydantic reports it as a ValidationError)
    """
    if value is None:
        return None

    for language in Language:
        text = getattr(value, language.value)
        if required and not text.strip():
            raise ValueError(f"{field}.{language.value} is required")
        if len(text) > max_length:
            raise ValueError(
                f"{field}.{language.value} must be at most {max_length} characters"
            )
    return value


def _check_price(value: Decimal | None) -> Decimal | None:
    if value is not None and value < 0:
        raise ValueError("price cannot be negative")
    return value


def _reject_cleared(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Raise if any of the given fields was explicitly set to None."""
    cleared = [
        name for name in fields if name in model.model_fields_set and getattr(model, name) is None
    ]
    if cleared:
        raise ValueError(f"{', '.join(cleared)} cannot be cleared")


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _optional_price(item: dict[str, Any], key: str) -> Decimal | None:
    value = item.get(key)
    return Decimal(str(value)) if value is not None else None


class MenuItem(BaseModel):
    """A single entry of a category's nested item collection."""

    id: str = Field(..., description="Unique identifier for the menu item")
    category_id: str = Field(..., description="Category that owns this item")
    order: int = Field(..., description="Display position among sibling items")
    name: BilingualText = Field(default_factory=BilingualText, description="Item name")
    image: str = Field(default="", description="Public image URL, empty when there is none")
    price: Decimal | None = Field(None, description="Single price")
    price_m: Decimal | None = Field(None, description="Medium size price")
    price_l: Decimal | None = Field(None, description="Large size price")
    price_liter: Decimal | None = Field(None, description="Per-liter price")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")

    @property
    def pricing_scheme(self) -> PricingScheme:
        """Report which pricing scheme the stored prices follow."""
        has_single = self.price is not None
        has_sized = any(
            value is not None for value in (self.price_m, self.price_l, self.price_liter)
        )

        if has_single and has_sized:
            return PricingScheme.MIXED
        if has_single:
            return PricingScheme.SINGLE
        if has_sized:
            return PricingScheme.SIZED
        return PricingScheme.UNSET

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        return cls(
            id=item["item_id"],
            category_id=item["category_id"],
            order=int(item["order"]),
            name=BilingualText(**item.get("name", {})),
            image=item.get("image", ""),
            price=_optional_price(item, "price"),
            price_m=_optional_price(item, "price_m"),
            price_l=_optional_price(item, "price_l"),
            price_liter=_optional_price(item, "price_liter"),
            created_at=_parse_timestamp(item.get("created_at")),
            updated_at=_parse_timestamp(item.get("updated_at")),
        )


class Category(BaseModel):
    """A top-level menu grouping.

    ``items`` is None until the nested collection has been loaded. An empty
    list means it was loaded and the category has no items.
    """

    id: str = Field(..., description="Unique identifier for the category")
    order: int = Field(..., description="Display position among categories")
    main_image: str = Field(default="", description="Public image URL, empty when there is none")
    title: BilingualText = Field(default_factory=BilingualText, description="Category title")
    description: BilingualText = Field(
        default_factory=BilingualText, description="Category description"
    )
    tagline: BilingualText | None = Field(None, description="Optional short tagline")
    extras: BilingualText | None = Field(None, description="Optional add-ons note")
    items: list[MenuItem] | None = Field(None, description="Loaded items, ordered")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")

    @property
    def items_loaded(self) -> bool:
        """Whether the nested item collection has been fetched."""
        return self.items is not None

    @classmethod
    def from_dynamodb_item(
        cls, item: dict[str, Any], items: list[MenuItem] | None = None
    ) -> "Category":
        """Create Category from DynamoDB item.

        Args:
            item: DynamoDB item dictionary
            items: Already loaded nested items, or None to leave them unloaded

        Returns:
            Category: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["category_id"],
            "order": int(item["order"]),
            "main_image": item.get("main_image", ""),
            "title": BilingualText(**item.get("title", {})),
            "description": BilingualText(**item.get("description", {})),
            "items": items,
            "created_at": _parse_timestamp(item.get("created_at")),
            "updated_at": _parse_timestamp(item.get("updated_at")),
        }

        if "tagline" in item:
            data["tagline"] = BilingualText(**item["tagline"])

        if "extras" in item:
            data["extras"] = BilingualText(**item["extras"])

        return cls(**data)


class CategoryData(BaseModel):
    """Full category record submitted for creation."""

    order: int | None = Field(None, description="Display position; auto-assigned when omitted", ge=1)
    main_image: str = Field(default="", description="Public image URL")
    title: BilingualText
    description: BilingualText
    tagline: BilingualText | None = None
    extras: BilingualText | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: BilingualText) -> BilingualText:
        """Require both languages and cap the length."""
        return _check_bilingual(v, "title", TITLE_MAX_LENGTH, required=True)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: BilingualText) -> BilingualText:
        """Require both languages and cap the length."""
        return _check_bilingual(v, "description", DESCRIPTION_MAX_LENGTH, required=True)

    @field_validator("tagline")
    @classmethod
    def validate_tagline(cls, v: BilingualText | None) -> BilingualText | None:
        """Cap the tagline length."""
        return _check_bilingual(v, "tagline", TAGLINE_MAX_LENGTH, required=False)

    @field_validator("extras")
    @classmethod
    def validate_extras(cls, v: BilingualText | None) -> BilingualText | None:
        """Cap the extras length."""
        return _check_bilingual(v, "extras", EXTRAS_MAX_LENGTH, required=False)

    def to_dynamodb_fields(self) -> dict[str, Any]:
        """Return the stored attributes, omitting optional fields that are not set."""
        return self.model_dump(exclude_none=True)


class CategoryUpdate(BaseModel):
    """Partial category update; only fields that were explicitly set are merged."""

    order: int | None = Field(None, ge=1)
    main_image: str | None = None
    title: BilingualText | None = None
    description: BilingualText | None = None
    tagline: BilingualText | None = None
    extras: BilingualText | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: BilingualText | None) -> BilingualText | None:
        """Require both languages when the title is being changed."""
        return _check_bilingual(v, "title", TITLE_MAX_LENGTH, required=True)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: BilingualText | None) -> BilingualText | None:
        """Require both languages when the description is being changed."""
        return _check_bilingual(v, "description", DESCRIPTION_MAX_LENGTH, required=True)

    @field_validator("tagline")
    @classmethod
    def validate_tagline(cls, v: BilingualText | None) -> BilingualText | None:
        return _check_bilingual(v, "tagline", TAGLINE_MAX_LENGTH, required=False)

    @field_validator("extras")
    @classmethod
    def validate_extras(cls, v: BilingualText | None) -> BilingualText | None:
        return _check_bilingual(v, "extras", EXTRAS_MAX_LENGTH, required=False)

    @model_validator(mode="after")
    def validate_required_not_cleared(self) -> "CategoryUpdate":
        """Only tagline and extras may be removed from a category."""
        _reject_cleared(self, CATEGORY_REQUIRED_FIELDS)
        return self

    def to_dynamodb_fields(self) -> dict[str, Any]:
        """Return explicitly set fields; a None value means "remove the attribute"."""
        return self.model_dump(exclude_unset=True)


class MenuItemData(BaseModel):
    """Full menu item record submitted for creation."""

    order: int | None = Field(None, description="Display position; auto-assigned when omitted", ge=1)
    name: BilingualText
    image: str = Field(default="", description="Public image URL")
    price: Decimal | None = None
    price_m: Decimal | None = None
    price_l: Decimal | None = None
    price_liter: Decimal | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: BilingualText) -> BilingualText:
        """Require both languages and cap the length."""
        return _check_bilingual(v, "name", ITEM_NAME_MAX_LENGTH, required=True)

    @field_validator("price", "price_m", "price_l", "price_liter")
    @classmethod
    def validate_prices(cls, v: Decimal | None) -> Decimal | None:
        """Reject negative prices."""
        return _check_price(v)

    def to_dynamodb_fields(self) -> dict[str, Any]:
        """Return the stored attributes, omitting prices that are not set."""
        return self.model_dump(exclude_none=True)


class MenuItemUpdate(BaseModel):
    """Partial menu item update; only fields that were explicitly set are merged."""

    order: int | None = Field(None, ge=1)
    name: BilingualText | None = None
    image: str | None = None
    price: Decimal | None = None
    price_m: Decimal | None = None
    price_l: Decimal | None = None
    price_liter: Decimal | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: BilingualText | None) -> BilingualText | None:
        return _check_bilingual(v, "name", ITEM_NAME_MAX_LENGTH, required=True)

    @field_validator("price", "price_m", "price_l", "price_liter")
    @classmethod
    def validate_prices(cls, v: Decimal | None) -> Decimal | None:
        return _check_price(v)

    @model_validator(mode="after")
    def validate_required_not_cleared(self) -> "MenuItemUpdate":
        """Only prices may be removed from an item."""
        _reject_cleared(self, ITEM_REQUIRED_FIELDS)
        return self

    def to_dynamodb_fields(self) -> dict[str, Any]:
        """Return explicitly set fields; a None value means "remove the attribute"."""
        return self.model_dump(exclude_unset=True)

    def to_item_data(self, current: MenuItem) -> MenuItemData:
        """Merge this update over an existing item to get a full record.

        Used when an item moves to another category and has to be recreated.
        """
        merged = {
            "order": current.order,
            "name": current.name,
            "image": current.image,
            "price": current.price,
            "price_m": current.price_m,
            "price_l": current.price_l,
            "price_liter": current.price_liter,
        }
        merged.update(self.model_dump(exclude_unset=True))
        return MenuItemData(**merged)
