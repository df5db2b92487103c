"""Pydantic schemas for catalog list items, detail records and favorites."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from speciesdex.settings import DEFAULT_ARTWORK_URL_TEMPLATE


def id_from_source_ref(source_ref: str) -> int:
    """Return the numeric identity encoded as the last path segment of ``source_ref``.

    ``https://host/catalog/items/25/`` -> ``25``.
    """

    segments = [segment for segment in urlsplit(source_ref).path.split("/") if segment]
    if not segments:
        raise ValueError(f"Source reference has no path segments: {source_ref!r}")
    return int(segments[-1])


def _capitalize(name: str) -> str:
    if not name:
        return name
    return name[0].upper() + name[1:]


class ListItem(BaseModel):
    """One row of the paginated catalog list."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Stable catalog identifier")
    page: int = Field(..., ge=0, description="Zero-based page the item was fetched under")
    source_ref: str = Field(..., description="Opaque locator of the item resource")
    # Presentation annotation only; never persisted.
    is_favorite: bool = False

    @property
    def id(self) -> int:
        return id_from_source_ref(self.source_ref)

    @property
    def display_name(self) -> str:
        return _capitalize(self.key)

    def artwork_url(self, template: str = DEFAULT_ARTWORK_URL_TEMPLATE) -> str:
        return template.format(id=self.id)

    def as_favorite(self) -> ListItem:
        return self.model_copy(update={"is_favorite": True})


class CatalogPage(BaseModel):
    """One remote page together with the service's paging envelope."""

    items: list[ListItem] = Field(default_factory=list)
    total_count: int = Field(0, ge=0)
    next: str | None = None
    previous: str | None = None


class PhysicalAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    height: int = Field(..., ge=0, description="Height in decimetres")
    weight: int = Field(..., ge=0, description="Weight in hectograms")


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    slot: int = Field(..., ge=1, description="1-indexed slot; slot 1 is the primary category")
    name: str

    @property
    def display_name(self) -> str:
        return _capitalize(self.name)


class Attribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    base_value: int


class Ability(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    slot: int = 1
    is_hidden: bool = False

    @property
    def display_name(self) -> str:
        return " ".join(_capitalize(word) for word in self.name.split("-"))


_LEARN_METHOD_LABELS = {
    "machine": "TM/HM",
    "egg": "Egg Move",
    "tutor": "Tutor",
}


class MoveLearnMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    level: int = 0

    @property
    def display_name(self) -> str:
        if self.name == "level-up":
            return f"Level {self.level}"
        return _LEARN_METHOD_LABELS.get(self.name, self.name)


class Move(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    learn_methods: list[MoveLearnMethod] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return " ".join(_capitalize(word) for word in self.name.split("-"))

    @property
    def learn_level(self) -> int | None:
        """Level at which the move is learned by levelling up, ``None`` otherwise."""

        for method in self.learn_methods:
            if method.name == "level-up":
                return method.level
        return None

    @property
    def primary_learn_method(self) -> str:
        """Label of the level-up method when there is one, else of the first method."""

        if not self.learn_methods:
            return "Unknown"
        for method in self.learn_methods:
            if method.name == "level-up":
                return method.display_name
        return self.learn_methods[0].display_name


class DetailRecord(BaseModel):
    """Full record for a single catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    key: str = Field(..., min_length=1)
    physical_attributes: PhysicalAttributes
    experience_base: int = 0
    categories: list[Category] = Field(default_factory=list)
    attributes: list[Attribute] = Field(default_factory=list)
    abilities: list[Ability] = Field(default_factory=list)
    moves: list[Move] = Field(default_factory=list)
    evolution_ref: str | None = None

    @field_validator("categories")
    @classmethod
    def _order_by_slot(cls, value: list[Category]) -> list[Category]:
        return sorted(value, key=lambda category: category.slot)

    @field_validator("attributes")
    @classmethod
    def _reject_duplicate_attributes(cls, value: list[Attribute]) -> list[Attribute]:
        seen: set[str] = set()
        for attribute in value:
            if attribute.name in seen:
                raise ValueError(f"Duplicate attribute name: {attribute.name}")
            seen.add(attribute.name)
        return value

    @property
    def primary_category(self) -> Category | None:
        return self.categories[0] if self.categories else None

    def attribute_value(self, name: str) -> int:
        """Return the base value for ``name`` or ``0`` when the attribute is absent."""

        for attribute in self.attributes:
            if attribute.name == name:
                return attribute.base_value
        return 0

    @property
    def display_name(self) -> str:
        return _capitalize(self.key)

    @property
    def id_label(self) -> str:
        return f"#{self.id:03d}"

    @property
    def height_label(self) -> str:
        return f"{self.physical_attributes.height / 10:.1f} m"

    @property
    def weight_label(self) -> str:
        return f"{self.physical_attributes.weight / 10:.1f} kg"

    def artwork_url(self, template: str = DEFAULT_ARTWORK_URL_TEMPLATE) -> str:
        return template.format(id=self.id)

    @property
    def level_up_moves(self) -> list[Move]:
        """Moves learned by levelling up, ordered by the level they are learned at."""

        learned = [move for move in self.moves if move.learn_level is not None]
        return sorted(learned, key=lambda move: move.learn_level)


class FavoriteRecord(BaseModel):
    """A user-marked favorite; display order is ``added_at_epoch_ms`` descending."""

    model_config = ConfigDict(frozen=True)

    id: int
    key: str
    added_at_epoch_ms: int = Field(..., ge=0)


__all__ = [
    "Ability",
    "Attribute",
    "CatalogPage",
    "Category",
    "DetailRecord",
    "FavoriteRecord",
    "ListItem",
    "Move",
    "MoveLearnMethod",
    "PhysicalAttributes",
    "id_from_source_ref",
]
