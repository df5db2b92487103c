"""Schemas describing an evolution chain as returned by the catalog service."""

from __future__ import annotations

from pydantic import BaseModel, Field


def _format_name(name: str) -> str:
    """``"thunder-stone"`` -> ``"Thunder Stone"``."""

    return " ".join(word[:1].upper() + word[1:] for word in name.split("-") if word)


class EvolutionDetail(BaseModel):
    """Conditions attached to one evolution step."""

    trigger: str | None = None
    min_level: int | None = None
    item: str | None = None
    held_item: str | None = None
    time_of_day: str | None = None
    location: str | None = None
    min_happiness: int | None = None

    @property
    def description(self) -> str:
        conditions: list[str] = []
        if self.min_level:
            conditions.append(f"Lv.{self.min_level}")
        if self.item:
            conditions.append(_format_name(self.item))
        if self.held_item:
            conditions.append(f"Hold {_format_name(self.held_item)}")
        if self.time_of_day:
            conditions.append(_format_name(self.time_of_day))
        if self.location:
            conditions.append(_format_name(self.location))
        if self.min_happiness:
            conditions.append(f"Happiness {self.min_happiness}")

        if not conditions:
            return _format_name(self.trigger) if self.trigger else "Unknown"
        return ", ".join(conditions)


class ChainLink(BaseModel):
    species_name: str
    species_id: int
    is_baby: bool = False
    evolution_details: list[EvolutionDetail] = Field(default_factory=list)
    evolves_to: list[ChainLink] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.species_name[:1].upper() + self.species_name[1:]


class EvolutionChain(BaseModel):
    id: int
    chain: ChainLink

    def flat_chain(self) -> list[ChainLink]:
        """Return every link in pre-order (base form first)."""

        result: list[ChainLink] = []
        pending = [self.chain]
        while pending:
            link = pending.pop()
            result.append(link)
            pending.extend(reversed(link.evolves_to))
        return result


__all__ = ["ChainLink", "EvolutionChain", "EvolutionDetail"]
