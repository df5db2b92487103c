"""Translate catalog service JSON documents into typed records.

All functions are pure. A document without the expected shape raises
:class:`ValueError` (pydantic's ``ValidationError`` included),
:class:`KeyError` or :class:`TypeError`; the client turns any of them into
an ``UnknownTransportError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from speciesdex.schemas.catalog import (
    Ability,
    Attribute,
    CatalogPage,
    Category,
    DetailRecord,
    ListItem,
    Move,
    MoveLearnMethod,
    PhysicalAttributes,
    id_from_source_ref,
)
from speciesdex.schemas.evolution import ChainLink, EvolutionChain, EvolutionDetail


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected {what} to be an object, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"Expected {what} to be a list, got {type(value).__name__}")
    return value


def _nested_name(value: Any) -> str | None:
    """Return ``value["name"]`` for ``{"name": ...}`` references, else ``None``."""

    if isinstance(value, Mapping):
        name = value.get("name")
        return str(name) if name else None
    return None


def parse_page_payload(payload: Any, page: int) -> CatalogPage:
    """Parse ``{count, next, previous, results: [{name, url}]}`` tagged with ``page``."""

    document = _require_mapping(payload, "page payload")
    results = _require_list(document.get("results"), "results")

    items: list[ListItem] = []
    for entry in results:
        entry = _require_mapping(entry, "list entry")
        items.append(ListItem(key=entry["name"], page=page, source_ref=entry["url"]))

    return CatalogPage(
        items=items,
        total_count=document.get("count") or 0,
        next=document.get("next"),
        previous=document.get("previous"),
    )


def parse_detail_payload(payload: Any) -> DetailRecord:
    document = _require_mapping(payload, "detail payload")

    categories = [
        Category(slot=entry["slot"], name=entry["type"]["name"])
        for entry in _require_list(document.get("types", []), "types")
    ]
    attributes = [
        Attribute(name=entry["stat"]["name"], base_value=entry["base_stat"])
        for entry in _require_list(document.get("stats", []), "stats")
    ]
    abilities = [
        Ability(
            name=entry["ability"]["name"],
            slot=entry.get("slot", 1),
            is_hidden=bool(entry.get("is_hidden", False)),
        )
        for entry in _require_list(document.get("abilities", []), "abilities")
    ]
    moves = [
        Move(
            name=entry["move"]["name"],
            learn_methods=[
                MoveLearnMethod(
                    name=detail["move_learn_method"]["name"],
                    level=detail.get("level_learned_at") or 0,
                )
                for detail in _require_list(
                    entry.get("version_group_details", []), "version_group_details"
                )
            ],
        )
        for entry in _require_list(document.get("moves", []), "moves")
    ]

    evolution_ref = document.get("evolution_chain_url")
    if not evolution_ref:
        species = document.get("species")
        evolution_ref = species.get("url") if isinstance(species, Mapping) else None

    return DetailRecord(
        id=document["id"],
        key=document["name"],
        physical_attributes=PhysicalAttributes(
            height=document["height"],
            weight=document["weight"],
        ),
        experience_base=document.get("base_experience") or 0,
        categories=categories,
        attributes=attributes,
        abilities=abilities,
        moves=moves,
        evolution_ref=evolution_ref or None,
    )


def evolution_chain_url(payload: Any) -> str | None:
    """Return the chain URL when ``payload`` is a species document."""

    if not isinstance(payload, Mapping):
        return None
    chain = payload.get("evolution_chain")
    if isinstance(chain, Mapping) and chain.get("url"):
        return str(chain["url"])
    return None


def _parse_evolution_detail(entry: Any) -> EvolutionDetail:
    entry = _require_mapping(entry, "evolution detail")
    return EvolutionDetail(
        trigger=_nested_name(entry.get("trigger")),
        min_level=entry.get("min_level"),
        item=_nested_name(entry.get("item")),
        held_item=_nested_name(entry.get("held_item")),
        time_of_day=entry.get("time_of_day") or None,
        location=_nested_name(entry.get("location")),
        min_happiness=entry.get("min_happiness"),
    )


def _parse_chain_link(node: Any) -> ChainLink:
    node = _require_mapping(node, "chain link")
    species = _require_mapping(node.get("species"), "species")
    return ChainLink(
        species_name=species["name"],
        species_id=id_from_source_ref(species["url"]),
        is_baby=bool(node.get("is_baby", False)),
        evolution_details=[
            _parse_evolution_detail(entry)
            for entry in _require_list(node.get("evolution_details", []), "evolution_details")
        ],
        evolves_to=[
            _parse_chain_link(child)
            for child in _require_list(node.get("evolves_to", []), "evolves_to")
        ],
    )


def parse_evolution_chain_payload(payload: Any) -> EvolutionChain:
    document = _require_mapping(payload, "evolution chain payload")
    return EvolutionChain(id=document["id"], chain=_parse_chain_link(document.get("chain")))


__all__ = [
    "evolution_chain_url",
    "parse_detail_payload",
    "parse_evolution_chain_payload",
    "parse_page_payload",
]
