"""Typed records exchanged between the store, the remote client and callers."""

from .catalog import (
    Ability,
    Attribute,
    CatalogPage,
    Category,
    DetailRecord,
    FavoriteRecord,
    ListItem,
    Move,
    MoveLearnMethod,
    PhysicalAttributes,
    id_from_source_ref,
)
from .evolution import ChainLink, EvolutionChain, EvolutionDetail

__all__ = [
    "Ability",
    "Attribute",
    "CatalogPage",
    "Category",
    "ChainLink",
    "DetailRecord",
    "EvolutionChain",
    "EvolutionDetail",
    "FavoriteRecord",
    "ListItem",
    "Move",
    "MoveLearnMethod",
    "PhysicalAttributes",
    "id_from_source_ref",
]
