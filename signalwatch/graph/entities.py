"""Entity get-or-create, aliases and signal linking.

The store is any object with the methods used below (see
``signalwatch.storage.postgres_graph.PostgresGraphStore``). Canonical-key
uniqueness is enforced by the store; these functions only decide what to
write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from signalwatch.graph.extract import extract_candidates
from signalwatch.graph.normalize import canonical_key, normalize_key

logger = logging.getLogger(__name__)


class InvalidEntityError(ValueError):
    """Raised when a mention cannot be turned into a canonical key."""


@dataclass(frozen=True)
class EntityAlias:
    id: int
    entity_id: int
    alias: str
    alias_key: str
    source: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Entity:
    id: int
    name: str
    type: str
    canonical_key: str
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    aliases: Tuple[EntityAlias, ...] = field(default_factory=tuple)


def upsert_entity(
    store,
    *,
    entity_type: str,
    name: str,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Entity:
    """Get-or-create by canonical key.

    An existing entity is returned unchanged (only its updated_at is bumped);
    a new one keeps the original, non-normalized name for display.
    """
    key = canonical_key(entity_type, name)
    if not key or key.endswith(":"):
        raise InvalidEntityError(f"Invalid entity: type={entity_type!r}, name={name!r}")

    existing = store.get_entity_by_key(key)
    if existing is not None:
        store.touch_entity(existing.id)
        return existing

    inserted = store.insert_entity(
        name=name.strip(),
        entity_type=entity_type,
        canonical_key=key,
        description=description,
        metadata=metadata,
    )
    if inserted is not None:
        return inserted

    # Lost an insert race; the winner's row is the entity.
    winner = store.get_entity_by_key(key)
    if winner is None:
        raise RuntimeError(f"entity {key} missing after conflicting insert")
    return winner


def upsert_alias(store, entity_id: int, alias: str, source: str = "ai") -> Optional[EntityAlias]:
    """Record ``alias`` for an entity; None when it is empty or collides."""
    alias_key = normalize_key(alias)
    if not alias_key:
        return None
    existing = store.get_alias_by_key(alias_key)
    if existing is not None:
        return existing
    return store.insert_alias(entity_id=entity_id, alias=alias.strip(), alias_key=alias_key, source=source)


def get_entity_by_canonical_key(store, key: str) -> Optional[Entity]:
    return store.get_entity_by_key(key)


def find_entity_by_alias(store, alias: str) -> Optional[Entity]:
    alias_key = normalize_key(alias)
    if not alias_key:
        return None
    hit = store.get_alias_by_key(alias_key)
    if hit is None:
        return None
    return store.get_entity(hit.entity_id)


@dataclass(frozen=True)
class LinkResult:
    linked: int
    errors: int


def link_signal_to_entities(store, signal_id: int, company_name: str, entities_json: Any) -> LinkResult:
    """Upsert every entity mentioned by a signal and link it with its role.

    A failing candidate is logged and counted; the rest are still linked.
    """
    linked = 0
    errors = 0
    for candidate in extract_candidates(company_name, entities_json):
        try:
            entity = upsert_entity(store, entity_type=candidate.type, name=candidate.name)
            if candidate.surface:
                surface_key = normalize_key(candidate.surface)
                if surface_key and surface_key != normalize_key(entity.name):
                    upsert_alias(store, entity.id, candidate.surface, "ai")
            if store.link_signal_entity(
                signal_id=signal_id,
                entity_id=entity.id,
                role=candidate.role,
                confidence=candidate.confidence,
                surface=candidate.surface,
            ):
                linked += 1
        except Exception as e:
            logger.error(f"[graph] failed to link {candidate.name!r} to signal {signal_id}: {e}")
            errors += 1
    return LinkResult(linked=linked, errors=errors)
