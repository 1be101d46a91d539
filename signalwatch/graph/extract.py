"""Turn a signal's AI entity list into typed, role-tagged entity candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Set

from signalwatch.graph.normalize import canonical_key


VALID_ROLES = {
    "subject",
    "investor",
    "competitor",
    "partner",
    "supplier",
    "customer",
    "acquired",
    "actor",
    "target",
    "location",
    "other",
}

ROLE_ALIASES = {
    "invests": "investor",
    "invested": "investor",
    "investing": "investor",
    "competes": "competitor",
    "competing": "competitor",
    "partners": "partner",
    "partnered": "partner",
    "supplies": "supplier",
    "supplied": "supplier",
    "buys": "customer",
    "bought": "customer",
    "acquires": "acquired",
    "acquiring": "acquired",
}


@dataclass(frozen=True)
class EntityCandidate:
    type: str
    name: str
    role: str
    confidence: int
    surface: Optional[str] = None


def normalize_role(relationship: Optional[str]) -> str:
    if not relationship:
        return "other"
    r = str(relationship).lower().strip()
    if r in VALID_ROLES:
        return r
    return ROLE_ALIASES.get(r, "other")


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _name_of(item: Any) -> Optional[str]:
    if isinstance(item, str):
        name = item
    elif isinstance(item, dict):
        name = item.get("name")
    else:
        return None
    if not isinstance(name, str) or not name.strip():
        return None
    return name.strip()


def extract_candidates(company_name: str, entities_json: Any) -> List[EntityCandidate]:
    """The monitored company first (as subject), then companies, people, locations."""
    out: List[EntityCandidate] = [
        EntityCandidate("company", company_name, "subject", 100, company_name)
    ]
    seen: Set[str] = {f"{canonical_key('company', company_name)}:subject"}

    if not isinstance(entities_json, dict):
        return out

    def add(entity_type: str, name: str, role: str, confidence: int) -> None:
        key = f"{canonical_key(entity_type, name)}:{role}"
        if key in seen:
            return
        seen.add(key)
        out.append(EntityCandidate(entity_type, name, role, confidence, name))

    for item in _as_list(entities_json.get("companies")):
        name = _name_of(item) if isinstance(item, dict) else None
        if name:
            add("company", name, normalize_role(item.get("relationship")), 90)

    for item in _as_list(entities_json.get("people")):
        name = _name_of(item)
        if name:
            add("person", name, "other", 80)

    for item in _as_list(entities_json.get("locations")):
        name = _name_of(item) if isinstance(item, str) else None
        if name:
            add("geography", name, "location", 80)

    return out
