"""Postgres-backed entity graph (entities, aliases, signal links).

Uniqueness lives in the schema (canonical_key, alias_key,
(signal_id, entity_id, role)); inserts use ON CONFLICT DO NOTHING and
report a lost race as None/False instead of raising.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import psycopg
from psycopg.types.json import Jsonb

from signalwatch.graph.entities import Entity, EntityAlias

_ENTITY_COLUMNS = "id, name, type, canonical_key, description, metadata, created_at, updated_at"
_ALIAS_COLUMNS = "id, entity_id, alias, alias_key, source, created_at"


def _entity(row) -> Entity:
    return Entity(
        id=int(row[0]),
        name=row[1],
        type=row[2],
        canonical_key=row[3],
        description=row[4],
        metadata=row[5],
        created_at=row[6],
        updated_at=row[7],
    )


def _alias(row) -> EntityAlias:
    return EntityAlias(
        id=int(row[0]),
        entity_id=int(row[1]),
        alias=row[2],
        alias_key=row[3],
        source=row[4],
        created_at=row[5],
    )


class PostgresGraphStore:
    def __init__(self, pg_dsn: str):
        self.pg_dsn = pg_dsn

    def get_entity(self, entity_id: int) -> Optional[Entity]:
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE id = %s", (entity_id,))
                row = cur.fetchone()
        return _entity(row) if row else None

    def get_entity_by_key(self, canonical_key: str) -> Optional[Entity]:
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE canonical_key = %s",
                    (canonical_key,),
                )
                row = cur.fetchone()
        return _entity(row) if row else None

    def touch_entity(self, entity_id: int) -> None:
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute("UPDATE entities SET updated_at = now() WHERE id = %s", (entity_id,))

    def insert_entity(
        self,
        *,
        name: str,
        entity_type: str,
        canonical_key: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Entity]:
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO entities (name, type, canonical_key, description, metadata)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (canonical_key) DO NOTHING
                    RETURNING {_ENTITY_COLUMNS}
                    """,
                    (name, entity_type, canonical_key, description, Jsonb(metadata) if metadata is not None else None),
                )
                row = cur.fetchone()
        return _entity(row) if row else None

    def get_alias_by_key(self, alias_key: str) -> Optional[EntityAlias]:
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {_ALIAS_COLUMNS} FROM entity_aliases WHERE alias_key = %s", (alias_key,))
                row = cur.fetchone()
        return _alias(row) if row else None

    def insert_alias(self, *, entity_id: int, alias: str, alias_key: str, source: Optional[str]) -> Optional[EntityAlias]:
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO entity_aliases (entity_id, alias, alias_key, source)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (alias_key) DO NOTHING
                    RETURNING {_ALIAS_COLUMNS}
                    """,
                    (entity_id, alias, alias_key, source),
                )
                row = cur.fetchone()
        return _alias(row) if row else None

    def link_signal_entity(
        self,
        *,
        signal_id: int,
        entity_id: int,
        role: str,
        confidence: Optional[int] = None,
        surface: Optional[str] = None,
    ) -> bool:
        """True when a new link row was written."""
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO signal_entities (signal_id, entity_id, role, confidence, surface)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (signal_id, entity_id, role) DO NOTHING
                    RETURNING id
                    """,
                    (signal_id, entity_id, role, confidence, surface),
                )
                return cur.fetchone() is not None
