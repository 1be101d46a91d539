"""In-memory stand-ins for the Postgres stores."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from signalwatch.graph.entities import Entity, EntityAlias
from signalwatch.ingestion.signal_types import RecentSignal, StoredSignal


class FakeRepo:
    def __init__(self, population: Optional[List[StoredSignal]] = None):
        self.population = list(population or [])
        self.rows: Dict[int, dict] = {}
        self.by_hash: Dict[str, int] = {}
        self.runs: List = []
        self.recent_calls: List = []
        self.pending: List = []
        self.fail_inserts_for: set = set()
        self._next_id = 1

    def seed(self, company_id: int, title: str, source_url: Optional[str] = None, fingerprint: Optional[str] = None) -> int:
        sid = self._next_id
        self._next_id += 1
        self.rows[sid] = {"company_id": company_id, "title": title, "source_url": source_url}
        if fingerprint:
            self.by_hash[fingerprint] = sid
        return sid

    def get_signal_by_hash(self, fingerprint):
        sid = self.by_hash.get(fingerprint)
        if sid is None:
            return None
        row = self.rows[sid]
        return RecentSignal(sid, row["title"], row["source_url"])

    def get_recent_signals_for_company(self, company_id, since):
        self.recent_calls.append((company_id, since))
        out = [
            RecentSignal(sid, row["title"], row["source_url"])
            for sid, row in self.rows.items()
            if row["company_id"] == company_id
        ]
        return list(reversed(out))

    def insert_signal(self, candidate, *, fingerprint, novelty_score, priority, recommended_format):
        if fingerprint in self.by_hash or fingerprint in self.fail_inserts_for:
            return None
        sid = self.seed(candidate.company_id, candidate.title, candidate.source_url, fingerprint)
        self.rows[sid].update(
            novelty_score=novelty_score,
            priority=priority,
            recommended_format=recommended_format,
        )
        return sid

    def get_signal_population(self):
        return list(self.population)

    def get_signals_pending_entity_links(self, limit=200):
        return self.pending[:limit]

    def record_monitor_run(self, progress):
        self.runs.append(progress)
        return len(self.runs)


class FakeTrendStore:
    def __init__(self, fail_for: Optional[set] = None):
        self.metrics: List = []
        self.trends: List = []
        self.fail_for = fail_for or set()

    def create_signal_metric(self, snapshot):
        self.metrics.append(snapshot)
        return len(self.metrics)

    def create_trend(self, trend):
        if trend.scope_id in self.fail_for:
            raise RuntimeError(f"write failed for {trend.scope_id}")
        self.trends.append(trend)
        return len(self.trends)


class FakeGraphStore:
    def __init__(self):
        self.entities: Dict[int, Entity] = {}
        self.aliases: Dict[str, EntityAlias] = {}
        self.links: Dict[tuple, dict] = {}
        self.touched: List[int] = []
        self.lose_next_insert_to: Optional[Entity] = None
        self._next_id = 1

    def _id(self) -> int:
        n = self._next_id
        self._next_id += 1
        return n

    def get_entity(self, entity_id):
        return self.entities.get(entity_id)

    def get_entity_by_key(self, canonical_key):
        for e in self.entities.values():
            if e.canonical_key == canonical_key:
                return e
        return None

    def touch_entity(self, entity_id):
        self.touched.append(entity_id)

    def insert_entity(self, *, name, entity_type, canonical_key, description=None, metadata=None):
        if self.lose_next_insert_to is not None:
            winner, self.lose_next_insert_to = self.lose_next_insert_to, None
            self.entities[winner.id] = winner
            return None
        if self.get_entity_by_key(canonical_key) is not None:
            return None
        now = datetime.now(timezone.utc)
        e = Entity(self._id(), name, entity_type, canonical_key, description, metadata, now, now)
        self.entities[e.id] = e
        return e

    def get_alias_by_key(self, alias_key):
        return self.aliases.get(alias_key)

    def insert_alias(self, *, entity_id, alias, alias_key, source):
        if alias_key in self.aliases:
            return None
        a = EntityAlias(self._id(), entity_id, alias, alias_key, source, datetime.now(timezone.utc))
        self.aliases[alias_key] = a
        return a

    def link_signal_entity(self, *, signal_id, entity_id, role, confidence=None, surface=None):
        key = (signal_id, entity_id, role)
        if key in self.links:
            return False
        self.links[key] = {"confidence": confidence, "surface": surface}
        return True
