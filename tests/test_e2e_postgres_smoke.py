import os
import unittest
import uuid
from datetime import datetime, timedelta, timezone

import psycopg

from signalwatch.analytics.trends import generate_trends
from signalwatch.graph.entities import link_signal_to_entities, upsert_entity
from signalwatch.ingestion.signal_types import CandidateSignal
from signalwatch.monitoring.batch import run_monitoring
from signalwatch.storage.postgres_graph import PostgresGraphStore
from signalwatch.storage.postgres_repo import PostgresRepo
from signalwatch.storage.postgres_schema import ensure_postgres_schema
from signalwatch.storage.postgres_trends import PostgresTrendStore


PG_DSN = os.environ.get("PG_DSN", "dbname=signalwatch user=signalwatch password=signalwatch host=localhost port=5432")


@unittest.skipUnless(os.environ.get("SIGNALWATCH_PG_TESTS") == "1", "set SIGNALWATCH_PG_TESTS=1 to run against Postgres")
class TestE2EPostgresSmoke(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        ensure_postgres_schema(PG_DSN)
        cls.industry = f"E2E-{uuid.uuid4().hex[:8]}"
        with psycopg.connect(PG_DSN, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO companies (name, industry) VALUES (%s, %s) RETURNING id",
                    ("Acme Foods, Inc.", cls.industry),
                )
                cls.company_id = int(cur.fetchone()[0])

    def test_admission_dedupes_and_records_run(self):
        now = datetime.now(timezone.utc)
        tag = uuid.uuid4().hex[:8]
        candidates = [
            CandidateSignal(f"Acme raises $10M Series A {tag}", self.company_id, now, source_url=f"https://techwire.com/{tag}/a"),
            CandidateSignal(f"Acme Raises $10M in Series A Round {tag}", self.company_id, now, source_url=f"https://techwire.com/{tag}/b"),
            CandidateSignal(f"Acme raises $10M Series A {tag}", self.company_id, now, source_url=f"https://techwire.com/{tag}/a?utm_source=x"),
        ]
        repo = PostgresRepo(PG_DSN)
        outcome = run_monitoring(repo, [(self.company_id, candidates)])
        p = outcome.progress
        self.assertEqual((p.signals_created, p.near_duplicates_skipped, p.duplicates_skipped), (1, 1, 1))
        self.assertIsNotNone(outcome.run_id)

    def test_entity_upsert_and_linking(self):
        graph = PostgresGraphStore(PG_DSN)
        a = upsert_entity(graph, entity_type="company", name="Acme Foods, Inc.")
        b = upsert_entity(graph, entity_type="company", name="ACME FOODS INC")
        self.assertEqual(a.id, b.id)

        repo = PostgresRepo(PG_DSN)
        now = datetime.now(timezone.utc)
        sid = repo.get_recent_signals_for_company(self.company_id, now - timedelta(days=1))
        if not sid:
            self.skipTest("no signal to link")
        result = link_signal_to_entities(graph, sid[0].id, "Acme Foods, Inc.", {"people": ["Jane Doe"]})
        self.assertEqual(result.errors, 0)

    def test_trends_run_against_population(self):
        result = generate_trends(PostgresRepo(PG_DSN), PostgresTrendStore(PG_DSN))
        self.assertGreaterEqual(result.trends_generated, 0)
        self.assertEqual(result.errors, 0)
        recent = PostgresTrendStore(PG_DSN).get_recent_trends(limit=5)
        self.assertLessEqual(len(recent), 5)


if __name__ == "__main__":
    unittest.main()
