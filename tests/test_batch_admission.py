import unittest
from datetime import datetime, timedelta, timezone

from signalwatch.dedup.fingerprint import generate_stable_hash
from signalwatch.ingestion.signal_types import CandidateSignal
from signalwatch.monitoring.batch import admit_company_batch, run_monitoring
from signalwatch.monitoring.progress import MonitorProgress, StopFlag

from tests.fakes import FakeRepo


NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def candidate(title, url=None, company_id=42, **kw):
    return CandidateSignal(title=title, company_id=company_id, gathered_at=NOW, source_url=url, **kw)


class TestAdmitCompanyBatch(unittest.TestCase):
    def test_near_duplicates_within_one_batch_are_not_both_stored(self):
        repo = FakeRepo()
        result = admit_company_batch(
            repo,
            42,
            [
                candidate("Acme raises $10M Series A", "https://techwire.com/a"),
                candidate("Acme Raises $10M in Series A Round", "https://techwire.com/b"),
                candidate("Acme opens Ohio plant", "https://techwire.com/c"),
            ],
            now=NOW,
        )
        self.assertEqual([d.decision for d in result.decisions], ["created", "near_duplicate", "created"])
        self.assertEqual((result.created, result.near_duplicates_skipped, result.duplicates_skipped), (2, 1, 0))
        self.assertEqual(result.decisions[1].verdict.matched_id, result.decisions[0].signal_id)
        self.assertEqual(len(result.window), 2)
        self.assertEqual(len(repo.rows), 2)

    def test_exact_fingerprint_hit_is_skipped(self):
        c = candidate("Acme acquires Beta", "https://news.com/acme-beta", type="acquisition")
        fp = generate_stable_hash(42, c.source_url, None, c.title, None, NOW)
        repo = FakeRepo()
        existing = repo.seed(42, "Older headline", None, fingerprint=fp)
        result = admit_company_batch(repo, 42, [c], window=(), now=NOW)
        d = result.decisions[0]
        self.assertEqual(d.decision, "duplicate")
        self.assertEqual(d.verdict.method, "exact_hash")
        self.assertEqual(d.verdict.matched_id, existing)

    def test_insert_conflict_counts_as_duplicate(self):
        c = candidate("Acme acquires Beta", "https://news.com/acme-beta")
        repo = FakeRepo()
        repo.fail_inserts_for.add(generate_stable_hash(42, c.source_url, None, c.title, None, NOW))
        result = admit_company_batch(repo, 42, [c], now=NOW)
        self.assertEqual(result.duplicates_skipped, 1)
        self.assertEqual(result.window, ())

    def test_window_loaded_from_lookback(self):
        repo = FakeRepo()
        repo.seed(42, "Acme raises $10M Series A", "https://techwire.com/a")
        result = admit_company_batch(repo, 42, [candidate("Acme Raises $10M in Series A Round", "https://techwire.com/b")], now=NOW)
        self.assertEqual(result.near_duplicates_skipped, 1)
        self.assertEqual(repo.recent_calls, [(42, NOW - timedelta(days=14))])

    def test_scores_are_persisted_with_signal(self):
        repo = FakeRepo()
        c = candidate(
            "Regulator fines Acme",
            "https://gov.example/fine",
            type="regulatory",
            sentiment="negative",
            citations=["https://a.com/1", "https://b.com/2", "https://c.com/3"],
            relevance_score=0.9,
        )
        d = admit_company_batch(repo, 42, [c], window=(), now=NOW).decisions[0]
        self.assertEqual(d.novelty_score, 100)
        self.assertEqual((d.priority.score, d.priority.label), (100, "high"))
        self.assertEqual(d.format.format, "news")
        self.assertEqual(repo.rows[d.signal_id]["recommended_format"], "news")

    def test_input_window_is_not_mutated(self):
        repo = FakeRepo()
        window = ()
        result = admit_company_batch(repo, 42, [candidate("Acme opens plant")], window=window, now=NOW)
        self.assertEqual(window, ())
        self.assertEqual(len(result.window), 1)

    def test_stop_between_candidates(self):
        calls = {"n": 0}

        def stop_after_first():
            calls["n"] += 1
            return calls["n"] > 1

        result = admit_company_batch(
            FakeRepo(), 42, [candidate("First story"), candidate("Second story")], window=(), now=NOW, should_stop=stop_after_first
        )
        self.assertTrue(result.stopped)
        self.assertEqual(result.found, 1)


class TestRunMonitoring(unittest.TestCase):
    def test_progress_and_run_record(self):
        repo = FakeRepo()
        batches = [
            (1, [candidate("Acme raises $10M Series A", company_id=1), candidate("Acme raises $10M Series A", company_id=1)]),
            (2, [candidate("Globex opens office", company_id=2)]),
        ]
        initial = MonitorProgress()
        outcome = run_monitoring(repo, batches, progress=initial, now=NOW)
        p = outcome.progress

        self.assertEqual(p.status, "completed")
        self.assertEqual((p.companies_total, p.companies_processed), (2, 2))
        self.assertEqual((p.signals_found, p.signals_created, p.duplicates_skipped), (3, 2, 1))
        self.assertEqual(initial.status, "idle")
        self.assertEqual(repo.runs, [p])
        self.assertEqual(outcome.run_id, 1)

    def test_stop_flag_before_start_records_stopped_run(self):
        repo = FakeRepo()
        stop = StopFlag()
        stop.request_stop()
        outcome = run_monitoring(repo, [(1, [candidate("x", company_id=1)])], stop, now=NOW)
        self.assertEqual(outcome.progress.status, "stopped")
        self.assertEqual(outcome.progress.companies_processed, 0)
        self.assertEqual(len(repo.runs), 1)


class TestMonitorProgress(unittest.TestCase):
    def test_steps_return_new_snapshots(self):
        p0 = MonitorProgress().start(3, now=NOW)
        p1 = p0.begin_company(7).advance(found=4, created=2, near_duplicates=2, company_done=True)
        self.assertEqual(p0.signals_found, 0)
        self.assertEqual((p1.current_company_id, p1.signals_found, p1.companies_processed), (7, 4, 1))
        done = p1.finish(now=NOW)
        self.assertEqual(done.status, "completed")
        self.assertIsNone(done.current_company_id)
        self.assertTrue(p1.is_running)


if __name__ == "__main__":
    unittest.main()
