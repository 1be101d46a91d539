import unittest

from signalwatch.dedup.near_duplicate import (
    METHOD_NEAR_JACCARD,
    METHOD_NONE,
    check_near_duplicate,
    compute_novelty_score,
    extend_window,
)
from signalwatch.ingestion.signal_types import RecentSignal


class TestNearDuplicate(unittest.TestCase):
    def test_same_host_series_a_rewrite_is_duplicate(self):
        window = [RecentSignal(1, "Acme raises $10M Series A", "https://techwire.com/acme-series-a")]
        v = check_near_duplicate("Acme Raises $10M in Series A Round", "https://www.techwire.com/acme-10m", window)
        self.assertTrue(v.is_near_duplicate)
        self.assertEqual(v.method, METHOD_NEAR_JACCARD)
        self.assertEqual(v.matched_id, 1)
        self.assertAlmostEqual(v.similarity, 0.8)
        self.assertGreaterEqual(v.similarity, 0.75)

    def test_same_titles_different_hosts_below_high_bar(self):
        window = [RecentSignal(1, "Acme raises $10M Series A", "https://techwire.com/a")]
        v = check_near_duplicate("Acme Raises $10M in Series A Round", "https://other.com/b", window)
        self.assertFalse(v.is_near_duplicate)
        self.assertEqual(v.method, METHOD_NONE)
        self.assertIsNone(v.matched_id)

    def test_exact_normalized_title_match(self):
        window = [RecentSignal(9, "ACME Inc. announces new plant!", None)]
        v = check_near_duplicate("Acme announces new plant", None, window)
        self.assertTrue(v.is_near_duplicate)
        self.assertEqual(v.similarity, 1.0)
        self.assertEqual(v.matched_id, 9)

    def test_high_similarity_regardless_of_host(self):
        window = [RecentSignal(3, "Acme opens new Ohio battery plant today", None)]
        v = check_near_duplicate("Acme opens new Ohio battery plant", None, window)
        # 6 of 7 tokens shared
        self.assertTrue(v.is_near_duplicate)
        self.assertGreaterEqual(v.similarity, 0.85)

    def test_first_match_in_list_order_wins(self):
        window = [
            RecentSignal(1, "Unrelated earnings story", None),
            RecentSignal(2, "Acme acquires Beta", None),
            RecentSignal(3, "Acme acquires Beta", None),
        ]
        v = check_near_duplicate("Acme acquires Beta", None, window)
        self.assertEqual(v.matched_id, 2)

    def test_empty_window(self):
        self.assertFalse(check_near_duplicate("Anything", None, []).is_near_duplicate)

    def test_empty_titles_follow_set_conventions(self):
        window = [RecentSignal(1, "", None)]
        # both token sets empty -> similarity 1 under the set convention
        v = check_near_duplicate("", None, window)
        self.assertTrue(v.is_near_duplicate)
        self.assertEqual(v.similarity, 1.0)
        self.assertFalse(check_near_duplicate("", None, [RecentSignal(2, "Acme news", None)]).is_near_duplicate)

    def test_extend_window_returns_new_tuple(self):
        original = (RecentSignal(1, "a", None),)
        extended = extend_window(original, RecentSignal(2, "b", None))
        self.assertEqual(len(original), 1)
        self.assertEqual([s.id for s in extended], [1, 2])


class TestNoveltyScore(unittest.TestCase):
    def test_empty_candidates_is_fully_novel(self):
        self.assertEqual(compute_novelty_score("Acme raises", []), 100)

    def test_identical_title_is_zero(self):
        self.assertEqual(compute_novelty_score("Acme raises Series A", [RecentSignal(1, "Acme raises Series A")]), 0)

    def test_rounds_from_max_similarity(self):
        candidates = [RecentSignal(1, "Acme raises $10M Series A"), RecentSignal(2, "Weather update")]
        self.assertEqual(compute_novelty_score("Acme Raises $10M in Series A Round", candidates), 20)

    def test_monotonic_in_similarity(self):
        title = "acme opens ohio battery plant"
        closer = [RecentSignal(1, "acme opens ohio battery factory")]
        farther = [RecentSignal(1, "acme opens texas office")]
        self.assertLessEqual(compute_novelty_score(title, closer), compute_novelty_score(title, farther))


if __name__ == "__main__":
    unittest.main()
