import unittest

from signalwatch.dedup.text import jaccard_similarity, normalize_title, tokenize_for_jaccard


class TestTitleTokens(unittest.TestCase):
    def test_normalize_title_drops_punctuation_and_boilerplate(self):
        self.assertEqual(normalize_title("  Acme  Inc. Announces   NEW Plant!  "), "acme new plant")

    def test_normalize_title_empty(self):
        self.assertEqual(normalize_title(None), "")
        self.assertEqual(normalize_title("Announces"), "")

    def test_tokenize_filters_stopwords_and_short_tokens(self):
        toks = tokenize_for_jaccard("The Acme Corp. launches a new plant in Ohio")
        self.assertEqual(toks, {"acme", "new", "plant", "ohio"})

    def test_tokenize_returns_set(self):
        self.assertEqual(tokenize_for_jaccard("plant plant PLANT"), {"plant"})

    def test_jaccard_conventions(self):
        self.assertEqual(jaccard_similarity(set(), set()), 1.0)
        self.assertEqual(jaccard_similarity(set(), {"a"}), 0.0)
        self.assertEqual(jaccard_similarity({"a"}, set()), 0.0)

    def test_jaccard_symmetric_and_bounded(self):
        pairs = [
            ({"acme", "raises"}, {"acme", "series"}),
            ({"x"}, {"x"}),
            ({"a", "b", "c"}, {"d"}),
        ]
        for a, b in pairs:
            s = jaccard_similarity(a, b)
            self.assertEqual(s, jaccard_similarity(b, a))
            self.assertGreaterEqual(s, 0.0)
            self.assertLessEqual(s, 1.0)
        self.assertAlmostEqual(jaccard_similarity({"acme", "raises"}, {"acme", "series"}), 1 / 3)


if __name__ == "__main__":
    unittest.main()
