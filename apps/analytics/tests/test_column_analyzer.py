from django.test import SimpleTestCase

from apps.analytics.services.column_analyzer import ColumnAnalyzer
from apps.analytics.utils import count_distinct


class TestColumnAnalyzer(SimpleTestCase):
    def setUp(self):
        self.analyzer = ColumnAnalyzer()

    def test_numeric_column_profile(self):
        profile = self.analyzer.analyze("price", ["1", "2", "3", None])

        self.assertEqual(profile["type"], "numeric")
        self.assertEqual(profile["role"], "measure")
        self.assertEqual(profile["null_count"], 1)
        self.assertEqual(profile["non_null_count"], 3)
        self.assertAlmostEqual(profile["mean"], 2.0)
        self.assertAlmostEqual(profile["median"], 2.0)
        self.assertAlmostEqual(profile["quality"], 0.875)

    def test_all_missing_column_is_empty(self):
        profile = self.analyzer.analyze("notes", [None, "", "   "])

        self.assertEqual(profile["type"], "empty")
        self.assertEqual(profile["role"], "none")
        self.assertEqual(profile["quality"], 0)

    def test_date_column_is_temporal(self):
        profile = self.analyzer.analyze(
            "shipped", ["2024-01-01", "2024-02-01", "2024-03-01"]
        )

        self.assertEqual(profile["type"], "date")
        self.assertEqual(profile["role"], "temporal")

    def test_boolean_tokens(self):
        profile = self.analyzer.analyze("active", ["yes", "no", "yes", "no"])

        self.assertEqual(profile["type"], "boolean")
        self.assertEqual(profile["role"], "dimension")

    def test_numeric_wins_ties_with_boolean(self):
        self.assertEqual(self.analyzer.detect_type(["1", "0", "1", "0"]), "numeric")

    def test_categorical_and_text_fallback(self):
        categorical = self.analyzer.analyze("colour", ["red", "blue", "red", "blue", "red"])
        self.assertEqual(categorical["type"], "categorical")
        self.assertEqual(
            categorical["top_categories"],
            [{"category": "red", "count": 3}, {"category": "blue", "count": 2}],
        )

        text = self.analyzer.analyze("comment", ["alpha", "beta", "gamma"])
        self.assertEqual(text["type"], "text")

    def test_role_keywords(self):
        self.assertEqual(self.analyzer.determine_role("order_date", "text"), "temporal")
        self.assertEqual(self.analyzer.determine_role("total", "text"), "measure")
        self.assertEqual(self.analyzer.determine_role("label", "text"), "dimension")
        self.assertEqual(self.analyzer.determine_role("notes", "boolean"), "dimension")

    def test_type_detection_reads_first_thousand_values(self):
        values = [None] * 50 + [str(i) for i in range(1000)] + ["n/a text"] * 3000

        profile = self.analyzer.analyze("reading", values)

        self.assertEqual(profile["type"], "numeric")
        self.assertEqual(profile["non_null_count"], 4000)

        full = ColumnAnalyzer(sample_size=5000).analyze("reading", values)
        self.assertEqual(full["type"], "categorical")

    def test_distinct_values_follow_identity(self):
        self.assertEqual(count_distinct([1, 1.0, "1", True]), 3)

    def test_distribution_needs_ten_values(self):
        self.assertEqual(self.analyzer.distribution([1, 2, 3]), {})

        values = list(range(1, 20)) + [1000]
        distribution = self.analyzer.distribution(values)

        self.assertTrue(distribution["has_outliers"])
        self.assertEqual(distribution["outlier_count"], 1)
        self.assertEqual(distribution["distribution_type"], "right_skewed")
