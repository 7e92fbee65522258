from unittest import mock

from django.test import SimpleTestCase

from apps.analytics.exceptions import ConfigurationError, InputError
from apps.analytics.options import UserPreferences
from apps.analytics.services.chart_configurator import SmartChartConfigurator
from apps.analytics.tests.test_relationship_analyzer import REGION_SALES


class TestSmartChartConfigurator(SimpleTestCase):
    def setUp(self):
        self.configurator = SmartChartConfigurator()

    def test_categorical_and_numeric_recommends_bar(self):
        result = self.configurator.configure(REGION_SALES)

        top = result["recommendations"][0]
        self.assertEqual(top["type"], "bar")
        self.assertEqual(top["priority"], 5)
        self.assertAlmostEqual(top["confidence"], 1.0)
        self.assertEqual(top["suitability"], "high")
        self.assertEqual(top["reasoning"], "categorical data detected, numeric measures available")

        bar = result["configurations"][0]
        self.assertEqual(bar["x_axis"], "region")
        self.assertEqual(bar["y_axis"], "sales")
        self.assertEqual(bar["group_by"], "region")
        self.assertTrue(bar["auto_selected"])
        self.assertEqual(bar["suggested_filters"], ["region"])
        self.assertIsNone(bar["suggested_series"])

    def test_recommendation_order_and_scores(self):
        result = self.configurator.configure(REGION_SALES)

        self.assertEqual(
            [r["type"] for r in result["recommendations"]],
            ["bar", "pie", "histogram", "box"],
        )
        self.assertEqual(
            [r["suitability"] for r in result["recommendations"]],
            ["high", "medium", "low", "low"],
        )

    def test_histogram_bins_follow_row_count(self):
        result = self.configurator.configure(REGION_SALES)

        histogram = next(c for c in result["configurations"] if c["type"] == "histogram")
        self.assertEqual(histogram["x_axis"], "sales")
        self.assertEqual(histogram["bins"], 5)

    def test_scatter_uses_correlated_pair(self):
        rows = [{"x": i, "y": 2 * i + 1} for i in range(1, 11)]

        result = self.configurator.configure(rows)

        self.assertEqual(result["recommendations"][0]["type"], "scatter")
        scatter = result["configurations"][0]
        self.assertEqual((scatter["x_axis"], scatter["y_axis"]), ("x", "y"))

    def test_preferences_reorder_without_leaking(self):
        baseline = self.configurator.configure(REGION_SALES)
        preferences = UserPreferences.from_dict(
            {"preferredTypes": ["pie"], "avoidTypes": ["bar"]}
        )

        preferred = self.configurator.configure(REGION_SALES, preferences)
        again = self.configurator.configure(REGION_SALES)

        self.assertEqual(preferred["recommendations"][0]["type"], "pie")
        self.assertEqual(again["recommendations"], baseline["recommendations"])

    def test_auto_selections_and_metadata(self):
        result = self.configurator.configure(REGION_SALES)

        self.assertEqual(
            result["auto_selections"],
            {
                "recommended_x_axis": "region",
                "recommended_y_axis": "sales",
                "recommended_series": "region",
                "recommended_filters": ["region"],
            },
        )
        self.assertEqual(result["metadata"]["data_size"], 9)
        self.assertEqual(result["metadata"]["column_count"], 2)
        self.assertGreater(result["metadata"]["confidence_score"], 0)
        self.assertLessEqual(result["metadata"]["confidence_score"], 1)

    def test_analysis_sections(self):
        analysis = self.configurator.configure(REGION_SALES)["analysis"]

        self.assertEqual(analysis["data_types"], {"region": "categorical", "sales": "numeric"})
        self.assertEqual(
            analysis["patterns"],
            {
                "temporal": False,
                "categorical": True,
                "numerical": True,
                "hierarchical": False,
                "correlation": False,
            },
        )
        self.assertLessEqual(len(analysis["representative_rows"]), 5)
        for row in analysis["representative_rows"]:
            self.assertIn(row, REGION_SALES)

    def test_empty_rows_rejected(self):
        with self.assertRaises(InputError) as ctx:
            self.configurator.configure([])

        self.assertEqual(str(ctx.exception), "No data provided for configuration")

    def test_unexpected_failure_is_wrapped(self):
        relationships = mock.Mock()
        relationships.analyze.side_effect = RuntimeError("boom")
        configurator = SmartChartConfigurator(relationship_analyzer=relationships)

        with self.assertRaises(ConfigurationError) as ctx:
            configurator.configure(REGION_SALES)

        self.assertEqual(str(ctx.exception), "Smart configuration failed: boom")

    def test_representative_rows_without_numeric_columns(self):
        rows = [{"colour": c} for c in ["red", "blue", "green", "red", "blue", "pink"]]

        representatives = self.configurator.representative_rows(
            rows, {"colour": {"type": "text"}}
        )

        self.assertEqual(representatives, rows[:5])
