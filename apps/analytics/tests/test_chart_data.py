from django.test import SimpleTestCase

from apps.analytics.exceptions import InputError
from apps.analytics.services.aggregator import ChartDataAggregator
from apps.analytics.services.insight_generator import InsightGenerator
from apps.analytics.tests.test_relationship_analyzer import REGION_SALES


class TestChartDataAggregator(SimpleTestCase):
    def setUp(self):
        self.aggregator = ChartDataAggregator(performance_mode_rows=1000)

    def test_bar_sums_by_group(self):
        chart = self.aggregator.generate(
            REGION_SALES,
            {"type": "bar", "x_axis": "region", "y_axis": "sales", "group_by": "region"},
        )

        self.assertEqual([p["name"] for p in chart["data"]], ["North", "South", "East"])
        self.assertEqual([p["value"] for p in chart["data"]], [33.0, 153.0, 297.0])
        self.assertEqual(chart["library"], "echarts")
        self.assertFalse(chart["performance_mode"])
        self.assertIsNone(chart["sampling_info"])

    def test_pie_average_from_camel_case_config(self):
        chart = self.aggregator.generate(
            REGION_SALES,
            {"type": "pie", "groupBy": "region", "yAxis": "sales", "aggregation": "avg"},
        )

        self.assertEqual([p["value"] for p in chart["data"]], [11.0, 51.0, 99.0])

    def test_missing_axes_returns_none(self):
        self.assertIsNone(
            self.aggregator.generate(REGION_SALES, {"type": "bar", "y_axis": "sales"})
        )
        self.assertIsNone(
            self.aggregator.generate(REGION_SALES, {"type": "scatter", "x_axis": "sales"})
        )

    def test_rejects_unknown_aggregation(self):
        with self.assertRaises(InputError):
            self.aggregator.generate(
                REGION_SALES,
                {"type": "bar", "x_axis": "region", "y_axis": "sales", "aggregation": "median"},
            )

    def test_line_performance_mode_samples_rows(self):
        rows = [{"step": i, "value": i * 2} for i in range(2000)]

        chart = self.aggregator.generate(
            rows, {"type": "line", "x_axis": "step", "y_axis": "value"}
        )

        self.assertTrue(chart["performance_mode"])
        self.assertEqual(chart["displayed_rows"], 500)
        self.assertEqual(chart["data"][1], {"x": 4, "y": 8.0})
        self.assertEqual(
            chart["sampling_info"],
            {
                "enabled": True,
                "original_rows": 2000,
                "displayed_rows": 500,
                "sampling_ratio": "25.0%",
            },
        )

    def test_histogram_counts_every_value(self):
        chart = self.aggregator.generate(
            REGION_SALES, {"type": "histogram", "x_axis": "sales", "bins": 5}
        )

        self.assertEqual(len(chart["data"]), 5)
        self.assertEqual(sum(b["count"] for b in chart["data"]), len(REGION_SALES))

    def test_histogram_skips_non_finite_values(self):
        rows = [{"v": 1}, {"v": "1e999"}, {"v": float("inf")}, {"v": 3}]

        chart = self.aggregator.generate(rows, {"type": "histogram", "x_axis": "v", "bins": 2})

        self.assertEqual(sum(b["count"] for b in chart["data"]), 2)
        self.assertEqual(chart["data"][-1]["bin_end"], 3.0)

    def test_box_summary_uses_plotly(self):
        chart = self.aggregator.generate(
            REGION_SALES, {"type": "box", "y_axis": "sales", "group_by": "region"}
        )

        self.assertEqual(chart["library"], "plotly")
        north = chart["data"][0]
        self.assertEqual(north["name"], "North")
        self.assertEqual((north["min"], north["median"], north["max"]), (10.0, 11.0, 12.0))


class TestInsightGenerator(SimpleTestCase):
    def setUp(self):
        self.generator = InsightGenerator()

    def test_quality_and_recommendation_insights(self):
        result = self.generator.generate(
            REGION_SALES, {"score": 95.0}, {"recommendations": [{"type": "bar"}]}
        )

        categories = [i["category"] for i in result["insights"]]
        self.assertEqual(categories, ["data_quality", "recommendations"])
        self.assertEqual(result["insights"][0]["type"], "success")
        self.assertEqual(
            result["insights"][1]["message"], "Smart analysis recommends bar charts."
        )

    def test_moderate_quality_warns(self):
        insights = self.generator.insights(REGION_SALES, {"score": 75.0}, None)

        self.assertEqual(insights[0]["type"], "warning")
        self.assertEqual(insights[0]["impact"], "medium")

    def test_low_quality_has_no_quality_insight(self):
        self.assertEqual(self.generator.insights(REGION_SALES, {"score": 40.0}, None), [])

    def test_column_statistics_and_types(self):
        result = self.generator.generate(REGION_SALES, {"score": 100.0})

        self.assertEqual(result["column_types"]["numeric"], ["sales"])
        self.assertEqual(result["column_types"]["categorical"], ["region"])
        stats = result["statistics"]["sales"]
        self.assertEqual(stats["count"], 9)
        self.assertEqual(stats["min"], 10.0)
        self.assertEqual(stats["max"], 100.0)

    def test_correlation_labels(self):
        rows = [{"a": i, "b": i * 3, "c": (-1) ** i} for i in range(1, 21)]

        correlations = self.generator.correlations(rows, ["a", "b", "c"])

        self.assertEqual(correlations["a_b"], {"correlation": 1.0, "strength": "strong"})
        self.assertEqual(correlations["a_c"]["strength"], "weak")
