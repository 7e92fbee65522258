from django.test import SimpleTestCase, override_settings

from apps.analytics.exceptions import InputError
from apps.analytics.options import (
    ChartConfig,
    DuplicateStrategy,
    MissingValueStrategy,
    OutlierStrategy,
    PreprocessingOptions,
    UserPreferences,
)


class TestPreprocessingOptions(SimpleTestCase):
    def test_defaults(self):
        options = PreprocessingOptions.from_dict()

        self.assertEqual(options.missing_value_strategy, MissingValueStrategy.AUTO)
        self.assertEqual(options.duplicate_strategy, DuplicateStrategy.STRICT)
        self.assertFalse(options.handle_outliers)
        self.assertEqual(options.outlier_strategy, OutlierStrategy.IQR)

    def test_accepts_camel_and_snake_case(self):
        camel = PreprocessingOptions.from_dict(
            {"missingValueStrategy": "mean", "handleOutliers": True}
        )
        snake = PreprocessingOptions.from_dict(
            {"missing_value_strategy": "mean", "handle_outliers": True}
        )

        self.assertEqual(camel, snake)
        self.assertEqual(camel.missing_value_strategy, MissingValueStrategy.MEAN)

    def test_unknown_strategy_rejected(self):
        with self.assertRaisesMessage(InputError, "Invalid duplicate strategy 'loose'"):
            PreprocessingOptions.from_dict({"duplicateStrategy": "loose"})

    def test_outlier_flag_from_form_strings(self):
        for raw, expected in [("false", False), ("True", True), ("0", False), (1, True)]:
            with self.subTest(raw=raw):
                options = PreprocessingOptions.from_dict({"handleOutliers": raw})
                self.assertIs(options.handle_outliers, expected)

        with self.assertRaises(InputError):
            PreprocessingOptions.from_dict({"handleOutliers": "sometimes"})

    def test_non_object_rejected(self):
        with self.assertRaises(InputError):
            PreprocessingOptions.from_dict(["median"])

    @override_settings(ANALYTICS={"DUPLICATE_STRATEGY": "fuzzy", "HANDLE_OUTLIERS": True})
    def test_project_defaults(self):
        options = PreprocessingOptions.from_dict({})

        self.assertEqual(options.duplicate_strategy, DuplicateStrategy.FUZZY)
        self.assertTrue(options.handle_outliers)
        self.assertEqual(options.missing_value_strategy, MissingValueStrategy.AUTO)


class TestUserPreferences(SimpleTestCase):
    def test_aliases_and_unknown_types(self):
        preferences = UserPreferences.from_dict(
            {"preferredChartTypes": ["pie", "donut"], "avoid_types": ["bar"]}
        )

        self.assertEqual(preferences.preferred_types, ["pie"])
        self.assertEqual(preferences.avoid_types, ["bar"])

    def test_bare_string_rejected(self):
        with self.assertRaisesMessage(InputError, "must be a list of chart types"):
            UserPreferences.from_dict({"preferredTypes": "bar"})


class TestChartConfig(SimpleTestCase):
    def test_from_configurator_output(self):
        config = ChartConfig.from_dict(
            {
                "type": "bar",
                "title": "Category Analysis",
                "x_axis": "region",
                "y_axis": "sales",
                "group_by": "region",
                "priority": 5,
                "suggested_filters": [],
            }
        )

        self.assertEqual(config.group_by, "region")
        self.assertEqual(config.aggregation, "sum")

    def test_invalid_values(self):
        with self.assertRaises(InputError):
            ChartConfig.from_dict({"type": "donut"})
        with self.assertRaises(InputError):
            ChartConfig.from_dict({"type": "histogram", "bins": "many"})
