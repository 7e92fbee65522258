import logging
import time
from typing import Dict, List, Optional

from apps.analytics.conf import get_setting
from apps.analytics.exceptions import InputError
from apps.analytics.options import ChartConfig, PreprocessingOptions, UserPreferences
from apps.analytics.services.aggregator import ChartDataAggregator
from apps.analytics.services.chart_configurator import SmartChartConfigurator
from apps.analytics.services.insight_generator import InsightGenerator
from apps.analytics.services.loader import DatasetLoader
from apps.analytics.services.preprocessor import DataPreprocessor
from apps.analytics.utils import convert_numpy

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self):
        self.loader = DatasetLoader()
        self.preprocessor = DataPreprocessor()
        self.configurator = SmartChartConfigurator()
        self.aggregator = ChartDataAggregator()
        self.insight_generator = InsightGenerator()

    @staticmethod
    def rows_from_sheet(sheet_data) -> List[Dict]:
        """
        Rows from a ``{headers, data}`` sheet.

        Rows may be objects keyed by header or positional arrays.
        """
        if (
            not isinstance(sheet_data, dict)
            or not isinstance(sheet_data.get("headers"), list)
            or not isinstance(sheet_data.get("data"), list)
        ):
            raise InputError(
                "Please provide valid sheet data with headers and data arrays"
            )

        headers = [str(h) for h in sheet_data["headers"]]
        rows = []
        for row in sheet_data["data"]:
            if isinstance(row, dict):
                rows.append(row)
            elif isinstance(row, list):
                rows.append(dict(zip(headers, row)))
            else:
                raise InputError("Each data row must be an object or an array")
        return rows

    def analyze_upload(self, file_obj, filename: str, options: Optional[Dict] = None) -> Dict:
        headers, rows = self.loader.load_rows(file_obj, filename)
        return self.analyze({"headers": headers, "data": rows}, options)

    def analyze(
        self,
        sheet_data: Dict,
        options: Optional[Dict] = None,
        chart_configs: Optional[List[Dict]] = None,
    ) -> Dict:
        """
        Run preprocessing, smart configuration, chart generation and insights.

        Parameters
        ----------
        sheet_data : dict
            ``{"headers": [...], "data": [...]}``
        options : dict, optional
            Preprocessing options and chart type preferences
        chart_configs : list of dict, optional
            Extra charts requested by the caller

        Returns
        -------
        Dict
            JSON-safe analysis payload
        """
        started = time.monotonic()
        rows = self.rows_from_sheet(sheet_data)
        headers = sheet_data["headers"]

        if chart_configs is not None and not isinstance(chart_configs, list):
            raise InputError("Chart configurations must be an array")

        preprocessing_options = PreprocessingOptions.from_dict(options)
        preferences = UserPreferences.from_dict(options)
        user_configs = [ChartConfig.from_dict(c) for c in chart_configs or []]

        preprocessing = self.preprocessor.preprocess(rows, preprocessing_options)
        processed = preprocessing["data"]

        smart_config = self.configurator.configure(processed, preferences)
        charts = self.generate_charts(processed, smart_config, user_configs)
        summary = self.insight_generator.generate(
            processed, preprocessing["quality"], smart_config
        )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Analyzed %d rows into %d charts in %d ms",
            len(processed),
            len(charts),
            elapsed_ms,
        )

        result = {
            "preprocessing": {
                "stats": preprocessing["stats"],
                "quality": preprocessing["quality"],
                "validation": preprocessing["validation"],
                "original_count": preprocessing["original_count"],
                "processed_count": preprocessing["processed_count"],
            },
            "smart_configuration": {
                "recommendations": smart_config["recommendations"],
                "configurations": smart_config["configurations"],
                "auto_selections": smart_config["auto_selections"],
                "confidence": smart_config["metadata"]["confidence_score"],
                "relationships": smart_config["analysis"]["relationships"],
                "distributions": smart_config["analysis"]["distributions"],
                "representative_rows": smart_config["analysis"]["representative_rows"],
            },
            "generated_charts": charts,
            "chart_suggestions": smart_config["recommendations"],
            "correlations": summary["correlations"],
            "insights": summary["insights"],
            "statistics": summary["statistics"],
            "column_types": summary["column_types"],
            "summary": {
                "total_rows": len(processed),
                "original_rows": len(rows),
                "total_columns": len(headers),
                "data_quality_score": preprocessing["quality"]["score"],
                "charts_generated": len(charts),
                "processing_time": elapsed_ms,
            },
        }

        return convert_numpy({"data": result, "preview": processed})

    def generate_charts(
        self, rows: List[Dict], smart_config: Dict, user_configs: List[ChartConfig]
    ) -> List[Dict]:
        charts = []
        seen_types = set()

        top_k = get_setting("TOP_RECOMMENDATIONS")
        for recommendation in smart_config["recommendations"][:top_k]:
            if recommendation["type"] in seen_types:
                continue
            seen_types.add(recommendation["type"])

            config = next(
                (
                    c
                    for c in smart_config["configurations"]
                    if c["type"] == recommendation["type"]
                ),
                None,
            )
            if config is None:
                continue

            chart = self.aggregator.generate(rows, config)
            if chart and chart["data"]:
                chart.update(
                    {
                        "auto_generated": True,
                        "recommendation": recommendation,
                        "smart_config": config,
                    }
                )
                charts.append(chart)

        for config in user_configs:
            chart = self.aggregator.generate(rows, config)
            if chart and chart["data"]:
                chart["user_generated"] = True
                charts.append(chart)

        return charts
