import math
from typing import Dict, List, Optional

from apps.analytics.constants import MAX_CONFIGURATIONS

FILTER_UNIQUE_RATIO = 0.8
MAX_FILTERS = 3
MAX_RADAR_DIMENSIONS = 6


class FieldSelector:
    def select_fields(self, chart_type: str, analysis: Dict) -> Dict:
        """
        Select the best fields for a given chart type
        :param chart_type:
        :param analysis: Configurator analysis with column profiles and relationships
        :return: A dictionary of axis assignments
        """
        fields = {}

        if chart_type in ["bar", "pie"]:
            fields["x_axis"] = self.best_categorical(analysis)
            fields["y_axis"] = self.best_numeric(analysis)
            fields["group_by"] = fields["x_axis"]

        elif chart_type in ["line", "area"]:
            fields["x_axis"] = self.best_temporal(analysis) or self.best_numerical(
                analysis, "x"
            )
            fields["y_axis"] = self.best_numeric(analysis)

        elif chart_type == "scatter":
            relationship = next(
                (
                    r
                    for r in analysis["relationships"]
                    if r["relationship_type"] == "correlation"
                ),
                None,
            )
            if relationship:
                fields["x_axis"] = relationship["column1"]
                fields["y_axis"] = relationship["column2"]
            else:
                fields["x_axis"] = self.best_numerical(analysis, "x")
                fields["y_axis"] = self.best_numerical(analysis, "y")

        elif chart_type == "histogram":
            fields["x_axis"] = self.best_numeric(analysis)
            fields["bins"] = self.optimal_bins(analysis, fields["x_axis"])

        elif chart_type == "bubble":
            fields["x_axis"] = self.best_numerical(analysis, "x")
            fields["y_axis"] = self.best_numerical(analysis, "y")
            fields["size_axis"] = self.best_numerical(analysis, "size")

        elif chart_type == "radar":
            fields["dimensions"] = self.radar_dimensions(analysis)

        elif chart_type == "box":
            fields["y_axis"] = self.best_numeric(analysis)
            fields["group_by"] = self.best_categorical(analysis)

        return fields

    @staticmethod
    def _ranked(analysis: Dict, predicate) -> List[str]:
        candidates = [
            (name, info) for name, info in analysis["columns"].items() if predicate(info)
        ]
        candidates.sort(key=lambda item: item[1]["quality"], reverse=True)
        return [name for name, _ in candidates]

    def _first(self, analysis: Dict, predicate) -> Optional[str]:
        ranked = self._ranked(analysis, predicate)
        return ranked[0] if ranked else None

    def best_categorical(self, analysis: Dict) -> Optional[str]:
        return self._first(
            analysis,
            lambda info: info["role"] == "dimension" or info["type"] == "categorical",
        )

    def best_numeric(self, analysis: Dict) -> Optional[str]:
        return self._first(
            analysis, lambda info: info["type"] == "numeric" or info["role"] == "measure"
        )

    def best_temporal(self, analysis: Dict) -> Optional[str]:
        return self._first(
            analysis, lambda info: info["role"] == "temporal" or info["type"] == "date"
        )

    def best_numerical(self, analysis: Dict, purpose: str) -> Optional[str]:
        """Distinct numeric columns for the x, y and size slots when available."""
        ranked = self._ranked(analysis, lambda info: info["type"] == "numeric")
        index = {"x": 0, "y": 1}.get(purpose, 2)
        if len(ranked) > index:
            return ranked[index]
        return ranked[0] if ranked else None

    def radar_dimensions(self, analysis: Dict) -> List[str]:
        ranked = self._ranked(analysis, lambda info: info["type"] == "numeric")
        return ranked[:MAX_RADAR_DIMENSIONS]

    @staticmethod
    def optimal_bins(analysis: Dict, column: Optional[str]) -> int:
        """Sturges' rule on the row count, kept within 5 to 50 bins."""
        info = analysis["columns"].get(column) if column else None
        if not info or info["type"] != "numeric":
            return 10
        data_points = analysis.get("data_size") or 100
        return max(5, min(50, math.ceil(math.log2(data_points) + 1)))

    @staticmethod
    def suggest_filters(analysis: Dict) -> List[str]:
        return [
            name
            for name, info in analysis["columns"].items()
            if info["type"] == "categorical" and info["unique_ratio"] < FILTER_UNIQUE_RATIO
        ][:MAX_FILTERS]

    @staticmethod
    def suggest_series(analysis: Dict, x_axis: Optional[str]) -> Optional[str]:
        candidates = [
            (name, info)
            for name, info in analysis["columns"].items()
            if info["type"] == "categorical" and name != x_axis
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda item: item[1]["unique_count"])[0]

    def configure(self, recommendations: List[Dict], analysis: Dict) -> List[Dict]:
        """Chart configurations for the top recommendations."""
        configurations = []
        for recommendation in recommendations[:MAX_CONFIGURATIONS]:
            config = {
                "type": recommendation["type"],
                "title": recommendation["title"],
                "priority": recommendation["priority"],
                "confidence": recommendation["confidence"],
                "auto_selected": True,
                "x_axis": None,
                "y_axis": None,
            }
            config.update(self.select_fields(recommendation["type"], analysis))
            config["suggested_filters"] = self.suggest_filters(analysis)
            config["suggested_series"] = self.suggest_series(analysis, config["x_axis"])
            configurations.append(config)
        return configurations
