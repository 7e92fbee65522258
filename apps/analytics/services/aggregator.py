import logging
import uuid
from dataclasses import asdict
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from django.utils import timezone

from apps.analytics.conf import get_setting
from apps.analytics.constants import (
    CHART_DATA_LIMITS,
    DEFAULT_CHART_DATA_LIMIT,
    PLOTLY_CHART_TYPES,
)
from apps.analytics.options import ChartConfig
from apps.analytics.utils import is_missing, to_float

logger = logging.getLogger(__name__)

AGGREGATIONS = {
    "sum": "sum",
    "avg": "mean",
    "count": "count",
    "min": "min",
    "max": "max",
}

# Charts that plot one mark per row are thinned out in performance mode.
SAMPLED_CHART_TYPES = {"bar", "pie", "line", "area", "scatter", "bubble"}


class ChartDataAggregator:
    def __init__(self, performance_mode_rows: Optional[int] = None):
        self.performance_mode_rows = performance_mode_rows or get_setting(
            "PERFORMANCE_MODE_ROWS"
        )

    def generate(self, rows: List[Dict], configuration) -> Optional[Dict]:
        """
        Build the plotted data for one chart configuration.

        Parameters
        ----------
        rows : list of dict
            Cleaned dataset rows
        configuration : ChartConfig or dict
            Chart type and axis assignments

        Returns
        -------
        Dict or None
            Chart payload, or None when the axes the chart needs are missing
        """
        config = (
            configuration
            if isinstance(configuration, ChartConfig)
            else ChartConfig.from_dict(configuration)
        )
        builder = self.BUILDERS.get(config.type)
        if builder is None or not self.has_required_axes(config):
            return None

        total_rows = len(rows)
        performance_mode = total_rows > self.performance_mode_rows
        working_rows = rows
        if performance_mode and config.type in SAMPLED_CHART_TYPES:
            limit = self.data_limit(config.type, total_rows)
            working_rows = self.sample(rows, limit)

        data = builder(self, working_rows, config)
        logger.debug(
            "Generated %s chart with %d points from %d rows",
            config.type,
            len(data),
            total_rows,
        )

        return {
            "id": f"chart_{uuid.uuid4().hex[:12]}",
            "type": config.type,
            "title": config.title or f"{config.type.title()} Chart",
            "data": data,
            "config": asdict(config),
            "library": "plotly" if config.type in PLOTLY_CHART_TYPES else "echarts",
            "created_at": timezone.now().isoformat(),
            "performance_mode": performance_mode,
            "total_data_rows": total_rows,
            "displayed_rows": len(data),
            "sampling_info": {
                "enabled": True,
                "original_rows": total_rows,
                "displayed_rows": len(data),
                "sampling_ratio": f"{len(data) / total_rows * 100:.1f}%",
            }
            if performance_mode
            else None,
        }

    @staticmethod
    def has_required_axes(config: ChartConfig) -> bool:
        if config.type in ["bar", "pie"]:
            return bool((config.group_by or config.x_axis) and config.y_axis)
        if config.type in ["line", "area", "scatter", "bubble"]:
            return bool(config.x_axis and config.y_axis)
        if config.type == "histogram":
            return bool(config.x_axis)
        if config.type == "box":
            return bool(config.y_axis)
        if config.type == "radar":
            return bool(config.dimensions)
        return False

    @staticmethod
    def data_limit(chart_type: str, total_rows: int) -> int:
        return min(CHART_DATA_LIMITS.get(chart_type, DEFAULT_CHART_DATA_LIMIT), total_rows)

    @staticmethod
    def sample(rows: List[Dict], limit: int) -> List[Dict]:
        """Every n-th row so that at most ``limit`` rows remain."""
        if len(rows) <= limit:
            return rows
        step = len(rows) // limit
        return rows[::step][:limit]

    @staticmethod
    def _number(value) -> float:
        number = to_float(value)
        return 0.0 if number is None else number

    def grouped(self, rows: List[Dict], config: ChartConfig) -> List[Dict]:
        group_col = config.group_by or config.x_axis
        df = pd.DataFrame(
            {
                "name": [row.get(group_col) for row in rows],
                "value": [self._number(row.get(config.y_axis)) for row in rows],
            }
        )
        if df.empty:
            return []

        grouped = (
            df.groupby("name", sort=False, dropna=False)["value"]
            .agg(AGGREGATIONS[config.aggregation])
            .reset_index()
        )
        return grouped.to_dict(orient="records")

    def points(self, rows: List[Dict], config: ChartConfig) -> List[Dict]:
        return [
            {
                "x": index if is_missing(row.get(config.x_axis)) else row.get(config.x_axis),
                "y": self._number(row.get(config.y_axis)),
            }
            for index, row in enumerate(rows)
        ]

    def scatter(self, rows: List[Dict], config: ChartConfig) -> List[Dict]:
        data = []
        for row in rows:
            point = {
                "x": self._number(row.get(config.x_axis)),
                "y": self._number(row.get(config.y_axis)),
            }
            if config.type == "bubble" and config.size_axis:
                point["size"] = self._number(row.get(config.size_axis))
            data.append(point)
        return data

    def histogram(self, rows: List[Dict], config: ChartConfig) -> List[Dict]:
        values = [to_float(row.get(config.x_axis)) for row in rows]
        values = np.array([v for v in values if v is not None], dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0:
            return []

        counts, edges = np.histogram(values, bins=config.bins or 10)
        return [
            {"bin_start": float(edges[i]), "bin_end": float(edges[i + 1]), "count": int(c)}
            for i, c in enumerate(counts)
        ]

    def box(self, rows: List[Dict], config: ChartConfig) -> List[Dict]:
        df = pd.DataFrame(
            {
                "group": [row.get(config.group_by) if config.group_by else "all" for row in rows],
                "value": [to_float(row.get(config.y_axis)) for row in rows],
            }
        ).dropna(subset=["value"])

        summary = []
        for name, series in df.groupby("group", sort=False, dropna=False)["value"]:
            summary.append(
                {
                    "name": name,
                    "min": float(series.min()),
                    "q1": float(series.quantile(0.25)),
                    "median": float(series.median()),
                    "q3": float(series.quantile(0.75)),
                    "max": float(series.max()),
                    "count": int(series.count()),
                }
            )
        return summary

    def radar(self, rows: List[Dict], config: ChartConfig) -> List[Dict]:
        data = []
        for dimension in config.dimensions:
            values = [to_float(row.get(dimension)) for row in rows]
            values = [v for v in values if v is not None]
            data.append(
                {
                    "dimension": dimension,
                    "value": float(np.mean(values)) if values else 0.0,
                }
            )
        return data

    BUILDERS = {
        "bar": grouped,
        "pie": grouped,
        "line": points,
        "area": points,
        "scatter": scatter,
        "bubble": scatter,
        "histogram": histogram,
        "box": box,
        "radar": radar,
    }
