import warnings
from collections import Counter
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from apps.analytics.conf import get_setting
from apps.analytics.constants import (
    CATEGORICAL_UNIQUE_RATIO,
    DIMENSION_KEYWORDS,
    MEASURE_KEYWORDS,
    OUTLIER_IQR_MULTIPLIER,
    SAMPLE_VALUE_COUNT,
    TIME_KEYWORDS,
    TOP_CATEGORY_COUNT,
    TYPE_MATCH_THRESHOLD,
)
from apps.analytics.utils import (
    count_distinct,
    distinct_key,
    is_boolean_token,
    is_date,
    is_missing,
    is_numeric,
)

# Checked in this order; the first type wins a tie on match ratio.
TYPE_DETECTORS = [
    ("numeric", is_numeric),
    ("date", is_date),
    ("boolean", is_boolean_token),
]


class ColumnAnalyzer:
    def __init__(
        self,
        sample_size: Optional[int] = None,
        match_threshold: float = TYPE_MATCH_THRESHOLD,
        categorical_unique_ratio: float = CATEGORICAL_UNIQUE_RATIO,
        outlier_iqr_multiplier: float = OUTLIER_IQR_MULTIPLIER,
    ):
        self.sample_size = sample_size or get_setting("TYPE_SAMPLE_SIZE")
        self.match_threshold = match_threshold
        self.categorical_unique_ratio = categorical_unique_ratio
        self.outlier_iqr_multiplier = outlier_iqr_multiplier

    def analyze(self, column_name: str, values: List) -> Dict:
        """
        Profile a single column.

        Parameters
        ----------
        column_name : str
            Header of the column, used for role keywords
        values : list
            Raw cell values, missing ones included

        Returns
        -------
        Dict
            Column profile with type, role, quality and type-specific stats
        """
        total = len(values)
        present = [v for v in values if not is_missing(v)]

        profile = {
            "name": column_name,
            "total_count": total,
            "non_null_count": len(present),
            "null_count": total - len(present),
        }

        if not present:
            profile.update(
                {
                    "type": "empty",
                    "role": "none",
                    "quality": 0.0,
                    "unique_count": 0,
                    "unique_ratio": 0.0,
                    "mode": None,
                    "sample_values": [],
                }
            )
            return profile

        sample = present[: self.sample_size]
        column_type = self.detect_type(sample)
        unique_count = count_distinct(sample)
        unique_ratio = unique_count / len(sample)

        profile.update(
            {
                "type": column_type,
                "role": self.determine_role(column_name, column_type),
                "quality": self.calculate_quality(len(present), total, unique_ratio),
                "unique_count": unique_count,
                "unique_ratio": unique_ratio,
                "mode": self._mode(present),
                "sample_values": sample[:SAMPLE_VALUE_COUNT],
            }
        )

        if column_type == "numeric":
            profile.update(self._numeric_stats(present))
        elif column_type == "categorical":
            profile["top_categories"] = self._top_categories(sample)

        return profile

    def detect_type(self, sample: List) -> str:
        """
        Classify non-missing values as numeric, date, boolean, categorical or text.
        """
        if not sample:
            return "empty"

        ratios = [
            (name, sum(1 for v in sample if detector(v)) / len(sample))
            for name, detector in TYPE_DETECTORS
        ]
        winner, score = max(ratios, key=lambda item: item[1])
        if score > self.match_threshold:
            return winner

        if count_distinct(sample) / len(sample) < self.categorical_unique_ratio:
            return "categorical"
        return "text"

    def determine_role(self, column_name: str, column_type: str) -> str:
        name = str(column_name).lower()

        if column_type == "date" or any(k in name for k in TIME_KEYWORDS):
            return "temporal"
        if column_type == "numeric" or any(k in name for k in MEASURE_KEYWORDS):
            return "measure"
        if column_type == "categorical" or any(k in name for k in DIMENSION_KEYWORDS):
            return "dimension"
        return "dimension"

    @staticmethod
    def calculate_quality(present: int, total: int, unique_ratio: float) -> float:
        """Mean of completeness and diversity (twice the unique ratio, capped at 1)."""
        if total == 0 or present == 0:
            return 0.0
        completeness = present / total
        diversity = min(unique_ratio * 2, 1.0)
        return (completeness + diversity) / 2

    def distribution(self, values: List) -> Dict:
        """
        Distribution shape of a numeric column.

        Needs at least ten numeric values; returns an empty dict otherwise.
        """
        clean = pd.Series(
            [float(v) for v in values if not is_missing(v) and is_numeric(v)],
            dtype=float,
        )
        if len(clean) < 10:
            return {}

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            skewness = float(stats.skew(clean, bias=False))
            kurtosis = float(stats.kurtosis(clean, bias=False))
        if np.isnan(skewness):
            skewness = 0.0
        if np.isnan(kurtosis):
            kurtosis = 0.0

        outlier_count = self._count_outliers(clean)
        return {
            "skewness": skewness,
            "kurtosis": kurtosis,
            "has_outliers": outlier_count > 0,
            "outlier_count": outlier_count,
            "outlier_ratio": float(outlier_count / len(clean)),
            "distribution_type": self._classify_distribution(skewness, kurtosis),
            "coefficient_of_variation": float(
                clean.std() / (abs(clean.mean()) + 1e-10)
            ),
        }

    def _count_outliers(self, series: pd.Series) -> int:
        q1 = series.quantile(0.25)
        q3 = series.quantile(0.75)
        iqr = q3 - q1
        lower = q1 - self.outlier_iqr_multiplier * iqr
        upper = q3 + self.outlier_iqr_multiplier * iqr
        return int(((series < lower) | (series > upper)).sum())

    @staticmethod
    def _classify_distribution(skew: float, kurt: float) -> str:
        if abs(skew) < 0.5 and abs(kurt) < 1.0:
            return "normal"
        elif skew > 1.0:
            return "right_skewed"
        elif skew < -1.0:
            return "left_skewed"
        elif kurt > 3.0:
            return "heavy_tailed"
        elif kurt < -1.0:
            return "light_tailed"
        return "irregular"

    @staticmethod
    def _numeric_stats(values: List) -> Dict:
        series = pd.Series([float(v) for v in values if is_numeric(v)], dtype=float)
        if series.empty:
            return {"mean": None, "median": None, "min": None, "max": None, "std": None}

        std = series.std(ddof=0)
        return {
            "mean": float(series.mean()),
            "median": float(series.median()),
            "min": float(series.min()),
            "max": float(series.max()),
            "std": float(std),
        }

    @staticmethod
    def _mode(values: List):
        firsts = {}
        for v in values:
            firsts.setdefault(distinct_key(v), v)
        key, _ = Counter(distinct_key(v) for v in values).most_common(1)[0]
        return firsts[key]

    @staticmethod
    def _top_categories(values: List) -> List[Dict]:
        counts = Counter(str(v) for v in values)
        return [
            {"category": category, "count": count}
            for category, count in counts.most_common(TOP_CATEGORY_COUNT)
        ]
