import logging
import warnings
from typing import Dict, List

import numpy as np
import pandas as pd
from scipy import stats

from apps.analytics.constants import (
    BAR_STRENGTH,
    LINE_CORRELATION,
    MIN_RELATIONSHIP_STRENGTH,
    SCATTER_CORRELATION,
    SIGNIFICANT_VARIANCE_RATIO,
    TIME_SERIES_STRENGTH,
)
from apps.analytics.utils import is_missing, is_numeric, to_float

logger = logging.getLogger(__name__)


class RelationshipAnalyzer:
    def analyze(self, rows: List[Dict], column_profiles: Dict[str, Dict]) -> List[Dict]:
        """
        Score every unordered column pair and keep the meaningful ones.

        Parameters
        ----------
        rows : list of dict
            Dataset rows
        column_profiles : dict
            Column profiles keyed by column name, in column order

        Returns
        -------
        List[Dict]
            Relationships with strength above the minimum, strongest first
        """
        relationships = []
        names = list(column_profiles)

        for i, col1 in enumerate(names):
            for col2 in names[i + 1 :]:
                relationship = self.analyze_pair(rows, col1, col2, column_profiles)
                if relationship["strength"] > MIN_RELATIONSHIP_STRENGTH:
                    relationships.append(relationship)

        relationships.sort(key=lambda r: r["strength"], reverse=True)
        return relationships

    def analyze_pair(
        self, rows: List[Dict], col1: str, col2: str, column_profiles: Dict[str, Dict]
    ) -> Dict:
        info1 = column_profiles[col1]
        info2 = column_profiles[col2]
        type1, type2 = info1["type"], info2["type"]

        relationship = {
            "column1": col1,
            "column2": col2,
            "strength": 0.0,
            "relationship_type": "none",
            "recommendation": None,
        }

        if type1 == "numeric" and type2 == "numeric":
            strength = abs(self.correlation(rows, col1, col2))
            relationship.update(
                {
                    "strength": strength,
                    "relationship_type": "correlation",
                    "recommendation": "scatter"
                    if strength > SCATTER_CORRELATION
                    else "line"
                    if strength > LINE_CORRELATION
                    else None,
                }
            )

        elif {type1, type2} == {"categorical", "numeric"}:
            cat_col, num_col = (col1, col2) if type1 == "categorical" else (col2, col1)
            groups = self.group_values(rows, cat_col, num_col)
            strength = self.categorical_numeric_strength(groups)
            relationship.update(
                {
                    "strength": strength,
                    "relationship_type": "categorical-numeric",
                    "recommendation": "bar" if strength > BAR_STRENGTH else None,
                }
            )
            relationship.update(self.anova(groups))

        elif (info1["role"] == "temporal" and type2 == "numeric") or (
            info2["role"] == "temporal" and type1 == "numeric"
        ):
            relationship.update(
                {
                    "strength": TIME_SERIES_STRENGTH,
                    "relationship_type": "time-series",
                    "recommendation": "line",
                }
            )

        relationship["suggested_xy"] = self.suggest_xy(col1, col2, column_profiles)
        return relationship

    @staticmethod
    def correlation(rows: List[Dict], col1: str, col2: str) -> float:
        """Pearson r over the rows where both cells are numeric, 0 when undefined."""
        pairs = [
            (float(row.get(col1)), float(row.get(col2)))
            for row in rows
            if is_numeric(row.get(col1)) and is_numeric(row.get(col2))
        ]
        if len(pairs) < 2:
            return 0.0

        df = pd.DataFrame(pairs, columns=["a", "b"])
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            corr = df["a"].corr(df["b"])
        if pd.isna(corr):
            return 0.0
        return float(corr)

    @staticmethod
    def group_values(rows: List[Dict], cat_col: str, num_col: str) -> Dict:
        groups = {}
        for row in rows:
            value = to_float(row.get(num_col))
            if value is None:
                continue
            category = row.get(cat_col)
            key = None if is_missing(category) else category
            groups.setdefault(key, []).append(value)
        return groups

    @staticmethod
    def has_significant_variance(groups: Dict) -> bool:
        means = np.array([np.mean(values) for values in groups.values()])
        if len(means) < 2:
            return False
        overall_mean = means.mean()
        variance = ((means - overall_mean) ** 2).mean()
        return bool(variance > overall_mean * SIGNIFICANT_VARIANCE_RATIO)

    def categorical_numeric_strength(self, groups: Dict) -> float:
        strength = min(len(groups) / 10, 1) * 0.5
        if self.has_significant_variance(groups):
            strength += 0.3
        return min(strength, 1.0)

    @staticmethod
    def anova(groups: Dict) -> Dict:
        """One-way ANOVA across groups holding more than one value."""
        clean_groups = [values for values in groups.values() if len(values) > 1]
        if len(clean_groups) < 2:
            return {}

        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                f_stat, p_value = stats.f_oneway(*clean_groups)
        except ValueError as e:
            logger.debug("ANOVA failed: %s", e)
            return {}

        if np.isnan(f_stat) or np.isinf(f_stat):
            return {}
        return {"f_statistic": float(f_stat), "p_value": float(p_value)}

    @staticmethod
    def suggest_xy(col1: str, col2: str, column_profiles: Dict[str, Dict]) -> Dict:
        info1 = column_profiles[col1]
        info2 = column_profiles[col2]

        if info1["role"] == "temporal":
            return {"x": col1, "y": col2}
        if info2["role"] == "temporal":
            return {"x": col2, "y": col1}

        if info1["type"] == "categorical" and info2["type"] == "numeric":
            return {"x": col1, "y": col2}
        if info2["type"] == "categorical" and info1["type"] == "numeric":
            return {"x": col2, "y": col1}

        if info1["quality"] >= info2["quality"]:
            return {"x": col1, "y": col2}
        return {"x": col2, "y": col1}
