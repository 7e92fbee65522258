import warnings
from typing import Dict, List, Optional

import pandas as pd

from apps.analytics.constants import PERFORMANCE_INSIGHT_ROWS
from apps.analytics.utils import get_columns, is_date, is_missing, to_float


class InsightGenerator:
    def generate(
        self, rows: List[Dict], quality: Dict, configuration: Optional[Dict] = None
    ) -> Dict:
        """
        Summarize a processed dataset for the analysis response.

        Parameters
        ----------
        rows : list of dict
            Cleaned dataset rows
        quality : dict
            Quality report from the preprocessor
        configuration : dict, optional
            Smart configuration result, used for the recommendation insight

        Returns
        -------
        Dict
            Insights, column groups, per-column statistics and correlations
        """
        column_types = self.column_types(rows)
        return {
            "insights": self.insights(rows, quality, configuration),
            "column_types": column_types,
            "statistics": self.column_statistics(rows, column_types["numeric"]),
            "correlations": self.correlations(rows, column_types["numeric"]),
        }

    @staticmethod
    def column_types(rows: List[Dict]) -> Dict[str, List[str]]:
        """Columns holding any number are numeric; the rest are categorical."""
        columns = get_columns(rows)
        numeric = [
            c
            for c in columns
            if any(
                not is_missing(row.get(c))
                and not isinstance(row.get(c), bool)
                and to_float(row.get(c)) is not None
                for row in rows
            )
        ]
        return {
            "numeric": numeric,
            "categorical": [c for c in columns if c not in numeric],
            "temporal": [
                c
                for c in columns
                if c not in numeric and any(is_date(row.get(c)) for row in rows)
            ],
        }

    @staticmethod
    def insights(
        rows: List[Dict], quality: Dict, configuration: Optional[Dict]
    ) -> List[Dict]:
        insights = []
        score = quality.get("score", 0)

        if score >= 90:
            insights.append(
                {
                    "type": "success",
                    "category": "data_quality",
                    "message": f"Excellent data quality ({score}%). "
                    f"Your dataset is well-structured.",
                    "impact": "high",
                }
            )
        elif score >= 70:
            insights.append(
                {
                    "type": "warning",
                    "category": "data_quality",
                    "message": f"Good data quality ({score}%). "
                    f"Consider reviewing missing values.",
                    "impact": "medium",
                }
            )

        if len(rows) > PERFORMANCE_INSIGHT_ROWS:
            insights.append(
                {
                    "type": "info",
                    "category": "performance",
                    "message": f"Large dataset ({len(rows):,} rows). "
                    f"Optimizations applied.",
                    "impact": "medium",
                }
            )

        recommendations = (configuration or {}).get("recommendations") or []
        if recommendations:
            insights.append(
                {
                    "type": "success",
                    "category": "recommendations",
                    "message": f"Smart analysis recommends "
                    f"{recommendations[0]['type']} charts.",
                    "impact": "high",
                }
            )

        return insights

    @staticmethod
    def column_statistics(rows: List[Dict], numeric_columns: List[str]) -> Dict:
        statistics = {}
        for column in numeric_columns:
            values = [to_float(row.get(column)) for row in rows]
            series = pd.Series([v for v in values if v is not None], dtype=float)
            if series.empty:
                continue

            statistics[column] = {
                "count": int(series.count()),
                "mean": round(float(series.mean()), 2),
                "median": float(series.median()),
                "min": float(series.min()),
                "max": float(series.max()),
                "std_dev": round(float(series.std(ddof=0)), 2),
            }
        return statistics

    @staticmethod
    def correlations(rows: List[Dict], numeric_columns: List[str]) -> Dict:
        """Pairwise Pearson r, keyed ``"<col1>_<col2>"``."""
        if len(numeric_columns) < 2:
            return {}

        df = pd.DataFrame(
            {c: [to_float(row.get(c)) for row in rows] for c in numeric_columns},
            dtype=float,
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            matrix = df.corr()

        correlations = {}
        for i, col1 in enumerate(numeric_columns):
            for col2 in numeric_columns[i + 1 :]:
                corr = matrix.loc[col1, col2]
                corr = 0.0 if pd.isna(corr) else float(corr)
                strength = abs(corr)
                correlations[f"{col1}_{col2}"] = {
                    "correlation": round(corr, 3),
                    "strength": "strong"
                    if strength > 0.7
                    else "moderate"
                    if strength > 0.4
                    else "weak",
                }
        return correlations
