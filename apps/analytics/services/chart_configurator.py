import logging
import warnings
from typing import Dict, List, Optional

import pandas as pd
from sklearn.cluster import KMeans

from apps.analytics.constants import (
    CHART_TITLES,
    CHART_TYPES,
    MAX_KMEANS_ROWS,
    MAX_PRIORITY,
    REPRESENTATIVE_ROW_COUNT,
)
from apps.analytics.exceptions import AnalyticsError, ConfigurationError, InputError
from apps.analytics.options import UserPreferences
from apps.analytics.services.column_analyzer import ColumnAnalyzer
from apps.analytics.services.field_selector import FieldSelector
from apps.analytics.services.relationship_analyzer import RelationshipAnalyzer
from apps.analytics.utils import column_values, get_columns, to_float

logger = logging.getLogger(__name__)


class SmartChartConfigurator:
    def __init__(
        self,
        column_analyzer: Optional[ColumnAnalyzer] = None,
        relationship_analyzer: Optional[RelationshipAnalyzer] = None,
        represent_k: int = REPRESENTATIVE_ROW_COUNT,
        max_kmeans_rows: int = MAX_KMEANS_ROWS,
    ):
        self.column_analyzer = column_analyzer or ColumnAnalyzer()
        self.relationship_analyzer = relationship_analyzer or RelationshipAnalyzer()
        self.field_selector = FieldSelector()
        self.represent_k = represent_k
        self.max_kmeans_rows = max_kmeans_rows

    def configure(
        self, rows: List[Dict], user_preferences: Optional[UserPreferences] = None
    ) -> Dict:
        """
        Recommend and configure charts for a dataset.

        Parameters
        ----------
        rows : list of dict
            Cleaned dataset rows
        user_preferences : UserPreferences, optional
            Chart types to boost or damp

        Returns
        -------
        Dict
            Analysis, ranked recommendations, top configurations,
            auto selections and metadata
        """
        if not rows:
            raise InputError("No data provided for configuration")
        if not isinstance(rows, (list, tuple)) or not all(
            isinstance(row, dict) for row in rows
        ):
            raise InputError("Rows must be a list of objects keyed by column name")

        user_preferences = user_preferences or UserPreferences()
        logger.info("Generating smart chart configuration for %d rows", len(rows))

        try:
            analysis = self.analyze(rows)
            recommendations = self.recommend(analysis, user_preferences)
            configurations = self.field_selector.configure(recommendations, analysis)
            result = {
                "analysis": analysis,
                "recommendations": recommendations,
                "configurations": configurations,
                "auto_selections": self.auto_selections(analysis),
                "metadata": {
                    "data_size": len(rows),
                    "column_count": len(analysis["columns"]),
                    "confidence_score": self.confidence_score(
                        analysis, recommendations
                    ),
                },
            }
        except AnalyticsError:
            raise
        except Exception as e:
            logger.exception("Smart configuration failed")
            raise ConfigurationError(e) from e

        logger.info(
            "Smart configuration produced %d recommendations",
            len(result["recommendations"]),
        )
        return result

    def analyze(self, rows: List[Dict]) -> Dict:
        columns = {
            column: self.column_analyzer.analyze(column, column_values(rows, column))
            for column in get_columns(rows)
        }

        analysis = {
            "data_size": len(rows),
            "columns": columns,
            "patterns": self.detect_patterns(columns),
            "relationships": self.relationship_analyzer.analyze(rows, columns),
            "data_types": {name: info["type"] for name, info in columns.items()},
            "distributions": {
                name: self.column_analyzer.distribution(column_values(rows, name))
                for name, info in columns.items()
                if info["type"] == "numeric"
            },
            "representative_rows": self.representative_rows(rows, columns),
        }
        return analysis

    @staticmethod
    def detect_patterns(columns: Dict[str, Dict]) -> Dict[str, bool]:
        roles = [info["role"] for info in columns.values()]
        types = [info["type"] for info in columns.values()]
        return {
            "temporal": "temporal" in roles,
            "categorical": "dimension" in roles,
            "numerical": "measure" in roles,
            "hierarchical": roles.count("dimension") > 1,
            "correlation": types.count("numeric") > 1,
        }

    def representative_rows(self, rows: List[Dict], columns: Dict[str, Dict]) -> List[Dict]:
        """
        Extract representative rows using KMeans clustering on numeric features.
        """
        numeric_cols = [name for name, info in columns.items() if info["type"] == "numeric"]
        numeric_df = pd.DataFrame(
            {name: [to_float(v) for v in column_values(rows, name)] for name in numeric_cols},
            index=range(len(rows)),
        ).dropna()

        if numeric_df.empty:
            return list(rows[: self.represent_k])

        # Limit rows for KMeans performance
        if len(numeric_df) > self.max_kmeans_rows:
            numeric_df = numeric_df.sample(self.max_kmeans_rows, random_state=0)

        k = min(self.represent_k, len(numeric_df.drop_duplicates()))

        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                kmeans = KMeans(n_clusters=k, random_state=0, n_init=10, max_iter=300)
                kmeans.fit(numeric_df)

            picked = []
            for center in kmeans.cluster_centers_:
                idx = ((numeric_df - center) ** 2).sum(axis=1).idxmin()
                if idx not in picked:
                    picked.append(idx)
            return [rows[idx] for idx in picked]
        except ValueError as e:
            logger.warning("KMeans clustering failed: %s", e)
            return list(rows[: self.represent_k])

    def recommend(self, analysis: Dict, user_preferences: UserPreferences) -> List[Dict]:
        weights = {chart_type: 0.0 for chart_type in CHART_TYPES}

        self.score_by_patterns(weights, analysis["patterns"])
        self.score_by_relationships(weights, analysis["relationships"])
        self.score_by_structure(weights, analysis["columns"])
        self.apply_preferences(weights, user_preferences)

        ranked = sorted(
            ((chart_type, score) for chart_type, score in weights.items() if score > 0),
            key=lambda item: item[1],
            reverse=True,
        )

        return [
            {
                "type": chart_type,
                "title": CHART_TITLES.get(chart_type, f"{chart_type.title()} Chart"),
                "priority": MAX_PRIORITY - index,
                "confidence": min(score, 1.0),
                "reasoning": self.reasoning(chart_type, analysis["patterns"]),
                "suitability": self.suitability(score),
            }
            for index, (chart_type, score) in enumerate(ranked)
        ]

    @staticmethod
    def score_by_patterns(weights: Dict[str, float], patterns: Dict[str, bool]) -> None:
        if patterns["temporal"] and patterns["numerical"]:
            weights["line"] += 0.8
            weights["area"] += 0.6

        if patterns["categorical"] and patterns["numerical"]:
            weights["bar"] += 0.7
            weights["pie"] += 0.5

        if patterns["correlation"]:
            weights["scatter"] += 0.8
            weights["bubble"] += 0.6

        if patterns["hierarchical"]:
            weights["radar"] += 0.4
            weights["box"] += 0.5

    @staticmethod
    def score_by_relationships(
        weights: Dict[str, float], relationships: List[Dict]
    ) -> None:
        for relationship in relationships:
            chart_type = relationship["recommendation"]
            if chart_type in weights:
                weights[chart_type] += relationship["strength"] * 0.5

    @staticmethod
    def score_by_structure(weights: Dict[str, float], columns: Dict[str, Dict]) -> None:
        types = [info["type"] for info in columns.values()]
        numeric_count = types.count("numeric")
        categorical_count = types.count("categorical")

        if numeric_count >= 2:
            weights["scatter"] += 0.3
            weights["bubble"] += 0.2

        if categorical_count >= 1 and numeric_count >= 1:
            weights["bar"] += 0.3
            weights["box"] += 0.2

        if numeric_count == 1:
            weights["histogram"] += 0.4

    @staticmethod
    def apply_preferences(
        weights: Dict[str, float], user_preferences: UserPreferences
    ) -> None:
        for chart_type in user_preferences.preferred_types:
            if chart_type in weights:
                weights[chart_type] += 0.2
        for chart_type in user_preferences.avoid_types:
            if chart_type in weights:
                weights[chart_type] *= 0.5

    @staticmethod
    def suitability(score: float) -> str:
        if score > 0.7:
            return "high"
        elif score > 0.4:
            return "medium"
        return "low"

    @staticmethod
    def reasoning(chart_type: str, patterns: Dict[str, bool]) -> str:
        reasons = []
        if chart_type == "bar":
            if patterns["categorical"]:
                reasons.append("categorical data detected")
            if patterns["numerical"]:
                reasons.append("numeric measures available")
        elif chart_type == "line":
            if patterns["temporal"]:
                reasons.append("time-based data detected")
            if patterns["numerical"]:
                reasons.append("continuous data trends")
        elif chart_type == "scatter":
            if patterns["correlation"]:
                reasons.append("multiple numeric variables")

        return ", ".join(reasons) or "suitable for data structure"

    def auto_selections(self, analysis: Dict) -> Dict:
        selector = self.field_selector
        return {
            "recommended_x_axis": selector.best_temporal(analysis)
            or selector.best_categorical(analysis),
            "recommended_y_axis": selector.best_numeric(analysis),
            "recommended_series": selector.best_categorical(analysis),
            "recommended_filters": selector.suggest_filters(analysis),
        }

    @staticmethod
    def confidence_score(analysis: Dict, recommendations: List[Dict]) -> float:
        """Mean of the average recommendation confidence and column quality."""
        if not recommendations:
            return 0.0

        avg_confidence = sum(r["confidence"] for r in recommendations) / len(
            recommendations
        )
        columns = list(analysis["columns"].values())
        avg_quality = (
            sum(info["quality"] for info in columns) / len(columns) if columns else 0.0
        )
        return (avg_confidence + avg_quality) / 2
