import json
import logging
from typing import Callable, Dict, List, Optional

import pandas as pd

from apps.analytics.constants import (
    DEFAULT_NUMERIC_FILL,
    DEFAULT_TEXT_FILL,
    KEY_COLUMN_UNIQUE_RATIO,
    LARGE_RANGE_FACTOR,
    NULL_MARKERS,
    OUTLIER_IQR_MULTIPLIER,
    OUTLIER_STD_MULTIPLIER,
)
from apps.analytics.exceptions import AnalyticsError, InputError, PreprocessingError
from apps.analytics.options import (
    DuplicateStrategy,
    MissingValueStrategy,
    OutlierStrategy,
    PreprocessingOptions,
)
from apps.analytics.services.column_analyzer import ColumnAnalyzer
from apps.analytics.utils import (
    column_values,
    count_distinct,
    distinct_key,
    get_columns,
    is_missing,
    parse_boolean,
    parse_date,
    to_float,
    to_number,
)

logger = logging.getLogger(__name__)


def new_stats(rows_processed: int = 0) -> Dict[str, int]:
    return {
        "rows_processed": rows_processed,
        "missing_values_handled": 0,
        "duplicates_removed": 0,
        "data_types_normalized": 0,
        "outliers_treated": 0,
    }


# Missing value imputation, one handler per strategy.
def _impute_mean(profile: Dict):
    if profile["type"] == "numeric":
        return profile.get("mean") or DEFAULT_NUMERIC_FILL
    return profile.get("mode") or DEFAULT_TEXT_FILL


def _impute_median(profile: Dict):
    if profile["type"] == "numeric":
        return profile.get("median") or DEFAULT_NUMERIC_FILL
    return profile.get("mode") or DEFAULT_TEXT_FILL


def _impute_mode(profile: Dict):
    default = DEFAULT_NUMERIC_FILL if profile["type"] == "numeric" else DEFAULT_TEXT_FILL
    return profile.get("mode") or default


IMPUTERS: Dict[str, Callable[[Dict], object]] = {
    MissingValueStrategy.AUTO: _impute_median,
    MissingValueStrategy.MEAN: _impute_mean,
    MissingValueStrategy.MEDIAN: _impute_median,
    MissingValueStrategy.MODE: _impute_mode,
    # Interpolation currently fills with the column mean.
    MissingValueStrategy.INTERPOLATE: _impute_mean,
}


# Duplicate keys, one builder per strategy.
def _canonical(value):
    kind, normalized = distinct_key(value)
    return [kind, normalized]


def _strict_key(row: Dict, columns: List[str]) -> str:
    return json.dumps([_canonical(row.get(c)) for c in columns], default=str)


def _fuzzy_key(row: Dict, columns: List[str]) -> str:
    return "|".join(
        "" if is_missing(row.get(c)) else str(row.get(c)).lower().strip()
        for c in columns
    )


DUPLICATE_KEYS: Dict[str, Callable[[Dict, List[str]], str]] = {
    DuplicateStrategy.STRICT: _strict_key,
    DuplicateStrategy.KEY_COLUMNS: _strict_key,
    DuplicateStrategy.FUZZY: _fuzzy_key,
}


# Type coercion per detected column type; each returns (value, converted).
def _to_numeric(value):
    if is_missing(value):
        return 0.0, False
    return to_number(value), True


def _to_date(value):
    if is_missing(value):
        return value, False
    parsed = parse_date(value)
    if parsed is None:
        return value, False
    return parsed, True


def _to_boolean(value):
    if is_missing(value):
        return False, False
    return bool(parse_boolean(value)), True


def _to_text(value):
    if value is None:
        return "", False
    return str(value), False


def _always(value) -> bool:
    return True


CONVERTERS = {
    "numeric": _to_numeric,
    "date": _to_date,
    "boolean": _to_boolean,
    "categorical": _to_text,
    "text": _to_text,
}

CONSISTENCY_CHECKS = {
    "numeric": lambda v: to_float(v) is not None,
    "date": lambda v: parse_date(v) is not None,
    "boolean": lambda v: parse_boolean(v) is not None,
}


class DataPreprocessor:
    def __init__(self, column_analyzer: Optional[ColumnAnalyzer] = None):
        self.column_analyzer = column_analyzer or ColumnAnalyzer()

    def preprocess(
        self, rows: List[Dict], options: Optional[PreprocessingOptions] = None
    ) -> Dict:
        """
        Run the full cleaning pipeline on a snapshot of rows.

        Stages run in a fixed order: clean, impute, deduplicate, normalize
        types, treat outliers (only when enabled) and validate.

        Parameters
        ----------
        rows : list of dict
            Raw rows keyed by column header
        options : PreprocessingOptions, optional
            Strategy selection; defaults apply when omitted

        Returns
        -------
        Dict
            Cleaned rows with counts, stats, validation and quality report
        """
        if not isinstance(rows, (list, tuple)) or not all(
            isinstance(row, dict) for row in rows
        ):
            raise InputError("Rows must be a list of objects keyed by column name")

        options = options or PreprocessingOptions.from_dict()
        stats = new_stats(len(rows))
        logger.info("Starting data preprocessing for %d rows", len(rows))

        stage = "cleaning"
        try:
            processed = self.clean_data(rows)

            stage = "missing value handling"
            processed = self.handle_missing_values(
                processed, options.missing_value_strategy, stats
            )

            stage = "duplicate removal"
            processed = self.remove_duplicates(
                processed, options.duplicate_strategy, stats
            )

            stage = "type normalization"
            processed = self.normalize_data_types(processed, stats)

            if options.handle_outliers:
                stage = "outlier handling"
                processed = self.handle_outliers(
                    processed, options.outlier_strategy, stats
                )

            stage = "validation"
            validation = self.validate_data_consistency(processed)
            quality = self.calculate_data_quality(processed)
        except AnalyticsError:
            raise
        except Exception as e:
            logger.exception("Data preprocessing failed during %s", stage)
            raise PreprocessingError(stage, e) from e

        logger.info("Data preprocessing completed: %s", stats)

        return {
            "data": processed,
            "original_count": len(rows),
            "processed_count": len(processed),
            "stats": stats,
            "validation": validation,
            "quality": quality,
        }

    def clean_data(self, rows: List[Dict]) -> List[Dict]:
        """Drop fully empty rows, trim strings and map null markers to None."""
        columns = get_columns(rows)
        cleaned = []

        for row in rows:
            cleaned_row = {}
            for column in columns:
                value = row.get(column)
                if isinstance(value, str):
                    value = value.strip()
                    if value in NULL_MARKERS:
                        value = None
                elif is_missing(value):
                    value = None
                cleaned_row[column] = value

            # emptiness is judged after null markers are mapped
            if all(value is None for value in cleaned_row.values()):
                continue
            cleaned.append(cleaned_row)

        return cleaned

    def analyze_columns(self, rows: List[Dict]) -> Dict[str, Dict]:
        return {
            column: self.column_analyzer.analyze(column, column_values(rows, column))
            for column in get_columns(rows)
        }

    def handle_missing_values(
        self,
        rows: List[Dict],
        strategy: str = MissingValueStrategy.AUTO,
        stats: Optional[Dict] = None,
    ) -> List[Dict]:
        stats = stats if stats is not None else new_stats(len(rows))
        impute = IMPUTERS[MissingValueStrategy(strategy)]
        profiles = self.analyze_columns(rows)
        fills = {column: impute(profile) for column, profile in profiles.items()}

        result = []
        for row in rows:
            processed_row = dict(row)
            for column, fill in fills.items():
                if is_missing(processed_row.get(column)):
                    processed_row[column] = fill
                    stats["missing_values_handled"] += 1
            result.append(processed_row)

        return result

    def detect_key_columns(self, rows: List[Dict]) -> List[str]:
        """Columns whose values are almost all distinct."""
        if not rows:
            return []
        return [
            column
            for column in get_columns(rows)
            if count_distinct(column_values(rows, column)) / len(rows)
            > KEY_COLUMN_UNIQUE_RATIO
        ]

    def remove_duplicates(
        self,
        rows: List[Dict],
        strategy: str = DuplicateStrategy.STRICT,
        stats: Optional[Dict] = None,
    ) -> List[Dict]:
        stats = stats if stats is not None else new_stats(len(rows))
        strategy = DuplicateStrategy(strategy)
        build_key = DUPLICATE_KEYS[strategy]

        columns = get_columns(rows)
        if strategy == DuplicateStrategy.KEY_COLUMNS:
            columns = self.detect_key_columns(rows) or columns

        seen = set()
        result = []
        for row in rows:
            key = build_key(row, columns)
            if key in seen:
                stats["duplicates_removed"] += 1
                continue
            seen.add(key)
            result.append(row)

        return result

    def normalize_data_types(
        self, rows: List[Dict], stats: Optional[Dict] = None
    ) -> List[Dict]:
        stats = stats if stats is not None else new_stats(len(rows))
        column_types = {
            column: profile["type"]
            for column, profile in self.analyze_columns(rows).items()
        }

        result = []
        for row in rows:
            normalized_row = {}
            for column, column_type in column_types.items():
                value = row.get(column)
                converter = CONVERTERS.get(column_type, _to_text)
                try:
                    normalized_row[column], converted = converter(value)
                except (ValueError, TypeError, OverflowError) as e:
                    logger.debug("Keeping original value in %s: %s", column, e)
                    normalized_row[column], converted = value, False
                if converted:
                    stats["data_types_normalized"] += 1
            result.append(normalized_row)

        return result

    def calculate_outlier_bounds(
        self, values: List[float], strategy: str = OutlierStrategy.IQR
    ) -> Dict[str, float]:
        series = pd.Series(values, dtype=float)
        if strategy == OutlierStrategy.STD:
            mean = series.mean()
            std = series.std(ddof=0)
            return {
                "lower": float(mean - OUTLIER_STD_MULTIPLIER * std),
                "upper": float(mean + OUTLIER_STD_MULTIPLIER * std),
            }

        q1 = series.quantile(0.25)
        q3 = series.quantile(0.75)
        iqr = q3 - q1
        return {
            "lower": float(q1 - OUTLIER_IQR_MULTIPLIER * iqr),
            "upper": float(q3 + OUTLIER_IQR_MULTIPLIER * iqr),
        }

    def handle_outliers(
        self,
        rows: List[Dict],
        strategy: str = OutlierStrategy.IQR,
        stats: Optional[Dict] = None,
    ) -> List[Dict]:
        stats = stats if stats is not None else new_stats(len(rows))
        strategy = OutlierStrategy(strategy)
        numeric_columns = [
            column
            for column, profile in self.analyze_columns(rows).items()
            if profile["type"] == "numeric"
        ]

        bounds = {}
        for column in numeric_columns:
            values = [to_float(row.get(column)) for row in rows]
            values = [v for v in values if v is not None]
            if values:
                bounds[column] = self.calculate_outlier_bounds(values, strategy)

        result = []
        for row in rows:
            processed_row = dict(row)
            is_outlier_row = False
            for column, bound in bounds.items():
                value = to_float(row.get(column))
                if value is None:
                    continue
                if bound["lower"] <= value <= bound["upper"]:
                    continue

                stats["outliers_treated"] += 1
                if strategy == OutlierStrategy.REMOVE:
                    is_outlier_row = True
                else:
                    processed_row[column] = (
                        bound["lower"] if value < bound["lower"] else bound["upper"]
                    )

            if not is_outlier_row:
                result.append(processed_row)

        return result

    def validate_data_consistency(self, rows: List[Dict]) -> Dict:
        validation = {"is_consistent": True, "issues": [], "warnings": []}

        if not rows:
            validation["is_consistent"] = False
            validation["issues"].append("No data rows found")
            return validation

        profiles = self.analyze_columns(rows)
        if not profiles:
            validation["is_consistent"] = False
            validation["issues"].append("No columns found")
            return validation

        for column, profile in profiles.items():
            if profile["type"] != "numeric":
                continue

            values = [v for v in column_values(rows, column) if not is_missing(v)]
            non_numeric = [v for v in values if to_float(v) is None]
            if non_numeric:
                validation["warnings"].append(
                    f"Column '{column}' has {len(non_numeric)} non-numeric values "
                    f"in numeric column"
                )

            numbers = [to_float(v) for v in values]
            numbers = [n for n in numbers if n is not None]
            if numbers:
                value_range = max(numbers) - min(numbers)
                mean = sum(numbers) / len(numbers)
                if value_range > mean * LARGE_RANGE_FACTOR:
                    validation["warnings"].append(
                        f"Column '{column}' has unusually large range, "
                        f"potential data quality issues"
                    )

        return validation

    def calculate_data_quality(self, rows: List[Dict]) -> Dict:
        """
        Completeness and type consistency of the cells, as percentages.

        The score is the mean of the two and is 0 for an empty dataset.
        """
        columns = get_columns(rows)
        if not rows or not columns:
            return {
                "score": 0,
                "completeness": 0,
                "consistency": 0,
                "total_cells": 0,
                "null_cells": 0,
                "processed_rows": len(rows),
            }

        total_cells = len(rows) * len(columns)
        null_cells = 0
        consistent_cells = 0

        for column in columns:
            values = column_values(rows, column)
            present = [v for v in values if not is_missing(v)]
            null_cells += len(values) - len(present)
            if not present:
                continue

            expected_type = self.column_analyzer.detect_type(
                present[: self.column_analyzer.sample_size]
            )
            is_consistent = CONSISTENCY_CHECKS.get(expected_type, _always)
            consistent_cells += sum(1 for v in present if is_consistent(v))

        present_cells = total_cells - null_cells
        completeness = present_cells / total_cells * 100
        consistency = consistent_cells / present_cells * 100 if present_cells else 0
        score = (completeness + consistency) / 2

        return {
            "score": round(score, 2),
            "completeness": round(completeness, 2),
            "consistency": round(consistency, 2),
            "total_cells": total_cells,
            "null_cells": null_cells,
            "processed_rows": len(rows),
        }
