from dataclasses import dataclass, field
from typing import Dict, List, Optional

from django.db import models

from apps.analytics.conf import get_setting
from apps.analytics.constants import CHART_TYPES, VALID_AGGREGATIONS
from apps.analytics.exceptions import InputError
from apps.analytics.utils import parse_boolean


class MissingValueStrategy(models.TextChoices):
    AUTO = "auto", "Auto"
    MEAN = "mean", "Mean"
    MEDIAN = "median", "Median"
    MODE = "mode", "Mode"
    INTERPOLATE = "interpolate", "Interpolate"


class DuplicateStrategy(models.TextChoices):
    STRICT = "strict", "Strict"
    KEY_COLUMNS = "key_columns", "Key columns"
    FUZZY = "fuzzy", "Fuzzy"


class OutlierStrategy(models.TextChoices):
    IQR = "iqr", "Interquartile range"
    STD = "std", "Standard deviation"
    CAP = "cap", "Cap"
    REMOVE = "remove", "Remove"


def _pick(data: Dict, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _to_choice(choices, value, option_name: str):
    try:
        return choices(value)
    except ValueError:
        allowed = ", ".join(choices.values)
        raise InputError(
            f"Invalid {option_name} '{value}'. Expected one of: {allowed}"
        ) from None


def _to_flag(value, option_name: str) -> bool:
    # Form-encoded uploads send flags as strings such as "false"
    flag = parse_boolean(value)
    if flag is None:
        raise InputError(f"Invalid {option_name} flag '{value}'")
    return flag


def _to_chart_types(value, option_name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise InputError(f"{option_name} must be a list of chart types")
    return [t for t in value if t in CHART_TYPES]


@dataclass(frozen=True)
class PreprocessingOptions:
    missing_value_strategy: MissingValueStrategy = MissingValueStrategy.AUTO
    duplicate_strategy: DuplicateStrategy = DuplicateStrategy.STRICT
    handle_outliers: bool = False
    outlier_strategy: OutlierStrategy = OutlierStrategy.IQR

    @classmethod
    def from_dict(cls, data: Optional[Dict] = None) -> "PreprocessingOptions":
        """
        Resolve preprocessing options from a request payload.

        Accepts both the camelCase keys sent by the frontend and snake_case
        keys. Absent keys take the project defaults from ``settings.ANALYTICS``.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise InputError("Preprocessing options must be an object")

        missing = _pick(data, "missing_value_strategy", "missingValueStrategy")
        duplicate = _pick(data, "duplicate_strategy", "duplicateStrategy")
        handle = _pick(data, "handle_outliers", "handleOutliers")
        outlier = _pick(data, "outlier_strategy", "outlierStrategy")

        return cls(
            missing_value_strategy=_to_choice(
                MissingValueStrategy,
                missing or get_setting("MISSING_VALUE_STRATEGY"),
                "missing value strategy",
            ),
            duplicate_strategy=_to_choice(
                DuplicateStrategy,
                duplicate or get_setting("DUPLICATE_STRATEGY"),
                "duplicate strategy",
            ),
            handle_outliers=_to_flag(
                get_setting("HANDLE_OUTLIERS") if handle is None else handle,
                "handle outliers",
            ),
            outlier_strategy=_to_choice(
                OutlierStrategy,
                outlier or get_setting("OUTLIER_STRATEGY"),
                "outlier strategy",
            ),
        )


@dataclass(frozen=True)
class UserPreferences:
    preferred_types: List[str] = field(default_factory=list)
    avoid_types: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict] = None) -> "UserPreferences":
        data = data or {}
        preferred = _pick(
            data,
            "preferred_types",
            "preferred_chart_types",
            "preferredTypes",
            "preferredChartTypes",
        )
        avoid = _pick(
            data, "avoid_types", "avoid_chart_types", "avoidTypes", "avoidChartTypes"
        )
        return cls(
            preferred_types=_to_chart_types(preferred, "Preferred types"),
            avoid_types=_to_chart_types(avoid, "Avoided types"),
        )


@dataclass(frozen=True)
class ChartConfig:
    type: str
    title: Optional[str] = None
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    group_by: Optional[str] = None
    size_axis: Optional[str] = None
    dimensions: List[str] = field(default_factory=list)
    bins: Optional[int] = None
    aggregation: str = "sum"

    @classmethod
    def from_dict(cls, data: Dict) -> "ChartConfig":
        """Chart configuration from a configurator result or a request payload."""
        if not isinstance(data, dict):
            raise InputError("Chart configuration must be an object")

        chart_type = data.get("type")
        if chart_type not in CHART_TYPES:
            raise InputError(
                f"Invalid chart type '{chart_type}'. "
                f"Expected one of: {', '.join(CHART_TYPES)}"
            )

        aggregation = data.get("aggregation") or "sum"
        if aggregation not in VALID_AGGREGATIONS:
            raise InputError(
                f"Invalid aggregation '{aggregation}'. "
                f"Expected one of: {', '.join(VALID_AGGREGATIONS)}"
            )

        bins = data.get("bins")
        if bins is not None and (
            isinstance(bins, bool) or not isinstance(bins, int) or bins < 1
        ):
            raise InputError("Histogram bins must be a positive integer")

        return cls(
            type=chart_type,
            title=data.get("title"),
            x_axis=_pick(data, "x_axis", "xAxis"),
            y_axis=_pick(data, "y_axis", "yAxis"),
            group_by=_pick(data, "group_by", "groupBy"),
            size_axis=_pick(data, "size_axis", "sizeAxis"),
            dimensions=list(data.get("dimensions") or []),
            bins=bins,
            aggregation=aggregation,
        )
