import re

CHART_TYPES = [
    "bar",
    "line",
    "scatter",
    "pie",
    "area",
    "histogram",
    "bubble",
    "radar",
    "box",
]

CHART_TITLES = {
    "bar": "Category Analysis",
    "line": "Trend Analysis",
    "scatter": "Correlation Analysis",
    "pie": "Distribution Overview",
    "area": "Cumulative Trends",
    "histogram": "Value Distribution",
    "bubble": "Multi-dimensional Analysis",
    "radar": "Performance Comparison",
    "box": "Statistical Summary",
}

MAX_CONFIGURATIONS = 5
MAX_PRIORITY = 5

# Column analysis
TYPE_SAMPLE_SIZE = 1000
TYPE_MATCH_THRESHOLD = 0.7
CATEGORICAL_UNIQUE_RATIO = 0.5
MIN_DATE_YEAR = 1900
TOP_CATEGORY_COUNT = 5
SAMPLE_VALUE_COUNT = 5
OUTLIER_IQR_MULTIPLIER = 1.5
OUTLIER_STD_MULTIPLIER = 3

TIME_KEYWORDS = ["date", "time", "year", "month", "day", "created", "updated"]
MEASURE_KEYWORDS = ["amount", "value", "price", "cost", "count", "total", "sum", "avg"]
DIMENSION_KEYWORDS = ["id", "name", "category", "type", "group", "class", "label"]

BOOLEAN_TOKENS = {"true", "false", "yes", "no", "1", "0", "on", "off"}
TRUE_VALUES = {"true", "yes", "y", "1", "on", "enabled"}
FALSE_VALUES = {"false", "no", "n", "0", "off", "disabled"}

NULL_MARKERS = {"null", "NULL", "n/a", "N/A", "undefined", "#N/A", ""}

DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y"]

NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
NUMERIC_STRIP_PATTERN = re.compile(r"[,$%]")

# Preprocessing
KEY_COLUMN_UNIQUE_RATIO = 0.9
LARGE_RANGE_FACTOR = 1000
DEFAULT_NUMERIC_FILL = 0
DEFAULT_TEXT_FILL = "Unknown"

# Relationships
MIN_RELATIONSHIP_STRENGTH = 0.3
SCATTER_CORRELATION = 0.7
LINE_CORRELATION = 0.5
BAR_STRENGTH = 0.5
TIME_SERIES_STRENGTH = 0.8
SIGNIFICANT_VARIANCE_RATIO = 0.1

# Chart data
PERFORMANCE_MODE_ROWS = 1000
PERFORMANCE_INSIGHT_ROWS = 10000
CHART_DATA_LIMITS = {
    "line": 500,
    "area": 500,
    "scatter": 300,
    "bar": 50,
    "pie": 50,
}
DEFAULT_CHART_DATA_LIMIT = 250
PLOTLY_CHART_TYPES = {"box", "bubble", "radar"}
VALID_AGGREGATIONS = ["sum", "avg", "count", "min", "max"]

REPRESENTATIVE_ROW_COUNT = 5
MAX_KMEANS_ROWS = 10000
