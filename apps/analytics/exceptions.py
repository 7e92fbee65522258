class AnalyticsError(Exception):
    """Base class for failures raised by the analytics pipeline."""


class InputError(AnalyticsError):
    """The dataset or options cannot be processed at all."""


class PreprocessingError(AnalyticsError):
    """An unexpected failure inside a preprocessing stage."""

    def __init__(self, stage: str, original: Exception):
        self.stage = stage
        self.original = original
        super().__init__(f"Data preprocessing failed during {stage}: {original}")


class ConfigurationError(AnalyticsError):
    """An unexpected failure while building chart configurations."""

    def __init__(self, original: Exception):
        self.original = original
        super().__init__(f"Smart configuration failed: {original}")
