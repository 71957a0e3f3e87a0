"""
Exception types used inside the indicator layer.

Public entry points convert these into failure results; only
IndicatorResult.unwrap() raises across the package boundary.
"""


class TASignalsError(Exception):
    """Base class for all package errors"""


class InvalidDataError(TASignalsError, ValueError):
    """Input data is missing, empty, misaligned or not numeric"""


class InsufficientDataError(InvalidDataError):
    """Input series is shorter than the indicator's minimum length"""

    def __init__(self, indicator: str, required: int, available: int):
        self.indicator = indicator
        self.required = required
        self.available = available
        super().__init__(
            f"{indicator} needs at least {required} samples, got {available}"
        )


class UnsupportedIndicatorError(TASignalsError, KeyError):
    """The indicator provider cannot compute the requested indicator"""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else 'unsupported indicator'


class UnknownVariantError(TASignalsError, ValueError):
    """Unrecognised moving-average kind with fallback disabled"""


class IndicatorDataError(TASignalsError):
    """Raised by IndicatorResult.unwrap() on a failed result"""

    def __init__(self, error):
        self.error = error
        super().__init__(f"{error.indicator}: {error.kind.value}: {error.message}")
