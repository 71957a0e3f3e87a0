"""
Indicator Library - shared types for indicator computation and signal evaluation.

Provides:
- Signal codes (SELL / HOLD / BUY and the Awesome Oscillator conviction codes)
- IndicatorResult: explicit success/failure value returned by every entry point
- IndicatorMetadata / IndicatorCategory: descriptive data for the rule registry
- Observation sinks: optional hook receiving {indicator, parameters, inputs, result}
"""

import functools
import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from tasignals.exceptions import (
    IndicatorDataError,
    InvalidDataError,
    UnknownVariantError,
    UnsupportedIndicatorError,
)
from tasignals.utils.logger import logger


class Signal(IntEnum):
    """Discrete trading decision"""
    SELL = -1
    HOLD = 0
    BUY = 1


# Awesome Oscillator reports zero-line crosses with a wider magnitude
AO_BULLISH = 100
AO_BEARISH = -100


class IndicatorCategory(Enum):
    """Indicator families"""
    TREND = "trend"
    MOMENTUM = "momentum"
    VOLATILITY = "volatility"
    VOLUME = "volume"
    CYCLE = "cycle"


class ErrorKind(Enum):
    """Why an indicator produced no result"""
    INVALID_DATA = "invalid_data"
    DEGENERATE = "degenerate"
    UNKNOWN_VARIANT = "unknown_variant"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class IndicatorError:
    """Describes a failed computation"""
    kind: ErrorKind
    indicator: str
    message: str


@dataclass(frozen=True)
class IndicatorResult:
    """
    Result of an indicator computation or signal evaluation.

    Exactly one of ``value`` / ``error`` is meaningful: a failed result
    never carries a usable value, so callers cannot mistake a missing
    result for zero.
    """
    value: Any = None
    error: Optional[IndicatorError] = None

    @classmethod
    def success(cls, value: Any) -> "IndicatorResult":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, indicator: str, message: str) -> "IndicatorResult":
        logger.warning(f"{indicator}: {message}")
        return cls(error=IndicatorError(kind=kind, indicator=indicator, message=message))

    @classmethod
    def from_error(cls, error: IndicatorError) -> "IndicatorResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def unwrap(self) -> Any:
        """Return the value, raising IndicatorDataError on failure"""
        if self.error is not None:
            raise IndicatorDataError(self.error)
        return self.value

    def value_or(self, default: Any) -> Any:
        return default if self.error is not None else self.value

    def map(self, func: Callable[[Any], Any]) -> "IndicatorResult":
        """Apply func to a successful value; failures pass through untouched"""
        if self.error is not None:
            return self
        return IndicatorResult(value=func(self.value))


def returns_result(indicator: str):
    """
    Wrap an indicator entry point so it always returns an IndicatorResult.

    Package exceptions raised inside the computation become failure
    results; plain return values become successes.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                value = func(*args, **kwargs)
            except IndicatorDataError as e:
                return IndicatorResult.from_error(e.error)
            except InvalidDataError as e:
                return IndicatorResult.failure(ErrorKind.INVALID_DATA, indicator, str(e))
            except UnknownVariantError as e:
                return IndicatorResult.failure(ErrorKind.UNKNOWN_VARIANT, indicator, str(e))
            except UnsupportedIndicatorError as e:
                return IndicatorResult.failure(ErrorKind.UNSUPPORTED, indicator, str(e))

            if isinstance(value, IndicatorResult):
                return value
            return IndicatorResult.success(value)
        return wrapper
    return decorator


@dataclass
class IndicatorMetadata:
    """Metadata describing an indicator rule"""
    name: str
    category: IndicatorCategory
    description: str
    default_params: Dict[str, Any] = field(default_factory=dict)
    outputs: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)


def is_missing(value: Any) -> bool:
    """True for None and NaN (the warm-up marker)"""
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return False


def latest(values) -> Any:
    """Most recent sample of a series-like value (None when empty)"""
    if values is None or len(values) == 0:
        return None
    if hasattr(values, "iloc"):
        return values.iloc[-1]
    return values[-1]


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (70.5 -> 71, -100.5 -> -101)"""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def to_scalar(value: Any) -> Any:
    """Convert numpy scalars to plain Python numbers"""
    if isinstance(value, np.generic):
        return value.item()
    return value


# ===========================
# OBSERVABILITY
# ===========================

@dataclass(frozen=True)
class Observation:
    """One record emitted to an observation sink"""
    indicator: str
    parameters: Dict[str, Any]
    inputs: Dict[str, Any]
    result: Any


ObservationSink = Callable[[Observation], None]


class LoggingSink:
    """Writes observations to the package logger"""

    def __init__(self, verbose: bool = False, log=None):
        self.verbose = verbose
        self.log = log or logger

    def __call__(self, observation: Observation) -> None:
        params = ", ".join(f"{k}: {v}" for k, v in observation.parameters.items())
        inputs = ", ".join(f"{k}: {v}" for k, v in observation.inputs.items())
        message = f"[{observation.indicator}({params})] - {inputs} -> {observation.result}"
        if self.verbose:
            self.log.info(message)
        else:
            self.log.debug(message)


class CollectingSink:
    """Keeps every observation in memory"""

    def __init__(self):
        self.observations: List[Observation] = []

    def __call__(self, observation: Observation) -> None:
        self.observations.append(observation)

    def for_indicator(self, name: str) -> List[Observation]:
        return [o for o in self.observations if o.indicator == name]


def emit(sink: Optional[ObservationSink], observation: Observation) -> None:
    """Send an observation to a sink; sink errors never reach the caller"""
    if sink is None:
        return
    try:
        sink(observation)
    except Exception as e:
        logger.error(f"Observation sink failed for {observation.indicator}: {e}")
