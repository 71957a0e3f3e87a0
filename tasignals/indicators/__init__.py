"""
Indicators Package - Technical Analysis Indicator Library

Moving averages, natively computed indicators and provider-backed
calculations. Every entry point returns an IndicatorResult.

Usage:
    from tasignals.indicators import moving_average, obv, calculations

    # Moving average of any kind
    result = moving_average(df['close'], kind='kama', time_period=10)

    # Native indicator
    series = obv(df, return_all=True).unwrap()

    # Provider-backed indicator
    latest_rsi = calculations.rsi(df, time_period=14).value
"""

# Core library
from .library import (
    # Signal codes
    Signal,
    AO_BULLISH,
    AO_BEARISH,
    # Results
    ErrorKind,
    IndicatorError,
    IndicatorResult,
    returns_result,
    # Metadata
    IndicatorCategory,
    IndicatorMetadata,
    # Observability
    Observation,
    ObservationSink,
    LoggingSink,
    CollectingSink,
)

# Moving averages
from .moving_averages import (
    MovingAverageKind,
    moving_average,
    sma,
    ema,
    wma,
    dema,
    tema,
    trima,
    kama,
    mama,
    t3,
)

# Provider
from .provider import (
    IndicatorProvider,
    PandasIndicatorProvider,
    get_default_provider,
)

# Native indicators
from .volume import obv
from .oscillators import stoch_rsi, awesome_oscillator
from .trend import high_low_index, market_meanness_index, elder_ray

# Provider-backed calculations
from . import calculations

__all__ = [
    # Core
    'Signal',
    'AO_BULLISH',
    'AO_BEARISH',
    'ErrorKind',
    'IndicatorError',
    'IndicatorResult',
    'returns_result',
    'IndicatorCategory',
    'IndicatorMetadata',
    'Observation',
    'ObservationSink',
    'LoggingSink',
    'CollectingSink',

    # Moving averages
    'MovingAverageKind',
    'moving_average',
    'sma',
    'ema',
    'wma',
    'dema',
    'tema',
    'trima',
    'kama',
    'mama',
    't3',

    # Provider
    'IndicatorProvider',
    'PandasIndicatorProvider',
    'get_default_provider',

    # Native
    'obv',
    'stoch_rsi',
    'awesome_oscillator',
    'high_low_index',
    'market_meanness_index',
    'elder_ray',

    # Calculations
    'calculations',
]
