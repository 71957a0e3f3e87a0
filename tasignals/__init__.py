"""
tasignals - technical-analysis indicators and discrete trading signals
"""

from .data import OHLCVDataset
from .indicators import IndicatorResult, Signal
from .signals import SignalGenerator, evaluate

__version__ = '1.0.0'

__all__ = ['OHLCVDataset', 'IndicatorResult', 'Signal', 'SignalGenerator', 'evaluate']
