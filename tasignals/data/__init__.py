"""
Data containers for indicator inputs
"""
from .dataset import FIELDS, OHLCVDataset, as_series

__all__ = ['FIELDS', 'OHLCVDataset', 'as_series']
