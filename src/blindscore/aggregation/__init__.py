"""
Aggregation Module - Encrypted running sum and submission counter
"""

from .aggregator import Aggregate, AggregateState, Aggregator

__all__ = ['Aggregate', 'AggregateState', 'Aggregator']
