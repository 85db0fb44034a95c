"""
Policy Module - Encrypted acceptance thresholds
"""

from .store import Policy, PolicyStore, DEFAULT_THRESHOLDS, validate_thresholds

__all__ = ['Policy', 'PolicyStore', 'DEFAULT_THRESHOLDS', 'validate_thresholds']
