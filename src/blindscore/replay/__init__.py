"""
Replay Module - Canonical serialization for signed payloads and handles
"""

from .canonical_utils import canonical_json, canonical_bytes, stable_hash, CanonicalHashError

__all__ = ['canonical_json', 'canonical_bytes', 'stable_hash', 'CanonicalHashError']
