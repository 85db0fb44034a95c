"""
Ciphertext Module - Encrypted integer primitives
"""

from .runtime import CiphertextRuntime, EncryptedValue, FheType, TraceEntry

__all__ = ['CiphertextRuntime', 'EncryptedValue', 'FheType', 'TraceEntry']
