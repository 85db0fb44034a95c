"""
Disclosure Module - Decryption capabilities and the public decryption relay
"""

from .controller import DisclosureController, DisclosureLevel
from .relay import DecryptionRelay, average

__all__ = ['DisclosureController', 'DisclosureLevel', 'DecryptionRelay', 'average']
