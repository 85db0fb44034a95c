"""
Audit Module - Engine notifications and audit boundary
"""

from .audit_interface import AuditInterface, InMemoryAuditInterface
from .emitter import EngineAuditEmitter

__all__ = ['AuditInterface', 'InMemoryAuditInterface', 'EngineAuditEmitter']
