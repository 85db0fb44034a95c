"""
BlindScore error taxonomy

Every engine failure is detected before any state mutation and surfaces
to the caller as one of these exceptions.
"""

from typing import Optional


class BlindScoreError(Exception):
    """Base class for all engine failures"""
    pass


class NotOwner(BlindScoreError):
    """Raised when an owner-only operation is invoked by another principal"""

    def __init__(self, operation: str, caller: Optional[str]):
        self.operation = operation
        self.caller = caller
        super().__init__(f"{operation}: caller '{caller}' is not the owner")


class ZeroOwner(BlindScoreError):
    """Raised when ownership would be transferred to the null identity"""

    def __init__(self):
        super().__init__("ownership cannot be transferred to the zero principal")


class OutOfRange(BlindScoreError):
    """Raised when a plaintext threshold lies outside 0..100"""

    def __init__(self, field_name: str, value, low: int = 0, high: int = 100):
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name}={value!r} is outside {low}..{high}")


class ProofInvalid(BlindScoreError):
    """Raised when attestation verification fails for submitted ciphertexts"""

    def __init__(self, reason: str, detail: Optional[str] = None):
        self.reason = reason
        self.detail = detail
        message = f"input proof rejected: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class CapacityExceeded(BlindScoreError):
    """Raised when a submission arrives after the aggregate reached its cap"""

    def __init__(self, cap: int):
        self.cap = cap
        super().__init__(
            f"aggregate holds {cap} submissions; publish or reset before ingesting more"
        )


class DisclosureDenied(BlindScoreError):
    """Raised when a value is used or decrypted without a sufficient grant"""

    def __init__(self, handle: str, required: str):
        self.handle = handle
        self.required = required
        super().__init__(f"handle {handle[:16]}... lacks a {required} grant")


class DisclosureDowngrade(BlindScoreError):
    """Raised when a grant would move down the disclosure lattice"""

    def __init__(self, handle: str, current: str, requested: str):
        self.handle = handle
        self.current = current
        self.requested = requested
        super().__init__(
            f"handle {handle[:16]}... is {current}; cannot downgrade to {requested}"
        )


class UnknownHandle(BlindScoreError, KeyError):
    """Raised when a handle does not reference a ciphertext in the runtime"""

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"unknown ciphertext handle: {handle}")

    def __str__(self) -> str:
        return self.args[0]
