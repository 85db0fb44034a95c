"""
BlindScore Ciphertext Primitive Layer
Simulated coprocessor for encrypted 16-bit integers and encrypted booleans

Plaintexts live only inside the runtime's sealed table. Callers hold opaque
handles and can only combine them through the four homomorphic primitives.
Every primitive call is appended to the operation trace, which records the
operation name and operand types but never a value.
"""

import logging
import secrets
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, Iterable, List, Tuple

from blindscore.errors import DisclosureDenied, UnknownHandle
from blindscore.replay.canonical_utils import canonical_json, stable_hash

logger = logging.getLogger(__name__)


class FheType(str, Enum):
    """Encrypted value types supported by the runtime"""
    EBOOL = "ebool"
    EUINT16 = "euint16"

    @property
    def bits(self) -> int:
        return 1 if self is FheType.EBOOL else 16

    @property
    def modulus(self) -> int:
        return 1 << self.bits


@dataclass(frozen=True)
class EncryptedValue:
    """Opaque reference to a ciphertext held by a runtime"""
    handle: str
    fhe_type: FheType = FheType.EUINT16

    def __repr__(self) -> str:
        return f"EncryptedValue({self.fhe_type.value}:{self.handle[:12]}...)"


@dataclass(frozen=True)
class TraceEntry:
    """Value-free record of one primitive call"""
    op: str
    operand_types: Tuple[str, ...]
    result_type: str


class CiphertextRuntime:
    """Sealed plaintext table plus homomorphic primitives over its handles"""

    def __init__(self, debug_decrypt: bool = False, trace_limit: int = 10000):
        """
        Initialize ciphertext runtime

        Args:
            debug_decrypt: Allow test-harness decryption of any handle
            trace_limit: Maximum operation trace entries retained
        """
        self.runtime_id = secrets.token_hex(8)
        self.debug_decrypt = debug_decrypt
        self._sealed: Dict[str, Tuple[FheType, int]] = {}
        self._inputs: Dict[str, FheType] = {}
        self._trace: Deque[TraceEntry] = deque(maxlen=trace_limit)
        self._sequence = 0
        self._lock = threading.RLock()

        logger.info(
            f"CiphertextRuntime initialized (runtime_id={self.runtime_id}, debug_decrypt={debug_decrypt})"
        )

    # ------------------------------------------------------------------
    # Handle management
    # ------------------------------------------------------------------

    def _new_handle(self, op: str, operands: List[str], fhe_type: FheType) -> str:
        with self._lock:
            self._sequence += 1
            material = canonical_json({
                "runtime": self.runtime_id,
                "op": op,
                "operands": operands,
                "type": fhe_type.value,
                "seq": self._sequence,
                "salt": secrets.token_hex(8),
            })
        return stable_hash(material)

    def _store(self, op: str, operands: List[str], fhe_type: FheType, value: int) -> EncryptedValue:
        handle = self._new_handle(op, operands, fhe_type)
        with self._lock:
            self._sealed[handle] = (fhe_type, value % fhe_type.modulus)
        return EncryptedValue(handle=handle, fhe_type=fhe_type)

    def _load(self, value: EncryptedValue, expected: FheType) -> int:
        if value.fhe_type is not expected:
            raise TypeError(f"expected {expected.value} operand, got {value.fhe_type.value}")
        with self._lock:
            entry = self._sealed.get(value.handle)
        if entry is None:
            raise UnknownHandle(value.handle)
        stored_type, plaintext = entry
        if stored_type is not expected:
            raise TypeError(f"handle holds {stored_type.value}, not {expected.value}")
        return plaintext

    def _record(self, op: str, operands: Tuple[EncryptedValue, ...], result_type: FheType) -> None:
        self._trace.append(TraceEntry(
            op=op,
            operand_types=tuple(o.fhe_type.value for o in operands),
            result_type=result_type.value,
        ))

    def contains(self, handle: str) -> bool:
        """Check whether a handle references a ciphertext in this runtime"""
        with self._lock:
            return handle in self._sealed

    def type_of(self, handle: str) -> FheType:
        """Get the encrypted type stored under a handle"""
        with self._lock:
            entry = self._sealed.get(handle)
        if entry is None:
            raise UnknownHandle(handle)
        return entry[0]

    def is_input(self, handle: str) -> bool:
        """Check whether a handle was registered as an external input ciphertext"""
        with self._lock:
            return handle in self._inputs

    def release(self, handles: Iterable[str]) -> int:
        """
        Destroy ciphertexts that no longer back any engine state

        Released handles behave exactly like handles that never existed.
        Not recorded in the operation trace.

        Returns:
            Number of ciphertexts actually destroyed
        """
        released = 0
        with self._lock:
            for handle in handles:
                if self._sealed.pop(handle, None) is not None:
                    released += 1
                self._inputs.pop(handle, None)
        return released

    def consume_inputs(self, handles: Iterable[str]) -> None:
        """Stop treating handles as admissible inputs once engine state owns them"""
        with self._lock:
            for handle in handles:
                self._inputs.pop(handle, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sealed)

    # ------------------------------------------------------------------
    # Encryption entry points
    # ------------------------------------------------------------------

    def trivial_encrypt(self, value: int, fhe_type: FheType = FheType.EUINT16) -> EncryptedValue:
        """
        Encrypt a public constant

        Args:
            value: Plaintext constant (reduced modulo the type's range)
            fhe_type: Target encrypted type

        Returns:
            EncryptedValue holding the constant
        """
        result = self._store("trivial_encrypt", [], fhe_type, int(value))
        self._trace.append(TraceEntry(op="trivial_encrypt", operand_types=(), result_type=fhe_type.value))
        return result

    def register_input(self, value: int, fhe_type: FheType = FheType.EUINT16) -> EncryptedValue:
        """
        Register a client-encrypted input ciphertext

        Used by the client-side input toolkit. Values must already lie in the
        type's representable range; inputs are not reduced.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"input plaintext must be an integer, got {type(value).__name__}")
        if not 0 <= value < fhe_type.modulus:
            raise ValueError(f"input plaintext {value} does not fit {fhe_type.value}")
        result = self._store("input", [], fhe_type, value)
        with self._lock:
            self._inputs[result.handle] = fhe_type
        return result

    # ------------------------------------------------------------------
    # Homomorphic primitives
    # ------------------------------------------------------------------

    def ge(self, lhs: EncryptedValue, rhs: EncryptedValue) -> EncryptedValue:
        """Encrypted lhs >= rhs"""
        a = self._load(lhs, FheType.EUINT16)
        b = self._load(rhs, FheType.EUINT16)
        self._record("ge", (lhs, rhs), FheType.EBOOL)
        return self._store("ge", [lhs.handle, rhs.handle], FheType.EBOOL, int(a >= b))

    def le(self, lhs: EncryptedValue, rhs: EncryptedValue) -> EncryptedValue:
        """Encrypted lhs <= rhs"""
        a = self._load(lhs, FheType.EUINT16)
        b = self._load(rhs, FheType.EUINT16)
        self._record("le", (lhs, rhs), FheType.EBOOL)
        return self._store("le", [lhs.handle, rhs.handle], FheType.EBOOL, int(a <= b))

    def select(self, condition: EncryptedValue, if_true: EncryptedValue, if_false: EncryptedValue) -> EncryptedValue:
        """Encrypted conditional select; both branches are always consumed"""
        c = self._load(condition, FheType.EBOOL)
        t = self._load(if_true, FheType.EUINT16)
        f = self._load(if_false, FheType.EUINT16)
        chosen = t * c + f * (1 - c)
        self._record("select", (condition, if_true, if_false), FheType.EUINT16)
        return self._store(
            "select", [condition.handle, if_true.handle, if_false.handle], FheType.EUINT16, chosen
        )

    def add(self, lhs: EncryptedValue, rhs: EncryptedValue) -> EncryptedValue:
        """Encrypted addition, wrapping modulo 2^16"""
        a = self._load(lhs, FheType.EUINT16)
        b = self._load(rhs, FheType.EUINT16)
        self._record("add", (lhs, rhs), FheType.EUINT16)
        return self._store("add", [lhs.handle, rhs.handle], FheType.EUINT16, a + b)

    # ------------------------------------------------------------------
    # Trace and decryption oracle
    # ------------------------------------------------------------------

    @property
    def trace(self) -> List[TraceEntry]:
        """Snapshot of the operation trace"""
        return list(self._trace)

    def trace_mark(self) -> int:
        """Current trace length, for slicing the trace of a single call"""
        return len(self._trace)

    def trace_since(self, mark: int) -> List[TraceEntry]:
        return list(self._trace)[mark:]

    def reveal(self, handle: str) -> int:
        """
        Trusted decryption oracle

        Performs no grant check. Only the decryption relay calls this, after
        it has verified the disclosure grant for the handle.
        """
        with self._lock:
            entry = self._sealed.get(handle)
        if entry is None:
            raise UnknownHandle(handle)
        return entry[1]

    def decrypt_for_testing(self, value: EncryptedValue) -> int:
        """Decrypt any handle when the runtime runs in test-harness mode"""
        if not self.debug_decrypt:
            raise DisclosureDenied(value.handle, "debug_decrypt")
        return self.reveal(value.handle)
