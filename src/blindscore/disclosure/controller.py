"""
BlindScore Disclosure Controller
Per-handle decryption capabilities on the monotonic lattice NONE < ENGINE_ONLY < PUBLIC
"""

import logging
import threading
from enum import IntEnum
from typing import Dict, Iterable

from blindscore.contracts.models_v1 import DisclosureLevelName
from blindscore.errors import DisclosureDenied, DisclosureDowngrade

logger = logging.getLogger(__name__)


class DisclosureLevel(IntEnum):
    """Decryption capability attached to one encrypted value"""
    NONE = 0
    ENGINE_ONLY = 1
    PUBLIC = 2

    @property
    def wire_name(self) -> str:
        return DisclosureLevelName[self.name].value


class DisclosureController:
    """Tracks who may use or decrypt each encrypted value"""

    def __init__(self):
        self._grants: Dict[str, DisclosureLevel] = {}
        self._lock = threading.RLock()
        logger.info("DisclosureController initialized - NONE by default for every handle")

    def level_of(self, handle: str) -> DisclosureLevel:
        """Current grant for a handle (NONE when never granted)"""
        with self._lock:
            return self._grants.get(handle, DisclosureLevel.NONE)

    def grant(self, handle: str, level: DisclosureLevel) -> DisclosureLevel:
        """
        Raise a handle's grant

        Args:
            handle: Ciphertext handle
            level: ENGINE_ONLY or PUBLIC

        Returns:
            The handle's grant after the call

        Raises:
            ValueError: If level is NONE (grants are never revoked)
            DisclosureDowngrade: If level is below the current grant
        """
        level = DisclosureLevel(level)
        if level is DisclosureLevel.NONE:
            raise ValueError("NONE is not a grantable level")

        with self._lock:
            current = self._grants.get(handle, DisclosureLevel.NONE)
            if level < current:
                raise DisclosureDowngrade(handle, current.wire_name, level.wire_name)
            if level == current:
                return current
            self._grants[handle] = level

        logger.info(f"Granted {level.wire_name} on {handle[:16]}... (was {current.wire_name})")
        return level

    def check_grant(self, handle: str, level: DisclosureLevel) -> None:
        """Pre-flight check that grant(handle, level) would not downgrade"""
        current = self.level_of(handle)
        if DisclosureLevel(level) < current:
            raise DisclosureDowngrade(handle, current.wire_name, DisclosureLevel(level).wire_name)

    def grant_all(self, handles: Iterable[str], level: DisclosureLevel) -> None:
        """Grant the same level on several handles, all-or-nothing"""
        handles = list(handles)
        with self._lock:
            for handle in handles:
                self.check_grant(handle, level)
            for handle in handles:
                self.grant(handle, level)

    def ensure_all(self, handles: Iterable[str], level: DisclosureLevel) -> None:
        """Raise each handle to at least level; handles already above it are left alone"""
        with self._lock:
            for handle in handles:
                if self.level_of(handle) < level:
                    self.grant(handle, level)

    def forget(self, handle: str) -> None:
        """
        Drop the grant record of a destroyed ciphertext

        Raises:
            DisclosureDowngrade: If the handle is PUBLIC (public grants are permanent)
        """
        with self._lock:
            current = self._grants.get(handle, DisclosureLevel.NONE)
            if current is DisclosureLevel.PUBLIC:
                raise DisclosureDowngrade(handle, current.wire_name, DisclosureLevel.NONE.wire_name)
            self._grants.pop(handle, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._grants)

    def is_public(self, handle: str) -> bool:
        return self.level_of(handle) is DisclosureLevel.PUBLIC

    def require_engine_access(self, handle: str) -> None:
        """Raise unless the engine may use the handle homomorphically"""
        if self.level_of(handle) < DisclosureLevel.ENGINE_ONLY:
            raise DisclosureDenied(handle, DisclosureLevel.ENGINE_ONLY.wire_name)

    def require_public(self, handle: str) -> None:
        """Raise unless anyone may request decryption of the handle"""
        if not self.is_public(handle):
            raise DisclosureDenied(handle, DisclosureLevel.PUBLIC.wire_name)

    def snapshot(self) -> Dict[str, str]:
        """All recorded grants as wire names"""
        with self._lock:
            return {handle: level.wire_name for handle, level in self._grants.items()}
