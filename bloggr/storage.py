"""Durable key-value storage for bloggr.

The session (current user, token, theme flag) is persisted in the system
keyring, one credential per key under the `bloggr` service. The API is the
small get/set/remove surface the session store and HTTP client need.

Serialized users can exceed the per-credential size limit of some keyring
backends (Windows Credential Manager), so values above `_CHUNK_SIZE` are
written as base64-encoded parts: `{key}.part{i}` plus a `{key}.parts` index.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError, PasswordSetError

from .config import KEYRING_SERVICE, get_logger

# Size of each chunk in bytes when splitting large values for keyring storage.
_CHUNK_SIZE = 1000

logger = get_logger("storage")


class KeyringStorage:
    """localStorage-style wrapper around the system keyring."""

    def __init__(self, service: str = KEYRING_SERVICE):
        self.service = service

    # --- raw strings ---
    def get_item(self, key: str) -> Optional[str]:
        value = keyring.get_password(self.service, key)
        if value is not None:
            return value
        return self._read_chunked_value(key)

    def set_item(self, key: str, value: str) -> None:
        previous = self.get_item(key)
        # Drop both representations first so a shrinking value never leaves stale parts
        self.remove_item(key)
        try:
            self._write(key, value)
        except (KeyringError, RuntimeError):
            if previous is not None:
                logger.warning("storage: write of %s failed; restoring previous value", key)
                self._write(key, previous)
            raise

    def _write(self, key: str, value: str) -> None:
        if len(value.encode("utf-8")) <= _CHUNK_SIZE:
            try:
                keyring.set_password(self.service, key, value)
                return
            except PasswordSetError:
                logger.debug("storage: single write of %s failed; attempting chunked storage", key)
        self._store_chunked_value(key, value)

    def remove_item(self, key: str) -> None:
        self._delete(key)
        self._delete_chunked_value(key)

    def clear(self, keys) -> None:
        for key in keys:
            self.remove_item(key)

    # --- JSON helpers ---
    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("storage: discarding unreadable value for %s", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))

    # --- chunking ---
    def _delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.service, key)
        except PasswordDeleteError:
            pass

    def _store_chunked_value(self, key_base: str, value: str) -> None:
        """Store a potentially-large string by splitting it into base64-encoded
        chunks, trying progressively smaller chunk sizes until the backend
        accepts every part.
        """
        data = value.encode("utf-8")
        last_exc: Optional[Exception] = None
        for chunk_size in (_CHUNK_SIZE, 512, 256, 128):
            parts = [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]
            written_parts = []
            try:
                for idx, part in enumerate(parts):
                    part_key = f"{key_base}.part{idx}"
                    b64 = base64.b64encode(part).decode("ascii")
                    keyring.set_password(self.service, part_key, b64)
                    if keyring.get_password(self.service, part_key) != b64:
                        raise RuntimeError(f"verification failed for {part_key}")
                    written_parts.append(part_key)
                keyring.set_password(self.service, f"{key_base}.parts", str(len(parts)))
                logger.debug("storage: stored %s in %d chunk(s) (chunk_size=%d)", key_base, len(parts), chunk_size)
                return
            except (KeyringError, RuntimeError) as e:
                last_exc = e
                logger.debug("storage: chunked write with chunk_size=%d failed: %s", chunk_size, e)
                for pk in written_parts:
                    self._delete(pk)
                self._delete(f"{key_base}.parts")

        logger.error("storage: all chunked write attempts failed for %s", key_base)
        raise last_exc or RuntimeError("failed to store chunked value")

    def _read_chunked_value(self, key_base: str) -> Optional[str]:
        count_s = keyring.get_password(self.service, f"{key_base}.parts")
        if not count_s:
            return None
        try:
            count = int(count_s)
        except ValueError:
            logger.debug("storage: invalid parts index for %s: %r", key_base, count_s)
            return None

        parts = []
        for i in range(count):
            b64 = keyring.get_password(self.service, f"{key_base}.part{i}")
            if b64 is None:
                # missing part -> treat as absent
                logger.warning("storage: missing chunk %s.part%d", key_base, i)
                return None
            parts.append(base64.b64decode(b64.encode("ascii")))
        return b"".join(parts).decode("utf-8")

    def _delete_chunked_value(self, key_base: str) -> None:
        count_s = keyring.get_password(self.service, f"{key_base}.parts")
        if not count_s:
            return
        try:
            count = int(count_s)
        except ValueError:
            count = 0
        for i in range(count):
            self._delete(f"{key_base}.part{i}")
        self._delete(f"{key_base}.parts")
