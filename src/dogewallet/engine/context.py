"""
Process-wide secp256k1 context management.

The first EccContext acquired creates a randomized coincurve Context (blinding
seeded from fresh entropy); releasing the last one tears it down. Engine calls
made while no context is held fall back to coincurve's global context.
"""

from __future__ import annotations

import secrets
import threading

from coincurve import GLOBAL_CONTEXT, Context
from loguru import logger

# Reentrant: a finalizer releasing an EccContext may run while the lock is held
_lock = threading.RLock()
_refcount = 0
_context: Context | None = None


def ecc_start() -> Context:
    """Take a reference on the shared context, creating it on first use."""
    global _refcount, _context

    with _lock:
        _refcount += 1
        context = _context
        if context is None:
            try:
                context = Context(seed=secrets.token_bytes(32), name="dogewallet")
            except BaseException:
                _refcount -= 1
                raise
            _context = context
            logger.debug("ECC context started")
        return context


def ecc_stop() -> None:
    """Drop a reference on the shared context, destroying it with the last one."""
    global _refcount, _context

    with _lock:
        if _refcount == 0:
            return
        _refcount -= 1
        if _refcount == 0:
            _context = None
            logger.debug("ECC context stopped")


def active_context() -> Context:
    """Context engine calls should use right now."""
    context = _context
    return context if context is not None else GLOBAL_CONTEXT


def ecc_refcount() -> int:
    return _refcount


class EccContext:
    """
    Scoped reference on the shared ECC context.

    Long-lived objects (wallets, transaction builders) hold one for their
    lifetime. close() is idempotent so the reference is dropped exactly once,
    whether via close(), a with-block or garbage collection.
    """

    def __init__(self) -> None:
        self._closed = True
        self.context = ecc_start()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        ecc_stop()

    def __enter__(self) -> EccContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()
