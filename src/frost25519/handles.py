"""
Registry of opaque handles for protocol state that must outlive a single call.

Callers that cannot hold Python objects between calls (a foreign runtime, a
request/response boundary) register the in-flight state (Coefficients, a key
generation round, a SecretCommitmentShareList, an aggregator) and carry the
returned integer instead.

Every handle names exactly one live object. take() moves the object out and
invalidates the handle; release() destroys the object and invalidates the
handle. Using a handle after either is a programming error: it raises
HandleError, a ProtocolMisuseError, and is never meant to be caught and
retried.
"""

import itertools
import logging
import threading
from typing import Any, Dict
from .errors import HandleError

logger = logging.getLogger(__name__)


class HandleRegistry:
    """A lock-guarded table from opaque integer handles to owned objects."""

    def __init__(self):
        self._lock = threading.Lock()
        self._objects: Dict[int, Any] = {}
        # Monotonic; handles are never reused.
        self._counter = itertools.count(1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def __contains__(self, handle: int) -> bool:
        with self._lock:
            return handle in self._objects

    def register(self, obj: Any) -> int:
        """Take ownership of obj and return its handle."""
        if obj is None:
            raise ValueError("Cannot register None.")
        with self._lock:
            handle = next(self._counter)
            self._objects[handle] = obj
        logger.debug("Registered handle %d (%s)", handle, type(obj).__name__)
        return handle

    def resolve(self, handle: int) -> Any:
        """
        Return the object behind a handle without invalidating it.

        Raises:
        HandleError: If the handle is unknown, taken, or released.
        """
        with self._lock:
            try:
                return self._objects[handle]
            except KeyError:
                raise HandleError(f"Handle {handle} is not live.") from None

    def take(self, handle: int) -> Any:
        """
        Move the object out of the registry, invalidating the handle.

        Raises:
        HandleError: If the handle is unknown, taken, or released.
        """
        with self._lock:
            try:
                obj = self._objects.pop(handle)
            except KeyError:
                raise HandleError(f"Handle {handle} is not live.") from None
        logger.debug("Took handle %d (%s)", handle, type(obj).__name__)
        return obj

    def release(self, handle: int) -> None:
        """
        Destroy the object behind a handle and invalidate the handle.

        Objects exposing destroy() have their secrets wiped.

        Raises:
        HandleError: If the handle is unknown, taken, or already released.
        """
        obj = self.take(handle)
        destroy = getattr(obj, "destroy", None)
        if callable(destroy):
            destroy()
        logger.debug("Released handle %d", handle)


# The process-wide registry used by frost25519.api.
default_registry = HandleRegistry()
