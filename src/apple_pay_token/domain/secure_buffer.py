"""Scoped buffers for sensitive intermediate values.

The shared secret and the derived symmetric key only exist for the duration
of one decryption. They are held in a mutable bytearray that is overwritten
with zeros when the scope exits, whether the decryption succeeded or not.

Note: this is a best-effort measure. The crypto library returns immutable
bytes objects which are copied into the buffer; Python's memory management
doesn't guarantee those copies are cleared immediately.
"""

from types import TracebackType
from typing import Optional, Type


class SensitiveBuffer:
    """Mutable byte buffer that zeroes its contents on scope exit.

    Example:
        >>> with SensitiveBuffer(shared_secret) as secret:
        ...     key = derive(secret.view())
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytearray(data)

    def __enter__(self) -> "SensitiveBuffer":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.wipe()

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        # Never render the contents
        return f"SensitiveBuffer(len={len(self._data)})"

    def view(self) -> bytearray:
        """Return the underlying buffer (valid until the scope exits)."""
        if self.wiped:
            raise ValueError("Sensitive buffer has already been wiped")
        return self._data

    def wipe(self) -> None:
        """Overwrite the contents with zeros and release the storage."""
        for i in range(len(self._data)):
            self._data[i] = 0
        self._data = bytearray()

    @property
    def wiped(self) -> bool:
        return not self._data
