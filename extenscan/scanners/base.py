"""Scanner protocol — the contract every inventory source satisfies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from extenscan.models import Package, Source
from extenscan.scanners.paths import current_platform


@runtime_checkable
class Scanner(Protocol):
    """Pluggable inventory source.

    ``platforms`` holds the values ``current_platform()`` can return
    (``"linux"``, ``"macos"``, ``"windows"``).
    """

    name: str
    source: Source
    platforms: tuple[str, ...]

    def is_supported(self) -> bool:
        """Return *True* when this scanner can run on the current OS."""
        ...

    def scan(self) -> list[Package]:
        """Return installed packages.

        A missing installation yields ``[]``.  Unexpected failures may
        raise; the orchestrator logs them and carries on.
        """
        ...


class BaseScanner:
    """Shared ``is_supported`` for built-in scanners."""

    name: str = ""
    source: Source
    platforms: tuple[str, ...] = ("linux", "macos", "windows")

    def is_supported(self) -> bool:
        return current_platform() in self.platforms

    def scan(self) -> list[Package]:  # pragma: no cover - overridden
        raise NotImplementedError
