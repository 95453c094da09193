"""Per-OS install locations for browsers and editors."""

from __future__ import annotations

import os
import platform
from pathlib import Path

from extenscan.models import Source

_SYSTEMS = {"Darwin": "macos", "Linux": "linux", "Windows": "windows"}


def current_platform() -> str:
    """Return ``"linux"``, ``"macos"``, ``"windows"`` or the lower-cased system name."""
    system = platform.system()
    return _SYSTEMS.get(system, system.lower())


# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------


def _home() -> Path:
    return Path.home()


def _config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else _home() / ".config"


def _app_support() -> Path:
    return _home() / "Library" / "Application Support"


def _localappdata() -> Path:
    return Path(os.environ.get("LOCALAPPDATA", ""))


def _appdata() -> Path:
    return Path(os.environ.get("APPDATA", ""))


# ---------------------------------------------------------------------------
# Chromium family
# ---------------------------------------------------------------------------


def chromium_user_data_dir(source: Source, system: str | None = None) -> Path | None:
    """Return the user-data root (the directory holding profiles) for *source*.

    Returns *None* when the browser has no known location on *system*.
    """
    system = system or current_platform()
    if system == "linux":
        table = {
            Source.CHROME: _config_home() / "google-chrome",
            Source.EDGE: _config_home() / "microsoft-edge",
            Source.BRAVE: _config_home() / "BraveSoftware" / "Brave-Browser",
            Source.CHROMIUM: _config_home() / "chromium",
            Source.OPERA: _config_home() / "opera",
            Source.VIVALDI: _config_home() / "vivaldi",
        }
    elif system == "macos":
        table = {
            Source.CHROME: _app_support() / "Google" / "Chrome",
            Source.EDGE: _app_support() / "Microsoft Edge",
            Source.BRAVE: _app_support() / "BraveSoftware" / "Brave-Browser",
            Source.CHROMIUM: _app_support() / "Chromium",
            Source.OPERA: _app_support() / "com.operasoftware.Opera",
            Source.VIVALDI: _app_support() / "Vivaldi",
            Source.ARC: _app_support() / "Arc" / "User Data",
        }
    elif system == "windows":
        table = {
            Source.CHROME: _localappdata() / "Google" / "Chrome" / "User Data",
            Source.EDGE: _localappdata() / "Microsoft" / "Edge" / "User Data",
            Source.BRAVE: _localappdata() / "BraveSoftware" / "Brave-Browser" / "User Data",
            Source.CHROMIUM: _localappdata() / "Chromium" / "User Data",
            Source.OPERA: _appdata() / "Opera Software" / "Opera Stable",
            Source.VIVALDI: _localappdata() / "Vivaldi" / "User Data",
        }
    else:
        return None
    return table.get(source)


# ---------------------------------------------------------------------------
# Firefox / VSCode
# ---------------------------------------------------------------------------


def firefox_profiles_dir(system: str | None = None) -> Path | None:
    system = system or current_platform()
    if system == "linux":
        return _home() / ".mozilla" / "firefox"
    if system == "macos":
        return _app_support() / "Firefox" / "Profiles"
    if system == "windows":
        return _appdata() / "Mozilla" / "Firefox" / "Profiles"
    return None


def vscode_extensions_dir() -> Path:
    """``~/.vscode/extensions`` on every platform."""
    return _home() / ".vscode" / "extensions"
