"""
Filesystem layout for the key files.

Layout for reference:
==============================
 - <user_config_dir>/
      - gemini-gtk/            (mode 0700)
          - api_key.enc        authenticated container
          - api_key.enc.*.tmp  transient, one per write in progress
          - api_key.txt        legacy plaintext (read-only to us)
==============================
<user_config_dir> mirrors GLib's g_get_user_config_dir() so files written by
the original GTK client are found in the same place.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from .exceptions import ConfigRootMissingError

APP_DIR_NAME = "gemini-gtk"
ENCRYPTED_FILENAME = "api_key.enc"
LEGACY_PLAIN_FILENAME = "api_key.txt"
TEMP_SUFFIX = ".tmp"


def _home() -> Path:
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as e:
        raise ConfigRootMissingError("cannot resolve the user home directory") from e
    if not str(home) or str(home) == ".":
        raise ConfigRootMissingError("cannot resolve the user home directory")
    return home


def user_config_dir() -> Path:
    """Return the per-user configuration directory for this platform."""
    if sys.platform == "win32":
        for var in ("LOCALAPPDATA", "APPDATA"):
            value = os.environ.get(var)
            if value:
                return Path(value)
        return _home() / "AppData" / "Local"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    # relative XDG_CONFIG_HOME values are ignored
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return _home() / ".config"


class PathResolver:
    """Maps the logical key files to absolute paths. Performs no I/O."""

    def __init__(self, config_root: Optional[str | Path] = None, app_dir: str = APP_DIR_NAME):
        self._config_root = Path(config_root).expanduser() if config_root else None
        self._app_dir = app_dir

    def config_root(self) -> Path:
        root = self._config_root if self._config_root is not None else user_config_dir()
        return root.absolute()

    def app_dir(self) -> Path:
        return self.config_root() / self._app_dir

    def encrypted_path(self) -> Path:
        return self.app_dir() / ENCRYPTED_FILENAME

    def legacy_plain_path(self) -> Path:
        return self.app_dir() / LEGACY_PLAIN_FILENAME

    def temp_prefix(self) -> str:
        # temp files live beside the target so the final rename stays on one
        # filesystem; each writer adds its own random part and TEMP_SUFFIX
        return ENCRYPTED_FILENAME + "."
