"""Runtime settings for the command-line frontend.

The core takes everything through constructor arguments; this is only the
glue that turns parsed CLI options into those arguments.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gemini_keystore.core.paths import APP_DIR_NAME, PathResolver


@dataclass
class Settings:
    config_root: Optional[Path] = None
    app_dir: str = APP_DIR_NAME
    log_level: int = logging.WARNING

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Settings":
        root = getattr(args, "config_dir", None)
        verbose = getattr(args, "verbose", 0) or 0
        if verbose >= 2:
            level = logging.DEBUG
        elif verbose == 1:
            level = logging.INFO
        else:
            level = logging.WARNING
        return cls(config_root=Path(root).expanduser() if root else None, log_level=level)

    def path_resolver(self) -> PathResolver:
        return PathResolver(config_root=self.config_root, app_dir=self.app_dir)
