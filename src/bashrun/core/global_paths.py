"""Per-user directory paths for bashrun.

Config and log locations follow the platform conventions from platformdirs.
``BASHRUN_TEST_HOME`` relocates everything under one root so tests never
touch the real user directories.
"""

import os
from pathlib import Path
from platformdirs import user_config_dir, user_data_dir

APP_NAME = "bashrun"


class GlobalPath:
    """Global path management for bashrun directories."""

    @classmethod
    def data(cls) -> str:
        """Application data directory."""
        override = os.environ.get("BASHRUN_TEST_HOME")
        if override:
            return str(Path(override) / "data")
        return user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.data()) / "log")

    @classmethod
    def config(cls) -> str:
        """Configuration directory."""
        override = os.environ.get("BASHRUN_TEST_HOME")
        if override:
            return str(Path(override) / "config")
        return user_config_dir(APP_NAME)
