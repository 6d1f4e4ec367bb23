"""Utility modules.

``bashrun.util.error`` depends on the config and shell packages, so it is
imported directly rather than re-exported here.
"""

from .log import Log

__all__ = ["Log"]
