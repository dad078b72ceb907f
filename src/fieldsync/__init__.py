"""fieldsync: keep inline document fields and the structured header in sync."""

from ._version import __version__

__all__ = [
    "__version__",
    "cli",
    "config",
    "fields",
    "host",
    "settings",
    "sync",
    "utils",
]
