"""Command line interface for fieldsync."""
from __future__ import annotations

from .main import app, run

__all__ = ["app", "run"]
