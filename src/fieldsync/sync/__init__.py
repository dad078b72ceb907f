"""Orchestration around the field engine: profiles, snapshots, queue, synchronizer."""
from __future__ import annotations

from .interfaces import FieldSource, HeaderStore, QueryEvaluator
from .orchestrator import SyncReport, SyncStatus, Synchronizer
from .profiles import SyncProfiles, build_profiles
from .queries import QuerySubstituter, contains_query
from .queue import DocumentQueue
from .snapshots import JsonSnapshotStore, SnapshotStore

__all__ = [
    "DocumentQueue",
    "FieldSource",
    "HeaderStore",
    "JsonSnapshotStore",
    "QueryEvaluator",
    "QuerySubstituter",
    "SnapshotStore",
    "SyncProfiles",
    "SyncReport",
    "SyncStatus",
    "Synchronizer",
    "build_profiles",
    "contains_query",
]
