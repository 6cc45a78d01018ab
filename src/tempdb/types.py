"""Shared types for the tempdb package."""

from enum import Enum
from typing import Any

Params = tuple | list | dict
Connection = Any


class ProcessState(str, Enum):
    CREATED = "created"
    INITIALIZING = "initializing"
    STARTING = "starting"
    AWAITING_READY = "awaiting_ready"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"
