"""Session-related data models.

A recording session is an explicit state-tagged value. The controller moves
from one value to the next instead of mutating handle fields in place.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, Optional

DEFAULT_CHUNK_DURATION_MS = 3000


class SessionState(Enum):
    """Lifecycle states of a recording session."""
    IDLE = "idle"
    CAPTURING = "capturing"
    STOPPING = "stopping"


@dataclass(frozen=True)
class ListenOptions:
    """Options accepted by start_listening."""
    continuous: bool = False
    chunk_duration_ms: int = DEFAULT_CHUNK_DURATION_MS

    def __post_init__(self):
        if self.chunk_duration_ms <= 0:
            raise ValueError(f"chunk_duration_ms must be positive, got {self.chunk_duration_ms}")

    @property
    def interval_seconds(self) -> float:
        return self.chunk_duration_ms / 1000.0


@dataclass(frozen=True)
class IdleState:
    """No session is active."""
    state: SessionState = SessionState.IDLE


@dataclass(frozen=True)
class CapturingState:
    """Microphone and encoder are live; the flush timer runs in continuous mode."""
    session_id: str
    options: ListenOptions
    on_result: Callable
    capture: Any
    encoder: Any
    buffer: Any
    flush_queue: asyncio.Queue
    worker_task: asyncio.Task
    flush_counter: Iterator[int]
    timer_task: Optional[asyncio.Task] = None
    state: SessionState = SessionState.CAPTURING


@dataclass(frozen=True)
class StoppingState:
    """Capture has been released; the terminal flush is being handed off."""
    session_id: str
    options: ListenOptions
    on_result: Callable
    buffer: Any
    encoder: Any
    flush_queue: asyncio.Queue
    worker_task: asyncio.Task
    flush_counter: Iterator[int]
    state: SessionState = SessionState.STOPPING
