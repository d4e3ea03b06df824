"""Log records, node descriptions and the sources the REST API reads from."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

DEFAULT_BUFFER_SIZE = 2000


class LogLevel(IntEnum):
    """Severity levels of log records."""

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50


def level_to_string(level: Union[int, LogLevel]) -> str:
    """Name of a severity level, ``"UNKNOWN"`` for values outside the scale."""
    try:
        return LogLevel(level).name
    except ValueError:
        return "UNKNOWN"


@dataclass(frozen=True)
class LogRecord:
    """One log message as emitted by a node."""

    name: str
    msg: str
    level: int = LogLevel.INFO
    sec: int = 0
    nanosec: int = 0
    file: str = ""
    function: str = ""
    line: int = 0


@dataclass
class NodeInfo:
    """A node and the topics and services it takes part in."""

    full_name: str
    publishers: dict[str, list[str]] = field(default_factory=dict)
    subscribers: dict[str, list[str]] = field(default_factory=dict)
    services: dict[str, list[str]] = field(default_factory=dict)


def _bare(name: str) -> str:
    return name[1:] if name.startswith("/") else name


class LogSource(ABC):
    """Where the REST API gets nodes, logs, topics and services from."""

    @abstractmethod
    def get_nodes(self) -> list[NodeInfo]:
        """All known nodes."""

    @abstractmethod
    def get_filtered_logs(self, names: Iterable[str]) -> list[LogRecord]:
        """Buffered records emitted by any of the named nodes."""

    @abstractmethod
    def get_pending_logs(self) -> list[LogRecord]:
        """All buffered records, oldest first."""

    @abstractmethod
    def get_topics(self) -> dict[str, list[str]]:
        """Topic name mapped to the nodes publishing or subscribing to it."""

    @abstractmethod
    def get_services(self) -> dict[str, list[str]]:
        """Service name mapped to the nodes providing it."""

    def update_graph(self) -> list[NodeInfo]:
        """Refresh node information and return the current nodes."""
        return self.get_nodes()


class MemoryLogSource(LogSource):
    """Thread-safe in-memory source with a bounded log buffer."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self._lock = threading.Lock()
        self._nodes: dict[str, NodeInfo] = {}
        self._logs: deque[LogRecord] = deque(maxlen=buffer_size)

    def add_node(self, node: NodeInfo) -> None:
        """Register *node*, replacing any node with the same full name."""
        with self._lock:
            self._nodes[node.full_name] = node

    def add_log(self, record: LogRecord) -> None:
        """Append *record*, dropping the oldest one when the buffer is full."""
        with self._lock:
            self._logs.append(record)

    def get_nodes(self) -> list[NodeInfo]:
        with self._lock:
            return list(self._nodes.values())

    def get_filtered_logs(self, names: Iterable[str]) -> list[LogRecord]:
        wanted = {_bare(name) for name in names}
        with self._lock:
            return [record for record in self._logs if _bare(record.name) in wanted]

    def get_pending_logs(self) -> list[LogRecord]:
        with self._lock:
            return list(self._logs)

    def _collect(self, attribute: str, *more: str) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for node in self.get_nodes():
            for attr in (attribute, *more):
                for name in getattr(node, attr):
                    holders = result.setdefault(name, [])
                    if node.full_name not in holders:
                        holders.append(node.full_name)
        return result

    def get_topics(self) -> dict[str, list[str]]:
        return self._collect("publishers", "subscribers")

    def get_services(self) -> dict[str, list[str]]:
        return self._collect("services")