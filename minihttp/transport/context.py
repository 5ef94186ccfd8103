"""Context object shared across worker threads."""

from dataclasses import dataclass, field
from pathlib import Path

from minihttp.bootstrap.config import ServerConfig


@dataclass
class WorkerContext:
    """Read-only dependencies every connection task needs."""

    directory: Path
    config: ServerConfig = field(default_factory=ServerConfig)
