import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


class TimestampKind(enum.Enum):
    """Which file timestamp is compared against the activity threshold."""

    MODIFIED = "modified"
    CREATED = "created"

    @classmethod
    def parse(cls, raw: str) -> "TimestampKind":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            allowed = ", ".join(k.value for k in cls)
            raise ValueError(
                f"Unknown timestamp kind '{raw}' (expected one of: {allowed})"
            ) from None


class ConcurrencyMode(enum.Enum):
    """How the per-subdirectory scans of one cycle are dispatched."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"
    PARALLEL = "parallel"

    @classmethod
    def parse(cls, raw: str) -> "ConcurrencyMode":
        value = raw.strip().lower()
        # Older config files used sync/async.
        value = _MODE_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown concurrency mode '{raw}' (expected one of: {allowed})"
            ) from None


_MODE_ALIASES = {"sync": "sequential", "async": "concurrent"}


@dataclass(frozen=True)
class ScanPolicy:
    """
    Immutable scan settings for one check cycle.

    `threshold_ns` is an absolute instant in nanoseconds since the epoch; a
    file qualifies only when its timestamp is strictly greater. `max_depth`
    counts levels below the scanned directory: its direct children are at
    depth 1, so `max_depth=0` visits nothing and `None` means unlimited.
    """

    threshold_ns: int
    max_depth: Optional[int] = None
    follow_symlinks: bool = False
    timestamp_kind: TimestampKind = TimestampKind.MODIFIED
    latest_subdir_only: bool = False
    batch_mode: bool = False

    def __post_init__(self):
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0 or None, got {self.max_depth}")


@dataclass(frozen=True)
class ScanWarning:
    """A recoverable, per-item problem met while scanning (item was skipped)."""

    path: Path
    message: str


@dataclass
class ScanOutcome:
    """Result of scanning a single subdirectory."""

    has_recent_activity: bool
    warnings: list[ScanWarning] = field(default_factory=list)


@dataclass(frozen=True)
class SubdirectoryEntry:
    """One immediate child directory of the monitored root."""

    name: str
    path: Path
