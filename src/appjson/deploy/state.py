"""Document states and staging outcomes.

Call sites match on these instead of probing files:

    match documents.state(app, token):
        case Pending(path=path, missing=False):
            ...  # staged, waiting for commit
        case Pending(missing=True):
            ...  # this attempt shipped no document
        case Committed(content=content):
            ...
        case Absent():
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class Committed:
    """The canonical document exists and is visible to lifecycle scripts."""

    path: Path
    content: str


@dataclass(frozen=True, slots=True)
class Absent:
    """No committed document (never staged, or removed by a later attempt)."""


@dataclass(frozen=True, slots=True)
class Pending:
    """Staged by an attempt and not yet promoted.

    ``missing`` is True when the attempt recorded a missing marker rather
    than a document.
    """

    path: Path
    missing: bool = False


DocumentState: TypeAlias = Committed | Absent | Pending


@dataclass(frozen=True, slots=True)
class Staged:
    """Stage outcome: the document was copied into the attempt slot."""

    path: Path


@dataclass(frozen=True, slots=True)
class Missing:
    """Stage outcome: no document for this attempt; the marker was written."""

    marker: Path


StageOutcome: TypeAlias = Staged | Missing


@dataclass(frozen=True, slots=True)
class Promoted:
    """Commit outcome: the staged document replaced the canonical one."""

    path: Path


@dataclass(frozen=True, slots=True)
class Discarded:
    """Commit outcome: the attempt shipped no document; canonical removed."""

    removed_canonical: bool


@dataclass(frozen=True, slots=True)
class Unchanged:
    """Commit outcome: nothing staged for this attempt."""


CommitOutcome: TypeAlias = Promoted | Discarded | Unchanged
