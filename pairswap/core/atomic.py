"""
All-or-nothing execution across the engine and its collaborators.

`atomic(...)` snapshots every participant that supports `snapshot()` /
`restore()` before the body runs, and restores all of them if the body
raises. Participants without snapshot support are left alone; their adapters
must then provide their own transactional guarantees.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from .ports import Transactional

logger = logging.getLogger(__name__)


@contextmanager
def atomic(*participants: Any) -> Iterator[None]:
    saved: list[tuple[Transactional, Any]] = []
    seen: set[int] = set()
    for p in participants:
        if id(p) in seen or not isinstance(p, Transactional):
            continue
        seen.add(id(p))
        saved.append((p, p.snapshot()))

    try:
        yield
    except BaseException as exc:
        # Restore in reverse order of capture.
        for p, snap in reversed(saved):
            p.restore(snap)
        logger.debug("rolled back %d participant(s) after %s", len(saved), type(exc).__name__)
        raise
