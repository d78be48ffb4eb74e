"""Aggregation of scope records by tag.

Both helpers consume a whole stream in one pass and close it before
returning, whether the pass completed or failed. Any stream error aborts the
aggregation; no partial result is returned.

Functions
---------
select_by_tag
    Group records whose tag is in a wanted set.
count_by_tag
    Count records per tag.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Iterable

from scope_perf.capture.stream import ScopeStream, open_stream
from scope_perf.data.models import ScopeRecord

logger = logging.getLogger(__name__)

StreamSource = ScopeStream | str | Path


def _as_stream(source: StreamSource) -> ScopeStream:
    if isinstance(source, ScopeStream):
        return source
    return open_stream(source)


def select_by_tag(source: StreamSource, wanted_tags: str | Iterable[str]) -> dict[str, list[ScopeRecord]]:
    """Return records grouped by tag, keeping only ``wanted_tags``.

    Parameters
    ----------
    source : ScopeStream or path
        An open stream (owned and closed by this call) or a capture path.
    wanted_tags : str or iterable of str
        Tags to retain. A bare string is one tag, not a set of characters.

    Returns
    -------
    dict[str, list[ScopeRecord]]
        Records per tag in stream order. Tags that never appear have no key;
        check membership rather than length.
    """

    wanted = {wanted_tags} if isinstance(wanted_tags, str) else set(wanted_tags)
    groups: dict[str, list[ScopeRecord]] = {}
    with _as_stream(source) as stream:
        for record in stream:
            if record.tag in wanted:
                groups.setdefault(record.tag, []).append(record)
        logger.debug("Selected %d tags from %d records in %s", len(groups), stream.records_read, stream.name)
    return groups


def count_by_tag(source: StreamSource) -> dict[str, int]:
    """Return the number of records per tag observed in ``source``."""

    counts: dict[str, int] = defaultdict(int)
    with _as_stream(source) as stream:
        for record in stream:
            counts[record.tag] += 1
    return dict(counts)

