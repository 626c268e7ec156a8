# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Concurrent execution of the read queries behind one render.

A dashboard or report render issues a small batch of independent, read-only
queries. ``fetch_all()`` runs them on a thread pool, waits for all of them,
and returns their rows by name.

A query that raises, or does not finish before the deadline, contributes an
empty list and a warning in the log: the render goes on with partial data
rather than failing. A query returning ``None`` also yields an empty list.
"""

import logging
import time
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Optional

logger = logging.getLogger(__name__)

Query = Callable[[], Optional[list[Any]]]


def fetch_all(
    queries: Mapping[str, Query],
    *,
    max_workers: int = 5,
    timeout: Optional[float] = None,
) -> dict[str, list[Any]]:
    """
    Run named zero-argument queries concurrently and join on all of them.

    Parameters
    ----------
    queries :
        Mapping of result name to a callable returning a list of rows.
    max_workers :
        Upper bound on the number of worker threads.
    timeout :
        Overall deadline in seconds for the batch. ``None`` waits forever.

    Returns
    -------
    dict[str, list]
        One entry per query name, in the order of ``queries``. Failed or
        timed-out queries map to ``[]``.
    """
    if not queries:
        return {}

    results: dict[str, list[Any]] = {}
    workers = max(1, min(max_workers, len(queries)))
    deadline = None if timeout is None else time.monotonic() + timeout

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="smb-fetch")
    try:
        futures = {name: executor.submit(query) for name, query in queries.items()}
        for name, future in futures.items():
            remaining = None
            if deadline is not None:
                remaining = max(0.0, deadline - time.monotonic())
            try:
                rows = future.result(timeout=remaining)
            except FutureTimeout:
                future.cancel()
                logger.warning("Query %r timed out; using no rows.", name)
                rows = None
            except Exception as exc:  # noqa: BLE001
                logger.warning("Query %r failed (%s); using no rows.", name, exc)
                rows = None
            results[name] = list(rows) if rows else []
    finally:
        # Do not block the render on queries that overran the deadline.
        executor.shutdown(wait=False, cancel_futures=True)

    logger.debug(
        "Fetched %s",
        ", ".join(f"{name}={len(rows)}" for name, rows in results.items()),
    )
    return results
