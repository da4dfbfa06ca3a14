"""Build many independent prisms in parallel.

Each build owns its own data, so requests can be handed to worker
threads without any locking.  Results come back in request order.
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Iterable, List, Optional

from polyextrude.config import DEFAULT_CONFIG, PrismConfig
from polyextrude.errors import PolyExtrudeError
from polyextrude.prism import Prism, PrismRequest, build_prism

logger = logging.getLogger(__name__)


def build_prisms(requests: Iterable[PrismRequest],
                 config: Optional[PrismConfig] = None,
                 *,
                 max_workers: Optional[int] = None,
                 skip_failures: bool = False) -> List[Optional[Prism]]:
    """Build every request and return the prisms in the same order.

    With ``skip_failures`` a request that fails with a
    :class:`~polyextrude.errors.PolyExtrudeError` yields ``None`` in its
    slot; otherwise the first failure (in request order) is raised.
    ``max_workers`` defaults to ``config.max_workers``, then to the
    executor's own default.
    """

    cfg = config or DEFAULT_CONFIG
    reqs = list(requests)
    workers = max_workers if max_workers is not None else cfg.max_workers
    results: List[Optional[Prism]] = [None] * len(reqs)
    if not reqs:
        return results

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(build_prism, req, cfg): idx
                   for idx, req in enumerate(reqs)}
        errors = {}
        for future in concurrent.futures.as_completed(futures):
            idx = futures[future]
            try:
                results[idx] = future.result()
            except PolyExtrudeError as exc:
                errors[idx] = exc

    if errors:
        if not skip_failures:
            raise errors[min(errors)]
        logger.warning('skipped %d of %d requests: %s', len(errors), len(reqs),
                       ', '.join(repr(reqs[i].name) for i in sorted(errors)))
    return results


__all__ = ['build_prisms']
