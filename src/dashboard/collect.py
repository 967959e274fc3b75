# ABOUTME: Joins the five raw collections fetched concurrently by injected fetchers.
# ABOUTME: All-or-nothing: any failed fetch aborts the report, except audit data which may fall back.

"""
Fetchers are zero-argument coroutines supplied by the transport layer. They
carry their own credentials (for example a closure over a token provider);
nothing in this module reads or stores a credential.

    sources = {
        "user": lambda: client.query(USER_QUERY),
        "xp_transactions": lambda: client.query(XP_QUERY),
        ...
    }
    report = build_dashboard_report_sync(sources, audit_fallbacks=[lambda: client.query(AUDIT_SUMS_QUERY)])
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from src.common.errors import CollectionFetchError, IncompleteInputError
from src.common.normalization import normalize_payload
from src.common.schemas import Report
from src.common.settings import DashboardConfig

from .report import REQUIRED_COLLECTIONS, build_report

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
AUDIT_COLLECTION = "audit_input"


def static_source(value: Any) -> Fetcher:
    """Wrap already-loaded data as a fetcher."""

    async def _fetch() -> Any:
        return value

    return _fetch


async def collect_collections(
    sources: Mapping[str, Fetcher],
    audit_fallbacks: Sequence[Fetcher] = (),
) -> Dict[str, Any]:
    """
    Run every fetcher concurrently and wait for all of them.

    Raises IncompleteInputError when a collection has no fetcher and
    CollectionFetchError when a fetch fails. Failures are reported in
    collection order regardless of completion order.
    """

    for name in REQUIRED_COLLECTIONS:
        if sources.get(name) is None and not (name == AUDIT_COLLECTION and audit_fallbacks):
            raise IncompleteInputError(name)

    results = await asyncio.gather(
        *(
            _fetch_collection(name, sources.get(name), audit_fallbacks if name == AUDIT_COLLECTION else ())
            for name in REQUIRED_COLLECTIONS
        ),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return dict(zip(REQUIRED_COLLECTIONS, results))


def collect_collections_sync(
    sources: Mapping[str, Fetcher],
    audit_fallbacks: Sequence[Fetcher] = (),
) -> Dict[str, Any]:
    """Synchronous wrapper for collect_collections."""
    return asyncio.run(collect_collections(sources, audit_fallbacks))


async def build_dashboard_report(
    sources: Mapping[str, Fetcher],
    audit_fallbacks: Sequence[Fetcher] = (),
    config: Optional[DashboardConfig] = None,
    on_error: str = "skip",
) -> Report:
    """Fetch, normalize and aggregate in one step."""

    raw = await collect_collections(sources, audit_fallbacks)
    inputs = normalize_payload(raw, config=config, on_error=on_error)
    return build_report(inputs, config)


def build_dashboard_report_sync(
    sources: Mapping[str, Fetcher],
    audit_fallbacks: Sequence[Fetcher] = (),
    config: Optional[DashboardConfig] = None,
    on_error: str = "skip",
) -> Report:
    """Synchronous wrapper for build_dashboard_report."""
    return asyncio.run(build_dashboard_report(sources, audit_fallbacks, config, on_error))


async def _fetch_collection(name: str, fetcher: Optional[Fetcher], fallbacks: Sequence[Fetcher]) -> Any:
    candidates: List[Fetcher] = [f for f in (fetcher, *fallbacks) if f is not None]
    last_error: Optional[Exception] = None

    for attempt, candidate in enumerate(candidates):
        try:
            value = await candidate()
        except Exception as exc:
            last_error = exc
            if attempt + 1 < len(candidates):
                logger.warning("Fetch for '%s' failed (%s); trying fallback %d", name, exc, attempt + 1)
            continue
        if value is None and attempt + 1 < len(candidates):
            logger.info("Fetch for '%s' returned nothing; trying fallback %d", name, attempt + 1)
            continue
        return value

    raise CollectionFetchError(name, last_error) from last_error
