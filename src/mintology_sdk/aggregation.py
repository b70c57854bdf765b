"""
Aggregated project snapshot with premint and token-total data.

A refresh lists the tenant's projects, then fetches premints and token
totals for every project concurrently and merges them by project id. The
merged snapshot is cached for an hour under a key derived from the tenant
key's fingerprint.

Failure policy:
- a failed premint/token sub-request nulls that field of that project only
- the project listing failing fails the refresh (nothing is cached)
- exceeding the aggregation deadline cancels outstanding sub-requests,
  raises :class:`AggregationTimeoutError` and leaves the cache untouched

Concurrent refreshes for the same tenant share a single in-flight task.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from .client import MintologyClient
from .config import MintologySettings
from .host import CacheBackend
from .logging_config import set_tenant_context
from .models.errors import AggregationTimeoutError, TransportError
from .models.project import AggregatedSnapshot, Project, ProjectEntry
from .models.result import Result

logger = logging.getLogger(__name__)

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
FINGERPRINT_LENGTH = 5
CACHE_KEY_PREFIX = "mintology:projects"

PREMINTS = "premints"
TOKEN = "token"


def base62_encode(hex_value: str) -> str:
    """Encode a hexadecimal string in base62. Zero encodes to ``""``."""
    num = int(hex_value, 16) if hex_value else 0
    digits: List[str] = []
    while num > 0:
        num, remainder = divmod(num, 62)
        digits.append(BASE62_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_tenant_fingerprint(tenant_key: str) -> str:
    """Five base62 characters derived from ``sha256(tenant_key)``.

    Only the first 6 hex digits (24 bits) of the digest are used, so two
    tenants can collide; the cache key is not a security boundary.
    """
    short_hash = hashlib.sha256(tenant_key.encode("utf-8")).hexdigest()[:6]
    encoded = base62_encode(short_hash)
    return encoded.rjust(FINGERPRINT_LENGTH, "0")[:FINGERPRINT_LENGTH]


def snapshot_cache_key(fingerprint: str) -> str:
    return f"{CACHE_KEY_PREFIX}:{fingerprint}"


def _project_rows(payload: Any) -> List[Project]:
    rows = payload.get("data") if isinstance(payload, dict) else payload
    projects: List[Project] = []
    for row in rows or []:
        if not isinstance(row, dict) or row.get("project_id") in (None, ""):
            logger.warning("Skipping project row without project_id")
            continue
        projects.append(Project.model_validate({**row, "project_id": str(row["project_id"])}))
    return projects


class ProjectAggregator:
    """
    Builds and caches :class:`AggregatedSnapshot` values.

    Args:
        client: Mintology client used for the project and sub-data requests
        cache: Keyed TTL cache for snapshots
        settings: Overrides the client's settings (TTL, deadline, concurrency)
    """

    def __init__(
        self,
        client: MintologyClient,
        cache: CacheBackend,
        settings: Optional[MintologySettings] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings or client.settings
        self._inflight: Dict[str, asyncio.Future] = {}

    async def list_projects_with_derived_data(self, force_refresh: bool = False) -> Result[AggregatedSnapshot]:
        """Cached snapshot when fresh, otherwise a refresh."""
        if not force_refresh:
            key = self._client.credentials.resolve_tenant_key()
            if key.is_err:
                return Result.err(key.error)  # type: ignore[arg-type]
            fingerprint = generate_tenant_fingerprint(key.value)  # type: ignore[arg-type]
            cached = await self._cache.get(snapshot_cache_key(fingerprint))
            if cached is not None:
                try:
                    return Result.ok(AggregatedSnapshot.model_validate_json(cached))
                except PydanticValidationError:
                    logger.warning("Discarding unreadable project snapshot for %s", fingerprint)

        return await self.refresh_snapshot()

    async def refresh_snapshot(self) -> Result[AggregatedSnapshot]:
        """Recompute and cache the snapshot.

        Raises:
            AggregationTimeoutError: The refresh exceeded the aggregation deadline
            TransportError: The project listing got no response
        """
        key = self._client.credentials.resolve_tenant_key()
        if key.is_err:
            return Result.err(key.error)  # type: ignore[arg-type]
        fingerprint = generate_tenant_fingerprint(key.value)  # type: ignore[arg-type]

        inflight = self._inflight.get(fingerprint)
        if inflight is None:
            inflight = asyncio.ensure_future(self._refresh(fingerprint))
            self._inflight[fingerprint] = inflight

            def _release(future: asyncio.Future, fp: str = fingerprint) -> None:
                if self._inflight.get(fp) is future:
                    del self._inflight[fp]

            inflight.add_done_callback(_release)
        else:
            logger.debug("Joining in-flight snapshot refresh for %s", fingerprint)

        return await asyncio.shield(inflight)

    async def _refresh(self, fingerprint: str) -> Result[AggregatedSnapshot]:
        set_tenant_context(fingerprint)
        deadline = self._settings.aggregation_deadline
        try:
            result = await asyncio.wait_for(self._collect(fingerprint), timeout=deadline)
        except asyncio.TimeoutError as exc:
            logger.error("Project snapshot refresh exceeded %.1fs deadline", deadline)
            raise AggregationTimeoutError(
                f"Project snapshot refresh exceeded {deadline}s",
                details={"fingerprint": fingerprint},
            ) from exc

        if result.is_ok:
            await self._cache.set(
                snapshot_cache_key(fingerprint),
                result.value.model_dump_json(),  # type: ignore[union-attr]
                ttl=self._settings.snapshot_ttl_seconds,
            )
        return result

    async def _collect(self, fingerprint: str) -> Result[AggregatedSnapshot]:
        listing = await self._client.projects.list()
        if listing.is_err:
            logger.warning("Project listing failed: %s", listing.error)
            return Result.err(listing.error)  # type: ignore[arg-type]

        projects = _project_rows(listing.value)
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def fetch(kind: str, project_id: str) -> Any:
            async with semaphore:
                try:
                    if kind == PREMINTS:
                        result = await self._client.projects.premints(project_id)
                    else:
                        result = await self._client.projects.token_totals(project_id)
                except TransportError as exc:
                    logger.warning("%s request for project %s failed: %s", kind, project_id, exc)
                    return None
            if result.is_err:
                logger.warning("%s request for project %s returned %s", kind, project_id, result.error)
                return None
            return result.value

        # Every sub-request is scheduled before any is awaited.
        tasks: Dict[Tuple[str, str], asyncio.Future] = {}
        for project in projects:
            for kind in (PREMINTS, TOKEN):
                tasks[(kind, project.project_id)] = asyncio.ensure_future(fetch(kind, project.project_id))

        try:
            await asyncio.gather(*tasks.values())
        except BaseException:
            for task in tasks.values():
                task.cancel()
            raise

        entries = [
            ProjectEntry.model_validate(
                {
                    **project.model_dump(),
                    PREMINTS: tasks[(PREMINTS, project.project_id)].result(),
                    TOKEN: tasks[(TOKEN, project.project_id)].result(),
                }
            )
            for project in projects
        ]
        logger.info("Refreshed project snapshot: %d projects, %d sub-requests", len(entries), len(tasks))
        return Result.ok(AggregatedSnapshot(fingerprint=fingerprint, projects=entries))


__all__ = [
    "ProjectAggregator",
    "base62_encode",
    "generate_tenant_fingerprint",
    "snapshot_cache_key",
]
