"""Persisted cookie jars.

Two backends share one protocol:
- FileCredentialStore: ``<cookies_dir>/<name>.json``, a pretty-printed list of
  cookie entries (the layout survives process restarts and is hand-editable)
- RedisCredentialStore: ``cookies:session:<name>`` → SessionCredential JSON
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from harvester.config.settings import StorageSettings
from harvester.errors import CredentialStoreError
from harvester.models.cookies import CookieEntry, SessionCredential

logger = logging.getLogger(__name__)

_COOKIE_LIST = TypeAdapter(list[CookieEntry])


class CredentialStore(Protocol):
    async def exists(self, name: str) -> bool: ...

    async def load(self, name: str) -> SessionCredential | None: ...

    async def save(self, credential: SessionCredential) -> None: ...

    async def delete(self, name: str) -> None: ...


class FileCredentialStore:
    """One JSON file per session name."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        return self.directory / f"{name}.json"

    async def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    async def load(self, name: str) -> SessionCredential | None:
        path = self._path(name)
        if not path.is_file():
            logger.info("No saved cookies found at %s", path)
            return None
        try:
            cookies = _COOKIE_LIST.validate_json(path.read_bytes())
            saved_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        except (OSError, ValidationError) as e:
            logger.error("Failed to load cookies from %s: %s", path, e)
            return None
        logger.info("Loaded %d cookies from %s", len(cookies), path)
        return SessionCredential(name=name, cookies=cookies, saved_at=saved_at)

    async def save(self, credential: SessionCredential) -> None:
        path = self._path(credential.name)
        payload = [c.model_dump(mode="json", by_alias=True) for c in credential.cookies]
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            raise CredentialStoreError(f"Failed to save cookies to {path}: {e}") from e
        logger.info("Saved %d cookies to %s", len(credential.cookies), path)

    async def delete(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete cookies %s: %s", path, e)
            return
        logger.info("Deleted cookies file: %s", path)


class RedisCredentialStore:
    """Cookie jars kept in Redis (no expiry, persistent until deleted)."""

    KEY_PREFIX = "cookies:session:"

    def __init__(self, redis_client: aioredis.Redis) -> None:
        self._redis = redis_client

    def _key(self, name: str) -> str:
        return f"{self.KEY_PREFIX}{name}"

    async def exists(self, name: str) -> bool:
        try:
            return bool(await self._redis.exists(self._key(name)))
        except RedisError as e:
            raise CredentialStoreError(f"Failed to check cookies in Redis: {e}") from e

    async def load(self, name: str) -> SessionCredential | None:
        try:
            data = await self._redis.get(self._key(name))
        except RedisError as e:
            raise CredentialStoreError(f"Failed to load cookies from Redis: {e}") from e
        if data is None:
            return None
        try:
            return SessionCredential.model_validate_json(data)
        except ValidationError as e:
            logger.error("Corrupt credential under %s: %s", self._key(name), e)
            return None

    async def save(self, credential: SessionCredential) -> None:
        try:
            await self._redis.set(self._key(credential.name), credential.model_dump_json(by_alias=True))
        except RedisError as e:
            raise CredentialStoreError(f"Failed to save cookies to Redis: {e}") from e
        logger.info("Saved %d cookies to %s", len(credential.cookies), self._key(credential.name))

    async def delete(self, name: str) -> None:
        try:
            await self._redis.delete(self._key(name))
        except RedisError as e:
            raise CredentialStoreError(f"Failed to delete cookies from Redis: {e}") from e
        logger.info("Deleted cookies %s", self._key(name))


def build_credential_store(settings: StorageSettings) -> CredentialStore:
    """Pick the configured backend."""
    if settings.credential_backend == "redis":
        return RedisCredentialStore(aioredis.from_url(settings.redis_url, decode_responses=True))
    return FileCredentialStore(settings.cookies_dir)
