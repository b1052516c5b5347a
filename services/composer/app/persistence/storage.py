"""Blueprint artifact storage (local directory or S3/MinIO)."""
from __future__ import annotations

import hashlib
import json
import os
from typing import Any

import aioboto3
import structlog

from ..config import get_settings

logger = structlog.get_logger(__name__)


class ArtifactStorage:
    """Persist finished blueprints using content-hash identifiers."""

    def __init__(self) -> None:
        self._settings = get_settings().storage

    async def put_json(self, data: dict[str, Any]) -> str:
        """Store JSON data and return content-hash reference."""
        payload = json.dumps(data, sort_keys=True, indent=2).encode("utf-8")
        return await self._put_bytes(payload, suffix=".json")

    async def _put_bytes(self, payload: bytes, suffix: str = "") -> str:
        digest = hashlib.sha256(payload).hexdigest()
        key = f"blueprints/{digest}{suffix}"

        if not self._settings.s3_bucket:
            path = os.path.join(self._settings.artifact_dir, f"{digest}{suffix}")
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            with open(path, "wb") as handle:
                handle.write(payload)
            logger.debug("storage.local_write", path=path, size=len(payload))
            return f"file://{path}"

        session = aioboto3.Session()
        async with session.client(
            "s3",
            endpoint_url=self._settings.s3_endpoint,
            region_name=self._settings.s3_region,
        ) as client:
            await client.put_object(Bucket=self._settings.s3_bucket, Key=key, Body=payload)
        logger.debug("storage.s3_write", bucket=self._settings.s3_bucket, key=key, size=len(payload))
        return f"s3://{self._settings.s3_bucket}/{key}"


__all__ = ["ArtifactStorage"]
