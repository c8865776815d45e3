from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx
from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from techtask_radar.errors import PersistenceError
from techtask_radar.models import Blob

NETLIFY_API_BASE = "https://api.netlify.com/api/v1/blobs"
REQUEST_TIMEOUT = 15  # seconds


class BlobStore(ABC):
    """A namespaced key/value store holding opaque byte blobs."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under ``key``, or None if there is none."""
        ...

    @abstractmethod
    def set(self, key: str, data: bytes) -> None:
        ...


class NetlifyBlobStore(BlobStore):
    """Site-wide Netlify Blobs store accessed through the REST API."""

    def __init__(
        self,
        site_id: str,
        token: str,
        store_name: str,
        client: Optional[httpx.Client] = None,
    ):
        self.site_id = site_id
        self.token = token
        self.store_name = store_name
        self.client = client

    def _url(self, key: str) -> str:
        return f"{NETLIFY_API_BASE}/{self.site_id}/site:{self.store_name}/{key}"

    def _request(self, method: str, key: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"}
        if self.client is not None:
            return self.client.request(method, self._url(key), headers=headers, **kwargs)
        with httpx.Client(timeout=REQUEST_TIMEOUT) as client:
            return client.request(method, self._url(key), headers=headers, **kwargs)

    def get(self, key: str) -> Optional[bytes]:
        try:
            response = self._request("GET", key)
            if response.status_code == 404:
                logger.info(f"No blob {self.store_name}/{key} yet")
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"Netlify Blobs read failed: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise PersistenceError(f"Netlify Blobs read failed: {e}") from e
        return response.content

    def set(self, key: str, data: bytes) -> None:
        try:
            response = self._request("PUT", key, content=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"Netlify Blobs write failed: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise PersistenceError(f"Netlify Blobs write failed: {e}") from e
        logger.debug(f"Stored {len(data)} bytes at {self.store_name}/{key}")


class DatabaseBlobStore(BlobStore):
    """Blobs kept in the local ``blobs`` table, one row per namespace/key."""

    def __init__(self, engine: Engine, namespace: str):
        self.engine = engine
        self.namespace = namespace

    def get(self, key: str) -> Optional[bytes]:
        with Session(self.engine) as session:
            blob = (
                session.query(Blob)
                .filter_by(namespace=self.namespace, key=key)
                .first()
            )
            return blob.value if blob else None

    def set(self, key: str, data: bytes) -> None:
        with Session(self.engine) as session:
            blob = (
                session.query(Blob)
                .filter_by(namespace=self.namespace, key=key)
                .first()
            )
            if blob:
                blob.value = data
            else:
                session.add(Blob(namespace=self.namespace, key=key, value=data))
            session.commit()
