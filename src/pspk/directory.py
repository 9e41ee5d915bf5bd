"""
pspk - Public key directory clients.

The directory is an untrusted bulletin board mapping string names to
byte values. Anyone may publish under any name; the last write wins and
nothing is ever versioned or deleted.

Two implementations:
- MemoryDirectory: a dict, for tests and local experiments
- HttpDirectory: the pspk HTTP service, through aiohttp
"""

import asyncio
import base64
import binascii
import logging
from typing import Dict, Optional, Protocol, runtime_checkable

import aiohttp

from .constants import DEFAULT_BASE_URL, DIRECTORY_TIMEOUT
from .errors import DirectoryError, DirectoryNotFoundError, ErrorCode

logger = logging.getLogger(__name__)


@runtime_checkable
class Directory(Protocol):
    """Publish and load named public byte blobs."""

    def publish(self, name: str, value: bytes) -> None:
        ...

    def load(self, name: str) -> bytes:
        """Raises DirectoryNotFoundError if nothing is published under name."""
        ...


class MemoryDirectory:
    """In-process directory with the same last-write-wins semantics."""

    def __init__(self, entries: Optional[Dict[str, bytes]] = None):
        self.entries: Dict[str, bytes] = dict(entries or {})

    def publish(self, name: str, value: bytes) -> None:
        self.entries[name] = bytes(value)
        logger.debug(f"Published {len(value)} bytes under '{name}'")

    def load(self, name: str) -> bytes:
        try:
            return self.entries[name]
        except KeyError:
            raise DirectoryNotFoundError(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)


class HttpDirectory:
    """
    Client for the pspk HTTP directory.

    Wire format:
        POST {base_url}/          {"name": <name>, "key": <base64 value>}
        GET  {base_url}/?name=..  -> {"key": <base64 value>}

    Each call is a blocking request with a total timeout and no retries.
    The synchronous methods drive the async ones with asyncio.run().
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DIRECTORY_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout)

    async def publish_async(self, name: str, value: bytes) -> None:
        payload = {"name": name, "key": base64.b64encode(value).decode("ascii")}
        url = f"{self.base_url}/"
        try:
            async with aiohttp.ClientSession(timeout=self._client_timeout()) as session:
                async with session.post(url, json=payload) as response:
                    if response.status >= 400:
                        body = await response.text()
                        raise DirectoryError(
                            ErrorCode.E202_PUBLISH_FAILED,
                            f"Publishing '{name}' failed with HTTP {response.status}",
                            {"name": name, "status": response.status, "body": body[:200]},
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Network error publishing '{name}' to {url}: {e}")
            raise DirectoryError(
                ErrorCode.E202_PUBLISH_FAILED,
                f"Network error publishing '{name}': {e}",
                {"name": name, "url": url},
            ) from e
        logger.info(f"Published '{name}' to {self.base_url}")

    async def load_async(self, name: str) -> bytes:
        url = f"{self.base_url}/"
        try:
            async with aiohttp.ClientSession(timeout=self._client_timeout()) as session:
                async with session.get(url, params={"name": name}) as response:
                    if response.status == 404:
                        raise DirectoryNotFoundError(name)
                    if response.status >= 400:
                        raise DirectoryError(
                            ErrorCode.E203_LOAD_FAILED,
                            f"Loading '{name}' failed with HTTP {response.status}",
                            {"name": name, "status": response.status},
                        )
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Network error loading '{name}' from {url}: {e}")
            raise DirectoryError(
                ErrorCode.E203_LOAD_FAILED,
                f"Network error loading '{name}': {e}",
                {"name": name, "url": url},
            ) from e
        except ValueError as e:
            logger.warning(f"Non-JSON response loading '{name}' from {url}: {e}")
            raise DirectoryError(
                ErrorCode.E203_LOAD_FAILED,
                f"Directory returned a non-JSON response for '{name}'",
                {"name": name, "url": url},
            ) from e

        return self._decode_entry(name, data)

    @staticmethod
    def _decode_entry(name: str, data) -> bytes:
        encoded = data.get("key") if isinstance(data, dict) else None
        if not encoded:
            raise DirectoryNotFoundError(name)
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DirectoryError(
                ErrorCode.E203_LOAD_FAILED,
                f"Directory returned malformed value for '{name}'",
                {"name": name},
            ) from e

    def publish(self, name: str, value: bytes) -> None:
        asyncio.run(self.publish_async(name, value))

    def load(self, name: str) -> bytes:
        value = asyncio.run(self.load_async(name))
        logger.debug(f"Loaded {len(value)} bytes for '{name}'")
        return value
