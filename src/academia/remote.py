"""
jsonbin.io document client.

GET fetches the latest version of the bin, PUT overwrites it wholesale.
Authentication is the static master key sent in the X-Master-Key header.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from academia.config import JsonBinSettings
from academia.errors import RemoteStoreError

logger = logging.getLogger(__name__)


class JsonBinClient:
    """HTTP client for one jsonbin.io bin holding the organizer document."""

    def __init__(
        self,
        api_key: Optional[str],
        bin_id: Optional[str],
        base_url: str = "https://api.jsonbin.io/v3",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            api_key: Master key for the bin; None disables the client
            bin_id: Bin identifier; None disables the client
            base_url: API root
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (tests pass one with a mock transport)
        """
        self.api_key = api_key
        self.bin_id = bin_id
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: JsonBinSettings) -> "JsonBinClient":
        if not settings.is_configured:
            return cls(api_key=None, bin_id=None, base_url=settings.base_url, timeout=settings.timeout)
        return cls(
            api_key=settings.api_key.get_secret_value(),
            bin_id=settings.bin_id,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.bin_id)

    def close(self) -> None:
        self.client.close()

    def fetch_latest(self) -> Optional[Dict[str, Any]]:
        """
        Fetch the latest stored document.

        Returns:
            The stored mapping, or None when the bin does not exist

        Raises:
            RemoteStoreError: On any other HTTP or network failure
        """
        url = f"{self.base_url}/b/{self.bin_id}/latest"
        try:
            response = self.client.get(url, headers={"X-Master-Key": self.api_key})
            if response.status_code == 404:
                logger.info("Bin %s not found", self.bin_id)
                return None
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(f"Failed to fetch bin {self.bin_id}: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise RemoteStoreError(f"Failed to fetch bin {self.bin_id}: {e}") from e

        if not isinstance(payload, dict):
            raise RemoteStoreError(f"Unexpected payload from bin {self.bin_id}")
        return payload.get("record")

    def save(self, document: Dict[str, Any]) -> None:
        """
        Overwrite the bin with document. No version check: last write wins.

        Raises:
            RemoteStoreError: On any HTTP or network failure
        """
        url = f"{self.base_url}/b/{self.bin_id}"
        try:
            response = self.client.put(
                url,
                json=document,
                headers={"X-Master-Key": self.api_key},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(f"Failed to save bin {self.bin_id}: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"Failed to save bin {self.bin_id}: {e}") from e
        logger.debug("Saved bin %s", self.bin_id)
