"""Loading the configuration schema and the record set.

Both documents are JSON, read either from a local path or over HTTP. The
record set is replaced wholesale on every successful refresh; a failed
refresh keeps the last good records and reports the error.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx

from .exceptions import FetchError
from .logger import get_logger
from .models import Record
from .schemas import ConfigSchema, parse_config_schema

DEFAULT_TIMEOUT = 10.0


def is_url(location: str | Path) -> bool:
    return isinstance(location, str) and location.startswith(("http://", "https://"))


def load_json(
    location: str | Path, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT
) -> Any:
    """Read and decode a JSON document from a path or an http(s) URL.

    Args:
        location: Local file path or http(s) URL
        client: Optional httpx client (a short-lived one is created otherwise)
        timeout: Request timeout in seconds

    Returns:
        The decoded document

    Raises:
        FetchError: If the source is unreachable, answers non-OK, or is not JSON
    """
    if is_url(location):
        url = str(location)
        try:
            if client is not None:
                response = client.get(url, timeout=timeout)
            else:
                with httpx.Client(timeout=timeout) as owned:
                    response = owned.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Failed to load {url}: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to load {url}: {e}") from e
        text = response.text
    else:
        path = Path(location)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FetchError(f"Failed to read {path}: {e}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FetchError(f"Invalid JSON in {location}: {e}") from e


def load_config_schema(
    location: str | Path, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT
) -> ConfigSchema:
    """Fetch and validate the field-configuration schema.

    Raises:
        FetchError: If the document cannot be read
        ConfigError: If the document is not a valid schema
    """
    return parse_config_schema(load_json(location, client=client, timeout=timeout))


def parse_records(data: Any) -> list[Record]:
    """Validate that a decoded data document is a list of objects.

    Raises:
        FetchError: If the document has the wrong shape
    """
    if not isinstance(data, list):
        raise FetchError("Data document must be a JSON array of records")
    records: list[Record] = []
    for index, item in enumerate(data):  # type: ignore[arg-type]
        if not isinstance(item, dict):
            raise FetchError(f"Record {index} is not a JSON object")
        records.append(item)  # type: ignore[arg-type]
    return records


class DataSource:
    """The working record set, refreshed from a fixed location."""

    def __init__(
        self,
        location: str | Path,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.location = location
        self.client = client
        self.timeout = timeout
        self._records: list[Record] = []
        self._loaded = False
        self.error: str | None = None

    @property
    def records(self) -> list[Record]:
        """Last successfully loaded records (empty before the first load)."""
        return self._records

    @property
    def loaded(self) -> bool:
        return self._loaded

    def refresh(self) -> bool:
        """Re-fetch the record set.

        Returns:
            True if the records were replaced; False if the fetch failed and
            the previous records were kept (``error`` holds the reason)
        """
        logger = get_logger(__name__)
        try:
            records = parse_records(
                load_json(self.location, client=self.client, timeout=self.timeout)
            )
        except FetchError as e:
            self.error = str(e)
            logger.error(f"Data refresh failed, keeping {len(self._records)} records: {e}")
            return False

        self._records = records
        self._loaded = True
        self.error = None
        logger.changes(f"Loaded {len(records)} records from {self.location}")
        return True
