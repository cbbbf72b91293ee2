"""Loading of protocol documents and experimental inclusion lists.

Protocol descriptions come from local JSON files (``js_protocol.json``,
``browser_protocol.json``) or from a URL. Every failure is reported as a
:class:`ProtocolLoadError` so the CLI can print one message and exit.
"""

import json
from pathlib import Path
from typing import Any, FrozenSet
from urllib.parse import urlparse

import requests

from .logging_config import get_logger

logger = get_logger(__name__)


class ProtocolLoadError(Exception):
    """Raised when a protocol document or inclusion list cannot be read."""

    pass


def _check_document(data: Any, source: str) -> Any:
    # A protocol document is a domain object, {"domains": [...]} or a list
    if not isinstance(data, (dict, list)):
        raise ProtocolLoadError(
            f"{source}: expected a JSON object or array, got {type(data).__name__}"
        )
    return data


def load_protocol_file(file_path: str | Path) -> tuple[str, Any]:
    """Read a protocol document from disk.

    Args:
        file_path: Path to the protocol JSON.

    Returns:
        Tuple of (file name for the header banner, parsed document).

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ProtocolLoadError: If the file is unreadable or not a JSON document.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Protocol file not found: {path}")

    logger.debug("Reading protocol from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProtocolLoadError(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolLoadError(
            f"Invalid JSON in {path} (line {e.lineno}, column {e.colno}): {e.msg}"
        ) from e

    logger.info("Loaded protocol document %s", path.name)
    return path.name, _check_document(data, path.name)


def fetch_protocol(url: str, timeout: float = 30) -> tuple[str, Any]:
    """Download a protocol document.

    Args:
        url: ``http`` or ``https`` URL of the protocol JSON.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (URL, parsed document).

    Raises:
        ProtocolLoadError: On a bad URL, a failed request or a non-JSON body.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ProtocolLoadError(f"Invalid URL: {url}")

    logger.debug("Fetching protocol from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout as e:
        raise ProtocolLoadError(f"Request timeout for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        raise ProtocolLoadError(
            f"HTTP error {e.response.status_code} for URL: {url}"
        ) from e
    except requests.exceptions.RequestException as e:
        raise ProtocolLoadError(f"Request to {url} failed: {e}") from e
    except ValueError as e:
        # Undecodable bodies surface as a ValueError subclass
        raise ProtocolLoadError(f"Invalid JSON response from {url}: {e}") from e

    logger.info("Fetched protocol document %s", url)
    return url, _check_document(data, url)


def load_protocol(
    file_path: str | Path | None = None,
    url: str | None = None,
    timeout: float = 30,
) -> tuple[str, Any]:
    """Load one protocol document from exactly one of a file or a URL.

    Raises:
        ProtocolLoadError: If neither or both sources are given, or loading fails.
        FileNotFoundError: If the file doesn't exist.
    """
    if (file_path is None) == (url is None):
        raise ProtocolLoadError("Give exactly one of file_path or url")

    if file_path is not None:
        return load_protocol_file(file_path)
    return fetch_protocol(url, timeout)


def load_include_experimental(file_path: str | Path) -> FrozenSet[str]:
    """Read names exempt from experimental filtering.

    One entry per line: ``Domain``, ``Domain.name`` or ``Domain.name.param``.
    Blank lines and ``#`` comments are skipped.

    Raises:
        ProtocolLoadError: If the file cannot be read.
    """
    path = Path(file_path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ProtocolLoadError(f"Cannot read inclusion list {path}: {e}") from e

    names = frozenset(
        entry
        for entry in (line.split("#", 1)[0].strip() for line in lines)
        if entry
    )
    logger.info("Loaded %d experimental inclusions from %s", len(names), path)
    return names
