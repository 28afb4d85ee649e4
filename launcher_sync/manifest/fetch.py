"""
Remote manifest fetching for Launcher Sync.
"""

import logging
from typing import Optional, Tuple

import requests

from ..core.errors import FormatError, NetworkError
from .manifest import Manifest

logger = logging.getLogger(__name__)


def check_server_connection(url: str, timeout: float = 3.0) -> Tuple[bool, Optional[str]]:
    """Check if we can reach the server. Returns (is_online, error_message)."""
    try:
        requests.head(url, timeout=timeout)
        return True, None
    except requests.ConnectionError:
        return False, "No internet connection"
    except requests.Timeout:
        return False, "Connection timed out"
    except requests.RequestException as e:
        return False, f"Network error: {e}"


def fetch_manifest(url: str, timeout: float = 30.0) -> Manifest:
    """
    Fetch and parse the remote manifest.

    Raises:
        NetworkError: request failed or returned a non-success status
        FormatError: body is not a valid manifest document
    """
    logger.info("Fetching remote manifest from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.HTTPError as e:
        raise NetworkError(f"Manifest request failed (HTTP {e.response.status_code}): {url}") from e
    except requests.Timeout as e:
        raise NetworkError(f"Manifest request timed out: {url}") from e
    except requests.RequestException as e:
        raise NetworkError(f"Manifest request failed: {url} - {e}") from e

    try:
        data = response.json()
    except ValueError as e:
        raise FormatError(f"Manifest at {url} is not valid JSON: {e}") from e

    manifest = Manifest.from_dict(data)
    logger.info("Remote manifest parsed, %d files found", len(manifest))
    return manifest
