# -*- coding: utf-8 -*-
"""
Release update check.

Asks the package index for the newest published release of the importer and
logs a banner when it is newer than the running version. Network failures,
timeouts and unexpected payloads are ignored: the check never affects an
import.

Example:
    from graphml_importer.utils.update_check import check_for_update
    check_for_update()
"""
# Standard library
from typing import Optional

# Third-party
import requests

# Local
from graphml_importer import __version__
from graphml_importer.utils.config import PACKAGE_NAME, RELEASE_URL, UPDATE_CHECK_TIMEOUT
from graphml_importer.utils.logger import get_logger
from graphml_importer.utils.version import ServerVersion

logger = get_logger(__name__)


def fetch_latest_version(url: str = RELEASE_URL, timeout: float = UPDATE_CHECK_TIMEOUT) -> Optional[str]:
    """Return the newest release string published on the index, None on any failure."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()["info"]["version"]
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.debug(f"Update check failed: {e}")
        return None


def check_for_update(current: str = __version__, url: str = RELEASE_URL) -> Optional[str]:
    """
    Log a banner if a newer release exists.

    Returns:
        The newer version string, or None when up to date or unknown
    """
    latest = fetch_latest_version(url)
    latest_version = ServerVersion.try_parse(latest)
    current_version = ServerVersion.try_parse(current)
    if latest_version is None:
        return None
    if current_version is not None and latest_version <= current_version:
        return None
    logger.info("=======================================")
    logger.info(f"New version {latest} of {PACKAGE_NAME} is available:")
    logger.info(f"pip install --upgrade {PACKAGE_NAME}")
    logger.info("=======================================")
    return latest
