# occupancy_collector/services/fetcher.py
"""
Occupancy fetcher: one GET against the study-spaces display endpoint.

Endpoint: GET {OCCUPANCY_URL}  (…/occupancy/display?json&affluence)
Response: JSON {"telepen": {...}, "affluence": {"<level>": {...}, ...}}

No retries: a failed fetch is reported to the caller and the next scheduled
tick simply tries again.
"""

from typing import Optional

import requests
from pydantic import ValidationError

from occupancy_collector.config import settings
from occupancy_collector.exceptions import BadStatusError, DecodeError, NetworkError
from occupancy_collector.schemas.occupancy import OccupancyReading
from occupancy_collector.utils.logger import get_logger

logger = get_logger(__name__)


def fetch_occupancy(
    url: Optional[str] = None,
    user_agent: Optional[str] = None,
    timeout: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> OccupancyReading:
    """
    Fetch and decode one occupancy snapshot.

    Raises NetworkError, BadStatusError or DecodeError.
    """
    url = url or settings.OCCUPANCY_URL
    headers = {
        "User-Agent": user_agent or settings.USER_AGENT,
        "Accept": "application/json",
    }
    timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
    http = session or requests

    logger.debug(f"GET {url}")
    try:
        response = http.get(url, headers=headers, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"failed to send request: {e}", details={"url": url}) from e

    try:
        if response.status_code != 200:
            raise BadStatusError(response.status_code, url)

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"response is not JSON: {e}", details={"url": url}) from e

        try:
            return OccupancyReading.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                f"unexpected occupancy payload: {e.error_count()} validation error(s)",
                details={"url": url, "errors": e.errors()},
            ) from e
    finally:
        response.close()
