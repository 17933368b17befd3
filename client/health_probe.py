import logging
from enum import Enum
from typing import Optional

import requests

from client.api_client import BackendClient

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    CONNECTED = "connected"
    FAILED = "failed"     # backend answered, but not with 200
    ERROR = "error"       # backend could not be reached


class HealthProbe:
    """
    One-shot liveness check. Purely informational: nothing else in the client
    looks at the result, and it is never re-run for the same probe.
    """

    def __init__(self, api: BackendClient):
        self._api = api
        self.status: Optional[HealthStatus] = None

    def check(self) -> HealthStatus:
        if self.status is not None:
            return self.status

        try:
            resp = self._api.health()
            self.status = HealthStatus.CONNECTED if resp.status_code == 200 else HealthStatus.FAILED
        except requests.RequestException as e:
            logger.warning("Backend health check failed: %s", e)
            self.status = HealthStatus.ERROR

        logger.info("Backend status: %s", self.status.value)
        return self.status
