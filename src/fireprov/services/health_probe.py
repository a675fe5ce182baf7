"""Host-side HTTP probes for the development stack."""

from typing import Dict

import requests


class HealthProbeService:
    """Checks the published endpoints the container health checks also poll."""

    def __init__(self, logger, requests_module=requests, timeout: float = 10.0):
        self.logger = logger
        self.requests = requests_module
        self.timeout = timeout

    def probe(self, url: str) -> bool:
        try:
            response = self.requests.get(url, timeout=self.timeout)
        except self.requests.RequestException as exc:
            self.logger.debug("Probe %s failed: %s", url, exc)
            return False

        try:
            return response.status_code == 200
        finally:
            response.close()

    def probe_all(self, urls: Dict[str, str]) -> Dict[str, bool]:
        return {name: self.probe(url) for name, url in urls.items()}
