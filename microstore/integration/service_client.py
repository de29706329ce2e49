# microstore/integration/service_client.py
import requests

from microstore.utils.logging import get_logger
from microstore.utils.retry import http_retry

logger = get_logger(__name__)


class ServiceClient:
    """Klient HTTP do innej uslugi: requests.Session + retry z tenacity."""

    def __init__(self, base_url: str, service_name: str, timeout: int = 10, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.service_name = service_name
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.update({"Content-Type": "application/json"})

    @http_retry()
    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        logger.info(f"[{self.service_name}] Request: {method} {url}")

        resp = self.http.request(method, url, timeout=self.timeout, **kwargs)
        logger.info(f"[{self.service_name}] Response: {resp.status_code}")
        resp.raise_for_status()
        return resp.json() if resp.content else None

    def get(self, path: str, **kwargs):
        return self._request("GET", path, **kwargs)

    def post(self, path: str, data=None, **kwargs):
        return self._request("POST", path, json=data, **kwargs)

    def put(self, path: str, data=None, **kwargs):
        return self._request("PUT", path, json=data, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._request("DELETE", path, **kwargs)

    def check_health(self) -> bool:
        try:
            self.get("/health")
            return True
        except requests.RequestException as e:
            logger.warning(f"[{self.service_name}] Health check failed: {e}")
            return False
