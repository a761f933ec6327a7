"""
Client for the marketplace backend that owns bookings, payments, properties,
tours, users and tickets.

Requests carry a bearer token. A 401 triggers one token refresh and a retry;
timeouts, connection errors and 5xx responses are retried with a linear
backoff. Anything that still fails is raised as UpstreamError so callers can
report the outage instead of pretending the backend answered.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests
import structlog

from amoria_admin import config
from amoria_admin.cache import CachedCredential, Token
from amoria_admin.errors import UpstreamError
from amoria_admin.metrics import vendor_latency, vendor_requests
from amoria_admin.network.auth import refresh_backend_token

logger = structlog.get_logger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 0.5


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether the request should be retried based on response or error.

    Returns:
        bool: True for timeouts, connection errors and 5xx responses.
    """
    if isinstance(err, (requests.Timeout, requests.ConnectionError)):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


def unwrap_envelope(body: Any) -> Any:
    """
    Return the payload of a ``{success, message, data}`` envelope.

    Raises:
        UpstreamError: If the backend reported ``success: false``.
    """
    if isinstance(body, dict) and "success" in body:
        if not body.get("success"):
            raise UpstreamError(body.get("message") or "Backend reported failure")
        return body.get("data")
    return body


def extract_items(data: Any) -> List[Dict[str, Any]]:
    """Accept a bare list or a ``{items|data|results: [...]}`` wrapper."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "data", "results"):
            if isinstance(data.get(key), list):
                return data[key]
    raise UpstreamError("Unexpected list payload from backend")


class BackendClient:
    """
    Authenticated JSON client for the marketplace backend.

    Example:
        >>> client = BackendClient("https://api.example.com/api", access_token="abc")
        >>> bookings = client.get_list("/admin/bookings")
    """

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: float = 50,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._refresh_token = refresh_token
        self.credential = CachedCredential(
            self._refresh, Token(access_token) if access_token else None
        )

    @classmethod
    def from_config(cls) -> "BackendClient":
        return cls(
            config.BACKEND_API_URL,
            access_token=config.BACKEND_ACCESS_TOKEN,
            refresh_token=config.BACKEND_REFRESH_TOKEN,
            timeout=config.BACKEND_TIMEOUT_SECONDS,
        )

    def _refresh(self) -> Token:
        token, rotated = refresh_backend_token(self.base_url, self._refresh_token)
        if rotated:
            self._refresh_token = rotated
        return token

    def _send(
        self,
        method: str,
        url: str,
        token: str,
        params: Optional[Dict[str, Any]],
        json: Optional[Dict[str, Any]],
    ) -> requests.Response:
        start_time = time.time()
        try:
            res = self.session.request(
                method,
                url,
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException:
            vendor_requests.labels(vendor="backend", status_code="error").inc()
            raise
        finally:
            vendor_latency.labels(vendor="backend").observe(time.time() - start_time)
        vendor_requests.labels(vendor="backend", status_code=str(res.status_code)).inc()
        return res

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path below the API root, e.g. ``/admin/bookings``
            params: Query string parameters
            json: JSON body

        Raises:
            UpstreamError: On any final failure (network, non-2xx, non-JSON body)
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        token = self.credential.get_or_refresh()
        refreshed = False
        retries = 0

        while True:
            res: Optional[requests.Response] = None
            try:
                logger.debug("backend_request", method=method, path=path)
                res = self._send(method, url, token, params, json)

                if res.status_code == 401 and not refreshed:
                    logger.warning("backend_unauthorized_refreshing", method=method, path=path)
                    token = self.credential.get_or_refresh(stale=token)
                    refreshed = True
                    continue

                res.raise_for_status()
            except requests.RequestException as err:
                retries += 1
                if retries > MAX_RETRIES or not should_retry(res, err):
                    status_code = res.status_code if res is not None else None
                    logger.error(
                        "backend_request_failed",
                        method=method,
                        path=path,
                        status_code=status_code,
                        error=str(err),
                    )
                    raise UpstreamError(
                        f"Backend request {method} {path} failed", status_code=status_code
                    ) from err
                logger.warning("backend_request_retry", method=method, path=path, attempt=retries)
                time.sleep(RETRY_DELAY * retries)
                continue

            if not res.content:
                return None
            try:
                return res.json()
            except ValueError as e:
                raise UpstreamError(
                    f"Backend returned a non-JSON body for {method} {path}",
                    status_code=res.status_code,
                ) from e

    def get_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """GET a collection and return its records."""
        return extract_items(unwrap_envelope(self.request("GET", path, params=params)))

    def get_item(self, path: str) -> Dict[str, Any]:
        data = unwrap_envelope(self.request("GET", path))
        if not isinstance(data, dict):
            raise UpstreamError("Unexpected item payload from backend")
        return data

    def send_action(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a mutation and return the acknowledged payload.

        Raises:
            UpstreamError: If the call failed or the backend did not report success
        """
        body = self.request(method, path, json=json)
        if isinstance(body, dict) and "success" in body:
            return unwrap_envelope(body)
        if body is None and method.upper() == "DELETE":
            return None
        if isinstance(body, dict):
            return body
        raise UpstreamError(f"Backend did not acknowledge {method} {path}")
