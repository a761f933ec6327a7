import requests
import structlog

from amoria_admin.cache import Token
from amoria_admin.errors import UpstreamError
from amoria_admin.metrics import token_refreshes

logger = structlog.get_logger(__name__)

REFRESH_PATH = "/auth/refresh-token"


def refresh_backend_token(base_url: str, refresh_token: str | None, timeout: float = 15) -> tuple[Token, str | None]:
    """
    Exchange a refresh token for a new marketplace backend access token.

    Args:
        base_url (str): Backend API root, e.g. ``https://api.example.com/api``.
        refresh_token (str | None): Current refresh token.
        timeout (float): Request timeout in seconds.

    Returns:
        tuple[Token, str | None]: The new access token and the rotated refresh
        token (None when the backend did not rotate it).

    Raises:
        UpstreamError: If no refresh token is available or the backend refuses it.
    """
    if not refresh_token:
        raise UpstreamError("No refresh token available", status_code=401)

    logger.info("backend_token_refresh_requested")

    try:
        response = requests.post(
            base_url.rstrip("/") + REFRESH_PATH,
            json={"refreshToken": refresh_token},
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        status_code = getattr(getattr(e, "response", None), "status_code", None)
        logger.error("backend_token_refresh_failed", status_code=status_code, error=str(e))
        raise UpstreamError("Token refresh failed", status_code=status_code) from e

    data = (response.json() or {}).get("data") or {}
    access_token = data.get("accessToken")
    if not isinstance(access_token, str) or not access_token:
        logger.error("backend_token_refresh_invalid_response", response_text=response.text)
        raise UpstreamError("Invalid refresh response", status_code=response.status_code)

    token_refreshes.labels(provider="backend").inc()
    return Token(access_token), data.get("refreshToken")
