# erp_pos/services/auth_client.py
import requests

from erp_pos.domain.exceptions import AuthenticationError
from erp_pos.utils.retry import http_retry
from erp_pos.utils.settings import AUTH_SERVICE_URL, AUTH_API_KEY, AUTH_TIMEOUT_SECONDS
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


class AuthClient:
    """HTTP client for the external authentication provider."""

    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: float = AUTH_TIMEOUT_SECONDS):
        self.base_url = (base_url or AUTH_SERVICE_URL).rstrip("/")
        self.api_key = AUTH_API_KEY if api_key is None else api_key
        self.timeout = timeout

    def fetch_user(self, access_token: str) -> dict:
        """
        Resolve an access token to the provider's user record.
        Raises AuthenticationError when the provider rejects the token.
        """
        resp = self._get_user(access_token)

        if resp.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired access token")
        resp.raise_for_status()

        data = resp.json()
        if not data.get("id"):
            raise AuthenticationError("Auth provider returned no user id")
        return data

    @http_retry()
    def _get_user(self, access_token: str) -> requests.Response:
        url = f"{self.base_url}/auth/v1/user"
        logger.info(f"AuthClient GET {url}")

        headers = {"Authorization": f"Bearer {access_token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        return requests.get(url, headers=headers, timeout=self.timeout)
