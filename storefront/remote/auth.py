# storefront/remote/auth.py
import requests
from requests import RequestException

from storefront.domain.errors import RemoteError
from storefront.domain.schemas import Identity
from storefront.remote.client import raise_for_remote
from storefront.utils.settings import REMOTE_URL, REMOTE_ANON_KEY, REMOTE_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AuthClient:
    """Password sign-in and sign-out against the hosted auth API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ):
        self.base_url = (base_url or REMOTE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else REMOTE_ANON_KEY
        self.timeout = timeout or REMOTE_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        url = f"{self.base_url}/auth/v1/token"
        logger.info(f"AuthClient sign-in {email}")

        try:
            resp = self.http.post(
                url,
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers={"apikey": self.api_key},
                timeout=self.timeout,
            )
        except RequestException as e:
            raise RemoteError(f"sign-in failed: {e}") from e

        raise_for_remote(resp, "sign-in")

        body = resp.json()
        user = body.get("user") or {}
        if not user.get("id") or not body.get("access_token"):
            raise RemoteError("sign-in returned no user", status=resp.status_code)

        return Identity(
            user_id=user["id"],
            email=user.get("email"),
            access_token=body["access_token"],
        )

    def sign_out(self, access_token: str) -> None:
        url = f"{self.base_url}/auth/v1/logout"

        try:
            resp = self.http.post(
                url,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {access_token}",
                },
                timeout=self.timeout,
            )
        except RequestException as e:
            raise RemoteError(f"sign-out failed: {e}") from e

        raise_for_remote(resp, "sign-out")
