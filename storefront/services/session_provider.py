# storefront/services/session_provider.py
import threading
from typing import Callable

from storefront.domain.errors import RemoteError
from storefront.domain.schemas import Identity
from storefront.remote.auth import AuthClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

IdentityListener = Callable[[Identity | None], None]


class SessionProvider:
    """
    Current identity of one storefront session.
    Listeners are called on every change (sign-in, sign-out, user switch).
    """

    def __init__(self, auth_client: AuthClient):
        self.auth_client = auth_client
        self._identity: Identity | None = None
        self._listeners: list[IdentityListener] = []
        self._lock = threading.Lock()

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def user_id(self) -> str | None:
        return self._identity.user_id if self._identity else None

    @property
    def access_token(self) -> str | None:
        return self._identity.access_token if self._identity else None

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    def sign_in(self, email: str, password: str) -> Identity:
        identity = self.auth_client.sign_in_with_password(email, password)
        logger.info(f"User {identity.user_id} signed in")
        self._set_identity(identity)
        return identity

    def sign_out(self) -> None:
        identity = self._identity
        if identity is None:
            return

        try:
            self.auth_client.sign_out(identity.access_token)
        except RemoteError as e:
            #the local session ends regardless
            logger.warning(f"Remote sign-out of {identity.user_id} failed: {e}")

        logger.info(f"User {identity.user_id} signed out")
        self._set_identity(None)

    def _set_identity(self, identity: Identity | None) -> None:
        with self._lock:
            previous, self._identity = self._identity, identity

        if previous == identity:
            return

        for listener in list(self._listeners):
            listener(identity)
