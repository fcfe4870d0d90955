import pytest

from storefront.domain.errors import RemoteError
from storefront.services.session_provider import SessionProvider

from conftest import EMAIL, PASSWORD, USER


def test_sign_in_notifies_listeners(auth_client) -> None:
    provider = SessionProvider(auth_client)
    seen = []
    provider.subscribe(seen.append)

    identity = provider.sign_in(EMAIL, PASSWORD)

    assert provider.user_id == USER
    assert provider.access_token == f"token-{USER}"
    assert seen == [identity]


def test_bad_credentials_leave_identity_unset(auth_client) -> None:
    provider = SessionProvider(auth_client)

    with pytest.raises(RemoteError):
        provider.sign_in(EMAIL, "wrong")

    assert provider.identity is None


def test_same_identity_does_not_renotify(auth_client) -> None:
    provider = SessionProvider(auth_client)
    seen = []
    provider.subscribe(seen.append)

    provider.sign_in(EMAIL, PASSWORD)
    provider.sign_in(EMAIL, PASSWORD)

    assert len(seen) == 1


def test_sign_out_clears_even_if_remote_fails(auth_client) -> None:
    provider = SessionProvider(auth_client)
    provider.sign_in(EMAIL, PASSWORD)
    seen = []
    provider.subscribe(seen.append)
    auth_client.fail_sign_out = True

    provider.sign_out()

    assert provider.identity is None
    assert seen == [None]


def test_sign_out_without_identity_is_noop(auth_client) -> None:
    provider = SessionProvider(auth_client)

    provider.sign_out()

    assert auth_client.signed_out == []
