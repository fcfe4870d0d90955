# storefront/domain/errors.py


class AuthenticationRequired(PermissionError):
    """Action needs a signed-in user; raised before any remote call."""


class EmptyCartError(ValueError):
    """Checkout attempted with nothing in the cart."""


class RemoteError(RuntimeError):
    """
    Any failed call to the hosted backend.
    Not found / conflict / network are all reported through this one type.
    """

    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status = status
        self.code = code
