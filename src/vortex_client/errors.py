"""
Vortex client errors

Every exception raised by the client derives from :class:`VortexError`.
Input-validation errors also derive from ``ValueError`` so that existing
``except ValueError`` handlers keep working.
"""

from typing import Optional


class VortexError(Exception):
    """Base class for all Vortex client errors."""

    pass


class InvalidKeyFormatError(VortexError, ValueError):
    """The API key is not of the form ``VRTX.{encodedId}.{key}``."""

    pass


class InvalidKeyPrefixError(VortexError, ValueError):
    """The API key does not start with the ``VRTX`` prefix."""

    pass


class UnsupportedTargetTypeError(VortexError, ValueError):
    """A legacy accept target uses a type that has no AcceptUser equivalent."""

    def __init__(self, target_type: str):
        self.target_type = target_type
        super().__init__(
            f"Unsupported target type for accept: {target_type!r}. "
            "Expected 'email' or 'phone'."
        )


class MissingIdentityError(VortexError, ValueError):
    """An AcceptUser was given without an email or a phone number."""

    pass


class NoTargetsProvidedError(VortexError, ValueError):
    """A legacy list of accept targets was empty."""

    pass


class VortexApiError(VortexError):
    """
    The Vortex API answered with a non-success status.

    Attributes:
        status_code: HTTP status code of the response
        status_text: HTTP reason phrase
        body: Raw response body, never parsed
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        status_text: str = "",
        body: str = "",
    ):
        self.message = message
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(message)


class VortexConnectionError(VortexError):
    """The request never produced a response (DNS, connect, read failure...)."""

    def __init__(self, message: str, request_url: Optional[str] = None):
        self.message = message
        self.request_url = request_url
        super().__init__(message)
