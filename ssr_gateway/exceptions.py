"""Exceptions raised by the gateway."""

from typing import Optional


class GatewayError(Exception):
    """Base class for gateway errors."""


class CredentialError(GatewayError):
    """Acquiring a credential for the content service failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClientDisconnected(GatewayError):
    """The client went away while the request was still being prepared."""

    def __init__(self, path: str):
        super().__init__(f"Client disconnected while serving {path}")
        self.path = path
