"""Proxy-specific data models."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

CONTENT_SEGMENT = "content"


def build_content_url(base_url: str, request_url: str) -> str:
    """Build the content service URL for a proxied request.

    ``request_url`` is the inbound path below the ``/content`` mount,
    including any query string. Exactly one slash ends up on each side of the
    ``content`` segment whether or not ``base_url`` has a trailing slash and
    ``request_url`` a leading one.
    """
    content = CONTENT_SEGMENT if base_url.endswith("/") else f"/{CONTENT_SEGMENT}"
    if not request_url.startswith("/"):
        content = f"{content}/"
    return f"{base_url}{content}{request_url}"


class ProxyTarget(BaseModel):
    """Where a single content request goes and with which credential."""
    model_config = ConfigDict(frozen=True)

    url: str
    authorization_header: Optional[str] = None

    @classmethod
    def for_request(cls, base_url: str, request_url: str, credential: Optional[str] = None) -> "ProxyTarget":
        return cls(
            url=build_content_url(base_url, request_url),
            authorization_header=credential or None,
        )

    @property
    def is_secure(self) -> bool:
        return self.url.lower().startswith("https:")

    def outbound_headers(self) -> Dict[str, str]:
        """Headers set on the request to the content service."""
        if self.authorization_header:
            return {"Authorization": self.authorization_header}
        return {}

    def __repr__(self) -> str:
        # Never show the credential
        auth = "set" if self.authorization_header else "none"
        return f"ProxyTarget(url={self.url!r}, authorization={auth})"

    __str__ = __repr__
