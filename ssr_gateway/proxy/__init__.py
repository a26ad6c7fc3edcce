"""Content proxy - forwards /content/ requests with server-side credentials."""

from .handler import ContentProxyHandler, content_request_url
from .models import ProxyTarget, build_content_url

__all__ = [
    'ContentProxyHandler',
    'ProxyTarget',
    'build_content_url',
    'content_request_url',
]
