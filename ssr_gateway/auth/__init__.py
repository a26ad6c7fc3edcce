"""Authorization for requests proxied to the content service."""

from .gate import (
    AuthGate,
    ClientCredentialsAuthGate,
    NoAuthGate,
    StaticAuthGate,
    build_auth_gate,
)

__all__ = [
    'AuthGate',
    'ClientCredentialsAuthGate',
    'NoAuthGate',
    'StaticAuthGate',
    'build_auth_gate',
]
