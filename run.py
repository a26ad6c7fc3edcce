#!/usr/bin/env python3
"""CLI entry point for the SSR content gateway.

For production ASGI deployment, use ssr_gateway.app:create_app instead.
"""

from ssr_gateway.main import main

if __name__ == "__main__":
    main()
