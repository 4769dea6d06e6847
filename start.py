#!/usr/bin/env python3
"""
Startup wrapper for the Skills Feedback API.

Binds dual-stack (::) when the host supports it, otherwise IPv4 (0.0.0.0).

Environment variables:
- BIND_ADDRESS: Explicit bind address (default: auto-detect)
- PORT: HTTP port (default: 3000, via Settings)
- LOG_LEVEL: uvicorn log level (via Settings)
"""

import asyncio
import os
import socket
import sys

import uvicorn

from skills_feedback_api.config import get_settings

APP = "skills_feedback_api.main:app"


def dualstack_socket(port: int) -> socket.socket | None:
    """Return a bound IPv6 socket that also accepts IPv4, or None if unsupported."""
    try:
        sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
    except OSError:
        return None

    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        sock.bind(("::", port))
    except (AttributeError, OSError):
        sock.close()
        return None
    return sock


def main() -> None:
    """Start uvicorn on the detected or explicit bind address."""
    settings = get_settings()
    port = settings.port
    log_level = settings.log_level.lower()
    bind_address = os.getenv("BIND_ADDRESS", "auto")

    if bind_address != "auto":
        print(f"Using explicit bind address: {bind_address}:{port}", file=sys.stderr)
        uvicorn.run(APP, host=bind_address, port=port, log_level=log_level)
        return

    sock = dualstack_socket(port)
    if sock is None:
        print(f"IPv6 not available, binding to 0.0.0.0:{port}", file=sys.stderr)
        uvicorn.run(APP, host="0.0.0.0", port=port, log_level=log_level)
        return

    print(f"Dual-stack supported, binding to [::]:{port}", file=sys.stderr)
    sock.listen(128)
    sock.setblocking(False)
    server = uvicorn.Server(uvicorn.Config(APP, log_level=log_level))
    asyncio.run(server.serve(sockets=[sock]))


if __name__ == "__main__":
    main()
