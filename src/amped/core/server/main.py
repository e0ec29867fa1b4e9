"""Amped server entry point: ``python -m amped.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from amped.core.config.settings import Settings, get_settings
from amped.core.server.app import SERVER_NAME, create_app

_TRANSPORTS = ("streamable-http", "stdio")


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_bind(settings: Settings) -> None:
    """Refuse a network bind beyond this machine unless explicitly allowed.

    Raises:
        ValueError: If the configured transport is unknown.
        RuntimeError: If an HTTP bind would expose the unauthenticated server.
    """
    if settings.amped_transport not in _TRANSPORTS:
        raise ValueError(
            f"AMPED_TRANSPORT must be one of: {' | '.join(_TRANSPORTS)} "
            f"(got {settings.amped_transport!r})"
        )
    if settings.amped_transport == "stdio":
        return
    if not settings.amped_allow_insecure_bind and not _is_loopback_host(settings.amped_host):
        raise RuntimeError(
            f"Refusing to bind {SERVER_NAME} to {settings.amped_host}: there is no auth layer. "
            "Set AMPED_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )


def run() -> None:
    """Start the Amped MCP server on the configured transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.amped_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    _check_bind(settings)
    mcp = create_app()

    if settings.amped_transport == "stdio":
        logger.info("Starting %s over stdio", SERVER_NAME)
        mcp.run(transport="stdio")
        return

    logger.info("Starting %s on %s:%d", SERVER_NAME, settings.amped_host, settings.amped_port)
    mcp.run(
        transport="streamable-http",
        host=settings.amped_host,
        port=settings.amped_port,
    )


if __name__ == "__main__":
    run()
