"""Credential handling for the Stays.net external API (HTTP Basic auth)."""

import base64

import structlog

logger = structlog.get_logger(__name__)


def build_basic_auth_header(client_id: str, client_secret: str) -> str:
    """
    Build the Authorization header value for the Stays.net API.

    Args:
        client_id (str): Stays.net API login
        client_secret (str): Stays.net API password

    Returns:
        str: Header value of the form "Basic <base64(id:secret)>"

    Raises:
        ValueError: If either credential is empty
    """
    if not client_id or not client_secret:
        logger.error("stays_credentials_missing")
        raise ValueError("STAYS_CLIENT_ID and STAYS_CLIENT_SECRET must be set")

    token = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode("ascii")
    return f"Basic {token}"
