"""
Bearer token lookup for the Tekton API.

Handles token discovery from configuration or a mounted token file.
"""

import logging
from typing import Optional

from .config import WatchConfig

logger = logging.getLogger(__name__)


def load_token(config: WatchConfig) -> Optional[str]:
    """
    Load the API bearer token.

    Lookup order:
    1. TEKTON_JWT (or --token)
    2. the file named by TEKTON_TOKEN_FILE

    Returns:
        Token string, or None when requests should be unauthenticated

    Raises:
        FileNotFoundError: If a token file is configured but missing
    """
    if config.jwt and config.jwt.strip():
        return config.jwt.strip()

    if config.token_file is not None:
        if not config.token_file.exists():
            raise FileNotFoundError(f"Token file not found: {config.token_file}")
        token = config.token_file.read_text().strip()
        if token:
            logger.debug("Using token from %s", config.token_file)
            return token

    return None


def redact_token(token: str, keep: int = 4) -> str:
    """Mask a token for debug logs, keeping `keep` characters at each end."""
    if len(token) <= keep * 2:
        return "*" * len(token)
    return "%s...%s" % (token[:keep], token[-keep:])
