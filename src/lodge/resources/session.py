"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Sign-out flow: nothing fetched for one user may be served to the next.
"""

from __future__ import annotations

import logging

from ..data.errors import ApiError
from ..data.service import DataCacheService
from ..data.transport import TokenStore

LOGOUT_KEY = "/api/auth/logout"

logger = logging.getLogger("lodge.resources.session")


async def sign_out(service: DataCacheService, tokens: TokenStore) -> bool:
    """
    Drop the bearer token and every cached resource, then end the server
    session.

    Returns:
        ``True`` when the logout call succeeded. Local state is cleared
        either way.
    """
    tokens.clear()
    service.clear_cache()
    try:
        await service.transport.send("POST", LOGOUT_KEY)
    except ApiError as error:
        logger.error("Logout request failed: %s", error)
        return False
    return True
