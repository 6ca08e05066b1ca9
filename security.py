import hmac
import logging
from typing import Optional

from fastapi import Header, Request

import config
from errors import AuthorizationError

logger = logging.getLogger(__name__)


def keys_match(supplied: Optional[str], secret: Optional[str]) -> bool:
    if not supplied or not secret:
        return False
    supplied_bytes = supplied.encode("utf-8")
    secret_bytes = secret.encode("utf-8")
    if len(supplied_bytes) != len(secret_bytes):
        return False
    return hmac.compare_digest(supplied_bytes, secret_bytes)


def verify_admin(request: Request, x_admin_key: Optional[str] = Header(None)) -> None:
    """Gate for every mutating endpoint. Which check failed is never reported."""
    if not keys_match(x_admin_key, config.ADMIN_SECRET):
        host = request.client.host if request.client else "unknown"
        logger.warning("Unauthorized access attempt from IP: %s", host)
        raise AuthorizationError()
