import logging
from typing import Any

from jose import JWTError, jwt

from propcomms.core.config import settings

logger = logging.getLogger(__name__)


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode an access token issued by the identity service.

    Returns None for expired, tampered or otherwise undecodable tokens.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        return payload
    except JWTError:
        logger.info("Rejected undecodable access token")
        return None
