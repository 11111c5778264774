from typing import Optional

import structlog
from fastapi import Cookie, HTTPException, status
from jose import jwt, JWTError

import config

logger = structlog.get_logger(__name__)

TOKEN_COOKIE = "token"


async def verify_token(token: Optional[str] = Cookie(default=None)):
    """Session gate: the `token` cookie must carry a valid, unexpired signature."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="unauthorized access",
    )

    if not token:
        raise unauthorized

    try:
        payload = jwt.decode(token, config.ACCESS_TOKEN_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        logger.info("Rejected session token", reason=str(e))
        raise unauthorized

    return payload
