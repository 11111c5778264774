from datetime import datetime, timedelta, timezone

import structlog
from fastapi import APIRouter, Response
from jose import jwt

import config
import models
from utils.dependencies import TOKEN_COOKIE

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Auth"])

# Registered claims jose validates on decode; a client must not be able to set them
RESERVED_CLAIMS = {"exp", "iat", "nbf", "aud", "iss", "sub", "jti"}


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=config.ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.ACCESS_TOKEN_SECRET, algorithm=config.JWT_ALGORITHM)


@router.post("/jwt", response_model=models.SuccessResponse)
async def issue_token(user: models.SessionUser, response: Response):
    """Sign the user payload and hand it back as an HTTP-only session cookie."""
    expires = timedelta(hours=config.ACCESS_TOKEN_EXPIRE_HOURS)
    claims = {k: v for k, v in user.model_dump().items() if k not in RESERVED_CLAIMS}
    token = create_access_token(claims, expires)
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=config.COOKIE_SECURE,
        max_age=int(expires.total_seconds()),
    )
    logger.info("Session issued", email=user.email)
    return models.SuccessResponse()


@router.post("/logout", response_model=models.SuccessResponse)
async def logout(response: Response):
    response.delete_cookie(key=TOKEN_COOKIE, httponly=True, secure=config.COOKIE_SECURE)
    return models.SuccessResponse()
