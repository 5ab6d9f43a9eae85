from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from loan_scoring.core.config import settings
from loan_scoring.core.security import decode_token
from typing import Dict
import logging

logger = logging.getLogger(__name__)

# Tokens come from the external identity provider; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.AUTH_TOKEN_URL)


# Extracts and validates the bearer token to identify the caller
async def get_current_user(token: str = Depends(oauth2_scheme)) -> Dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        logger.warning("Token validation failed")
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        logger.debug("No 'sub' field in token payload.")
        raise credentials_exception

    return {"id": str(user_id), "email": payload.get("email")}
