from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import PyJWTError

from flapframes.content.generators import create_generator
from flapframes.core import circuit_breaker as circuit_breaker_module
from flapframes.core.circuit_breaker import CircuitBreakerService
from flapframes.core.config import settings
from flapframes.core.jwt import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token", auto_error=False)


def get_circuit_breaker() -> CircuitBreakerService:
    return circuit_breaker_module.get_circuit_breaker()


def get_generator_factory() -> Callable:
    return create_generator


def get_current_admin(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """
    Resolve the bearer token to an admin subject.

    The token's ``sub`` must appear in ADMIN_EMAILS.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except PyJWTError:
        raise credentials_exception

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception

    if subject.lower() not in settings.admin_emails():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return subject
