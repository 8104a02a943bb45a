"""
FastAPI dependencies for authentication.
Provides get_current_principal, which verifies Firebase JWT tokens.

Authorization is a precondition for every blob route; the coordinators
never see tokens.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from blob_gateway.auth.firebase import verify_firebase_token
from blob_gateway.errors import Unauthorized

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as our own 401 body
security = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """Authenticated caller."""
    uid: str
    email: Optional[str] = None


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """
    Verify the bearer token and return the caller.

    Raises:
        Unauthorized: header missing, token invalid, or verification unavailable
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    try:
        decoded_token = verify_firebase_token(credentials.credentials)
    except ValueError as e:
        raise Unauthorized(f"Invalid token: {str(e)}")
    except RuntimeError as e:
        logger.error(f"Token verification unavailable: {e}")
        raise Unauthorized("Invalid token")

    uid = decoded_token.get("uid")
    if not uid:
        raise Unauthorized("Invalid token: missing uid")

    return Principal(uid=uid, email=decoded_token.get("email"))
