# finchat/api/dependencies/auth.py
from typing import Optional
import jwt
from fastapi import Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from finchat.config.settings import settings
from finchat.utils.errors import Unauthorized
from finchat.utils.logging import logger

# auto_error=False so a missing header becomes our 401 envelope, not a 403
security = HTTPBearer(auto_error=False)

def decode_user_id(token: str) -> Optional[str]:
    """Return the ``sub`` claim of a valid access token, or None."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.JWT_AUDIENCE,
            options={"require": ["sub", "exp"]}
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected access token: {e}")
        return None

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        return None
    return sub

def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Resolve the caller identity or raise Unauthorized."""
    auth_uid = decode_user_id(credentials.credentials) if credentials else None

    demo_uid = settings.demo_user_id
    if demo_uid:
        logger.warning(f"DEMO_USER_ID override active: auth uid={auth_uid}, using uid={demo_uid}")
        user_id = demo_uid
    else:
        user_id = auth_uid

    if not user_id:
        raise Unauthorized()

    request.state.user_id = user_id
    return user_id
