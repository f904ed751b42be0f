from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from evalforms.core.config import settings
from evalforms.core.security import decode_jwt

ROLE_SYSTEM_ADMIN = "system_admin"
ROLE_SCOUT_ADMIN = "scout_admin"
ROLE_XEN_SCOUT = "xen_scout"

bearer = HTTPBearer(auto_error=False)

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        claims = decode_jwt(creds.credentials, settings.JWT_SECRET)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not str(claims.get("sub") or "").strip():
        raise HTTPException(status_code=401, detail="Invalid token")
    return claims

def require_role(*roles: str):
    def _inner(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user
    return _inner
