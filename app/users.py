import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer


logger = logging.getLogger(__name__)

# -------------------------
# Current user
# -------------------------
# Sign-in lives with the external identity provider. Behind it, the bearer
# credential that reaches this service is the provider's stable user id.
# Deployments that need to verify raw provider tokens swap this dependency
# through app.dependency_overrides[current_user_id].
bearer_scheme = HTTPBearer(auto_error=True)


async def current_user_id(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    user_id = (credentials.credentials or "").strip()
    if not user_id or len(user_id) > 64:
        logger.warning("Rejected bearer credential of length %d", len(user_id))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return user_id
