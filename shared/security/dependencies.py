from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer, APIKeyHeader
from .jwt_handler import verify_access_token
from .api_key import INTERNAL_API_KEY_HEADER, verify_api_key

# Bearer <token>, issued by the platform auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

# Internal service header
api_key_header = APIKeyHeader(name=INTERNAL_API_KEY_HEADER, auto_error=False)

async def get_current_user_id(request: Request, token: str = Depends(oauth2_scheme)) -> int:
    """Dependency to validate the JWT and return the acting user's id."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    payload = verify_access_token(token)
    if payload is None:
        raise credentials_exception

    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        raise credentials_exception

    # Rate limiting keys on this
    request.state.user_id = int(sub)
    return int(sub)

async def verify_internal_api_key(api_key: str = Depends(api_key_header)) -> bool:
    """Dependency to validate service-to-service internal requests."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
