from datetime import datetime, timedelta, timezone
import jwt
from typing import Optional
import uuid
from salesflow.core_settings import get_settings
from salesflow.domain.enums import UserRole

settings = get_settings()

def create_access_token(user_id: uuid.UUID, role: UserRole, expires_minutes: int = 60) -> str:
    """Mint a bearer token for local development and tests."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None
