from fastapi import HTTPException, Request
import uuid

from salesflow.core.logging_config import set_request_context
from salesflow.domain.actor import Actor
from salesflow.domain.enums import UserRole
from salesflow.infrastructure.auth import decode_access_token

BEARER_PREFIX = "Bearer "

async def get_current_actor(request: Request) -> Actor:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Missing token")
    token_data = decode_access_token(auth_header.split(" ", 1)[1])
    if not token_data:
        raise HTTPException(status_code=401, detail="Invalid token")
    try:
        actor = Actor(id=uuid.UUID(token_data["sub"]), role=UserRole(token_data["role"]))
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Token does not identify a known user role")
    set_request_context(user_id=str(actor.id), user_role=actor.role.value)
    return actor
