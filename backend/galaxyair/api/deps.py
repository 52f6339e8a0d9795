from typing import List
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import jwt

from galaxyair.core.security import decode_access_token
from galaxyair.db.session import get_db
from galaxyair.schemas.auth import Identity
from galaxyair.services.flow_service import BookingFlowService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:
    """Identity from the bearer token: user id, email and the role claim."""
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = payload.get("sub")
    uid = payload.get("uid")
    if not sub or uid is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    return Identity(user_id=int(uid), email=sub, roles=roles)

def get_current_roles(identity: Identity = Depends(get_current_identity)) -> List[str]:
    return identity.roles

def require_roles(*allowed: str):
    def checker(roles: List[str] = Depends(get_current_roles)):
        if not any(r in roles for r in allowed):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return checker

def get_flow_service(db: Session = Depends(get_db)) -> BookingFlowService:
    return BookingFlowService(db)
