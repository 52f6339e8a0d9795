from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from galaxyair.api.deps import get_current_identity
from galaxyair.core.security import create_access_token, get_password_hash, verify_password
from galaxyair.core.config import settings
from galaxyair.schemas.auth import Identity, Token, UserRegister, UserOut, UserLogin
from galaxyair.db.session import get_db
from galaxyair.models.user import User
from galaxyair.services.flow_store import FlowStore, get_flow_store

router = APIRouter()

def _authenticate(db: Session, email: str, password: str) -> User:
    """Returns 401 if the user is unknown or the password is wrong, 403 if blocked."""
    email = email.lower().strip()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is blocked")
    if not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect credentials")
    return user

@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _authenticate(db, form_data.username, form_data.password)
    access_token = create_access_token(subject=user.email, roles=[user.role], user_id=user.id)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/login-json", response_model=Token)
def login_json(payload: UserLogin, db: Session = Depends(get_db)):
    """JSON login, same behaviour as /login."""
    user = _authenticate(db, payload.email, payload.password)
    access_token = create_access_token(subject=user.email, roles=[user.role], user_id=user.id)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/register", response_model=UserOut)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    # The role claim is decided here, once, and travels in every token issued afterwards
    role = "admin" if email in settings.admin_emails else "user"
    user = User(email=email, full_name=payload.full_name, hashed_password=get_password_hash(payload.password), role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"id": user.id, "email": user.email, "full_name": user.full_name, "role": user.role, "is_active": user.is_active}

@router.get("/me")
def me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    user = db.get(User, identity.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "is_authenticated": identity.is_authenticated,
        "is_admin": identity.is_admin,
    }

@router.post("/logout")
def logout(identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    """Tokens are stateless; logging out discards the caller's in-progress booking."""
    # waits for any flow request of this user that is still running
    with store.lock(identity.user_id):
        flow = store.reset(identity.user_id)
    return {"status": "logged_out", "step": flow.step.value}
