from dataclasses import dataclass, field

from pydantic import BaseModel, EmailStr

class Token(BaseModel):
    access_token: str
    token_type: str

class UserRegister(BaseModel):
    email: EmailStr
    password: str
    full_name: str

class UserOut(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    role: str
    is_active: bool

class UserLogin(BaseModel):
    email: EmailStr
    password: str


@dataclass(frozen=True)
class Identity:
    """What the booking core needs to know about the caller."""
    user_id: int
    email: str
    roles: list[str] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles
