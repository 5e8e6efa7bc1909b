from pydantic import BaseModel, EmailStr

from fitcircle.schemas.user import User


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AuthResponse(Token):
    user: User
