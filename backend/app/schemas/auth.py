from pydantic import BaseModel

from .user import UserPublic


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    user: UserPublic


class RefreshResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    success: bool = True
    user: UserPublic


class MessageResponse(BaseModel):
    success: bool = True
    message: str
