from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

UserType = Literal["parent", "student", "driver", "parent_driver"]


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: Optional[str] = None
    user_type: UserType = "student"


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_type: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    user_type: str

    class Config:
        from_attributes = True
