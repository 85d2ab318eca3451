from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(UserBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Short user representation for search results, assignees and shares"""
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class UserSearchResponse(BaseModel):
    users: list[UserSummary]
