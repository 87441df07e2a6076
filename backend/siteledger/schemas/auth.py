from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from siteledger.models.user import Role
from siteledger.schemas.ledger import SiteStatistics


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=6)
    role: Role = Role.USER
    site: Optional[str] = None
    company: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    site: Optional[str] = None
    company: Optional[str] = None


class CreatedBy(BaseModel):
    id: int
    username: Optional[str] = None
    role: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    username: str
    role: str
    site: str = ""
    company: str = ""
    created_by: Optional[CreatedBy] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "User registered successfully"
    user: UserResponse


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    user: UserResponse


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserResponse]


class UserSiteDetails(BaseModel):
    success: bool = True
    user_details: UserResponse
    site_statistics: SiteStatistics
