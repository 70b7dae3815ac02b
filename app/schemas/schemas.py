"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, HttpUrl, TypeAdapter, model_validator
from typing import Optional, List, Literal, Union
from typing_extensions import Annotated
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    junior = "junior"
    company = "company"
    admin = "admin"


class ExperienceLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class ProjectStatus(str, Enum):
    open = "open"
    in_progress = "in-progress"
    completed = "completed"
    canceled = "canceled"


class ApplicationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    withdrawn = "withdrawn"


class NotificationCategory(str, Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


class RelatedModel(str, Enum):
    project = "Project"
    application = "Application"
    user = "User"


# ============================================================
# ROLE-SPECIFIC FIELDS
# A user is exactly one of these variants, tagged by `role`.
# ============================================================

class JuniorFields(BaseModel):
    role: Literal["junior"] = "junior"
    experience_level: ExperienceLevel
    skills: List[str] = []
    portfolio: List[str] = []


class CompanyFields(BaseModel):
    role: Literal["company"] = "company"
    company_name: str = Field(..., min_length=1, max_length=200)
    website: Optional[str] = None
    industry: Optional[str] = None


RoleFields = Annotated[Union[JuniorFields, CompanyFields], Field(discriminator="role")]


# ============================================================
# AUTH SCHEMAS
# ============================================================

class Credentials(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class JuniorRegisterRequest(Credentials, JuniorFields):
    pass


class CompanyRegisterRequest(Credentials, CompanyFields):
    pass


RegisterRequest = Annotated[
    Union[JuniorRegisterRequest, CompanyRegisterRequest], Field(discriminator="role")
]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class GoogleAuthRequest(BaseModel):
    access_token: str


class GoogleProfile(BaseModel):
    google_id: str
    email: EmailStr
    name: str
    picture: Optional[str] = None


class CompleteOAuthSignupRequest(BaseModel):
    """Role completion for a Google identity that has no role yet."""
    access_token: str
    details: RoleFields


# ============================================================
# USER SCHEMAS
# ============================================================

class UserBase(BaseModel):
    id: str
    name: str
    email: str
    bio: str = ""
    skills: List[str] = []
    profile_picture: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JuniorProfile(UserBase):
    role: Literal["junior"]
    experience_level: ExperienceLevel
    portfolio: List[str] = []


class CompanyProfile(UserBase):
    role: Literal["company"]
    company_name: str = Field(..., min_length=1)
    website: Optional[str] = None
    industry: Optional[str] = None


class AdminProfile(UserBase):
    role: Literal["admin"]


UserProfile = Annotated[
    Union[JuniorProfile, CompanyProfile, AdminProfile], Field(discriminator="role")
]

# Validates a stored user document against its variant
user_profile_adapter = TypeAdapter(UserProfile)


class UserUpdate(BaseModel):
    """Profile update. Role cannot be changed here."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    # junior
    experience_level: Optional[ExperienceLevel] = None
    portfolio: Optional[List[str]] = None
    # company
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    website: Optional[str] = None
    industry: Optional[str] = None


class UserListResponse(BaseModel):
    users: List[UserProfile]
    total: int
    page: int
    page_size: int


class AuthResponse(BaseModel):
    user: UserProfile
    tokens: TokenPair


class OAuthPendingResponse(BaseModel):
    needs_role_selection: bool = True
    profile: GoogleProfile
    message: str = "Select a role (junior or company) to complete your profile"


# ============================================================
# PROJECT SCHEMAS
# ============================================================

class Timeframe(BaseModel):
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1)
    requirements: List[str] = []
    timeframe: Timeframe
    skills_required: List[str] = []
    tags: List[str] = []


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    requirements: Optional[List[str]] = None
    timeframe: Optional[Timeframe] = None
    status: Optional[ProjectStatus] = None
    is_accepting_applications: Optional[bool] = None
    skills_required: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    images_to_remove: List[str] = []


class ProjectResponse(BaseModel):
    id: str
    title: str
    description: str
    company: str
    requirements: List[str] = []
    timeframe: Optional[Timeframe] = None
    status: ProjectStatus
    is_accepting_applications: bool
    skills_required: List[str] = []
    tags: List[str] = []
    images: List[str] = []
    applications: List[str] = []
    selected_developer: Optional[str] = None
    likes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    cover_letter: str = Field(..., min_length=1)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    feedback: Optional[str] = None


class SubmitWorkRequest(BaseModel):
    submission_link: HttpUrl


class ApplicationResponse(BaseModel):
    id: str
    project: str
    applicant: str
    cover_letter: str
    status: ApplicationStatus
    submission_link: Optional[str] = None
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# COMMENT SCHEMAS
# ============================================================

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: str
    project: str
    author: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentListResponse(BaseModel):
    comments: List[CommentResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class RelatedRef(BaseModel):
    model: RelatedModel
    id: str


class NotificationResponse(BaseModel):
    id: str
    user: str
    message: str
    type: NotificationCategory
    related_to: Optional[RelatedRef] = None
    read: bool = False
    created_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread: int
    page: int
    page_size: int


class UnreadCountResponse(BaseModel):
    count: int


# ============================================================
# AI SCHEMAS
# ============================================================

class EnhanceProjectRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class EnhanceProjectResponse(BaseModel):
    enhanced_description: str
    tags: List[str] = []
    required_skills: List[str] = []
    requirements: List[str] = []
    experience_level: Optional[str] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

