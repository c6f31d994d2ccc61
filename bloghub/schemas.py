import re
from datetime import datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from bloghub.models import Gender

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
PHONE_RE = re.compile(r"^\d{10}$")


class CamelModel(BaseModel):
    """
    Base for every payload: snake_case in Python, camelCase on the wire.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _check_username(v: str) -> str:
    v = v.strip()
    if not USERNAME_RE.match(v):
        raise ValueError("Username must be 3-30 letters, digits, '.', '_' or '-'")
    return v


def _check_phone(v: str) -> str:
    v = v.strip()
    if not PHONE_RE.match(v):
        raise ValueError("Phone number must be exactly 10 digits")
    return v


def _check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(v) > 128:
        raise ValueError("Password too long")
    return v


Username = Annotated[str, AfterValidator(_check_username)]
PhoneNumber = Annotated[str, AfterValidator(_check_phone)]
Password = Annotated[str, AfterValidator(_check_password)]


# --------------------- Accounts ---------------------

class SignupRequest(CamelModel):
    """
    Signup payload validation.

    - EmailStr uses email-validator for RFC-compliant addresses
    - Password between 8 and 128 characters, no complexity rules
    - Phone numbers are 10 digits
    """
    username: Username
    email: EmailStr
    phone_number: PhoneNumber
    gender: Gender
    password: Password


class LoginRequest(CamelModel):
    """
    Login accepts either an email address or a username in one field.
    Blank and missing values are rejected with the same message.
    """
    email_or_username: str = Field("", validate_default=True)
    password: str = Field("", validate_default=True)

    @field_validator("email_or_username")
    @classmethod
    def require_identifier(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Email or username is required")
        return v.strip()

    @field_validator("password")
    @classmethod
    def require_password(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Password is required")
        return v


class DeleteAccountRequest(CamelModel):
    password: str = Field("", validate_default=True)

    @field_validator("password")
    @classmethod
    def require_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ProfileUpdate(CamelModel):
    """
    Self-service profile changes. An empty profilePicture removes the picture.
    """
    username: Optional[Username] = None
    email: Optional[EmailStr] = None
    phone_number: Optional[PhoneNumber] = None
    gender: Optional[Gender] = None
    profile_picture: Optional[str] = None


class AdminUserCreate(SignupRequest):
    is_admin: bool = False


class AdminUserUpdate(ProfileUpdate):
    is_admin: Optional[bool] = None


class AdminUserUpdateRequest(CamelModel):
    user_id: str
    updates: AdminUserUpdate


class AdminUserDeleteRequest(CamelModel):
    user_id: str


class AdminUserActionRequest(CamelModel):
    user_id: str
    action: Literal["toggleAdmin"]


class UserResponse(CamelModel):
    """
    Safe user representation for API responses.
    Never carries password_hash.
    """
    id: str
    username: str
    email: str
    phone_number: str
    gender: Gender
    is_admin: bool
    profile_picture: Optional[str] = None
    created_at: datetime


class UserEnvelope(CamelModel):
    message: Optional[str] = None
    user: UserResponse


class MeResponse(CamelModel):
    user: Optional[UserResponse] = None


class UserListResponse(CamelModel):
    users: list[UserResponse]
    total: int
    page: int
    total_pages: int
    has_next: bool
    has_prev: bool


class DeletedUserResponse(CamelModel):
    message: str
    deleted_user_id: str


class DeleteAccountResponse(CamelModel):
    message: str
    posts_deleted: int


class MessageResponse(CamelModel):
    """
    Generic message response for operations without specific return data.
    """
    message: str


# --------------------- Posts ---------------------

class PostCreate(CamelModel):
    title: str
    content: str
    description: str = ""
    image_url: str = ""

    @field_validator("title", "content")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator("description", "image_url")
    @classmethod
    def strip_optional(cls, v: str) -> str:
        return v.strip()


class PostUpdate(CamelModel):
    """
    Partial post edit. Blank text fields are ignored; imageUrl may be set
    to an empty string to drop the image.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.changes():
            raise ValueError("At least one field is required for update")
        return self

    def changes(self) -> dict:
        changes = {}
        for name in ("title", "content", "description"):
            value = getattr(self, name)
            if value and value.strip():
                changes[name] = value.strip()
        if self.image_url is not None:
            changes["image_url"] = self.image_url
        return changes


class CommentData(CamelModel):
    text: str
    author_id: Optional[str] = None
    author_name: Optional[str] = None

    @field_validator("text")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment text is required")
        return v.strip()


class PostAction(CamelModel):
    """
    PATCH /posts/{id} body. userId and commentData.authorId are optional;
    when sent they must name the caller.
    """
    action: Literal["like", "unlike", "add-comment", "delete-comment"]
    user_id: Optional[str] = None
    comment_id: Optional[str] = None
    comment_data: Optional[CommentData] = None

    @model_validator(mode="after")
    def check_action_fields(self):
        if self.action == "add-comment" and self.comment_data is None:
            raise ValueError("Comment text is required")
        if self.action == "delete-comment" and not self.comment_id:
            raise ValueError("Comment ID is required for delete action")
        return self


class CommentResponse(CamelModel):
    id: str
    text: str
    author_id: str
    author_name: str
    created_at: datetime


class PostResponse(CamelModel):
    id: str
    title: str
    description: str
    content: str
    image_url: str
    author_id: str
    author_name: str
    created_at: datetime
    likes: list[str]
    comments: list[CommentResponse]


class AdminPostResponse(PostResponse):
    likes_count: int
    comments_count: int


class PostEnvelope(CamelModel):
    message: Optional[str] = None
    post: PostResponse


class PostListResponse(CamelModel):
    posts: list[PostResponse]


class CommentEnvelope(CamelModel):
    message: str
    comment: CommentResponse


class AdminPostListResponse(CamelModel):
    success: bool = True
    posts: list[AdminPostResponse]
    total: int


class AdminPostUpdateRequest(CamelModel):
    post_id: str
    updates: PostUpdate


class AdminPostDeleteRequest(CamelModel):
    post_id: str


class DeletedPostResponse(CamelModel):
    success: bool = True
    message: str
    deleted_post_id: str


# --------------------- About page ---------------------

class SocialLinks(CamelModel):
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None


class TeamMemberCreate(CamelModel):
    name: str
    position: str
    bio: str
    image_url: Optional[str] = None
    email: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    order: int = 0

    @field_validator("name", "position", "bio")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name, position, and bio are required")
        return v.strip()


class TeamMemberUpdate(CamelModel):
    name: Optional[str] = None
    position: Optional[str] = None
    bio: Optional[str] = None
    image_url: Optional[str] = None
    email: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class TeamMemberResponse(CamelModel):
    id: str
    name: str
    position: str
    bio: str
    image_url: str
    email: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TeamMemberEnvelope(CamelModel):
    success: bool = True
    member: TeamMemberResponse


class AboutResponse(CamelModel):
    success: bool = True
    content: dict[str, Any]


class AboutPostRequest(CamelModel):
    """
    Either a single section replacement ({section, content}) or a team
    member creation ({action: "createTeamMember", teamMember}).
    """
    section: Optional[str] = None
    content: Optional[Any] = None
    action: Optional[Literal["createTeamMember"]] = None
    team_member: Optional[TeamMemberCreate] = None

    @model_validator(mode="after")
    def check_shape(self):
        if self.action == "createTeamMember":
            if self.team_member is None:
                raise ValueError("Name, position, and bio are required")
        elif not self.section or self.content is None:
            raise ValueError("Section and content are required")
        return self


class AboutPutRequest(CamelModel):
    """
    Either several sections at once ({updates}) or a team member edit
    ({action: "updateTeamMember", teamMemberId, teamMemberUpdates}).
    """
    updates: Optional[dict[str, Any]] = None
    action: Optional[Literal["updateTeamMember"]] = None
    team_member_id: Optional[str] = None
    team_member_updates: Optional[TeamMemberUpdate] = None

    @model_validator(mode="after")
    def check_shape(self):
        if self.action == "updateTeamMember":
            if not self.team_member_id or self.team_member_updates is None:
                raise ValueError("Team member ID and updates are required")
        elif not self.updates:
            raise ValueError("Updates are required")
        return self


class TeamMemberDeleteRequest(CamelModel):
    team_member_id: str


class TeamMemberReorderRequest(CamelModel):
    ordered_ids: list[str]


class SuccessResponse(CamelModel):
    success: bool = True
