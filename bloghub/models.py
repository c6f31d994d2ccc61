import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from bloghub.database import Base


def utcnow() -> datetime:
    """
    Naive UTC timestamp.

    SQLite hands datetimes back without tzinfo, so everything stored and
    compared in this app is naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id() -> str:
    return uuid.uuid4().hex


class Gender(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"


class User(Base):
    """
    Account record. Stores credentials, profile data and the admin flag.

    Design notes:
    - username and email keep the casing the user typed; the *_key columns
      hold the lower-cased form and carry the unique constraints, so
      "Alice" and "alice" can never both exist
    - password_hash never leaves the database layer
    - phone_number is unique as stored (digits only)
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)

    username = Column(String(50), nullable=False)
    username_key = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    email_key = Column(String(255), unique=True, nullable=False, index=True)
    phone_number = Column(String(20), unique=True, nullable=False, index=True)

    password_hash = Column(String(255), nullable=False)
    gender = Column(Enum(Gender, name="gender"), nullable=False, default=Gender.other)
    is_admin = Column(Boolean, nullable=False, default=False)
    profile_picture = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"


class Session(Base):
    """
    Server-side session storage.

    Session lifecycle:
    1. Created on login with a random token
    2. Validated on each request against created_at + the configured window
    3. Deleted on logout, account deletion, or lazily once expired/orphaned
    """
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Session(id={self.id}, user_id={self.user_id})>"


class BlogPost(Base):
    __tablename__ = "posts"

    id = Column(String(32), primary_key=True, default=generate_id)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False)
    image_url = Column(String(1024), nullable=False, default="")
    author_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    author_name = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    comments = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    like_rows = relationship("PostLike", cascade="all, delete-orphan")

    @property
    def likes(self) -> list[str]:
        return [like.user_id for like in self.like_rows]

    @property
    def likes_count(self) -> int:
        return len(self.like_rows)

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    def __repr__(self):
        return f"<BlogPost(id={self.id}, author_id={self.author_id})>"


class PostLike(Base):
    """
    One row per (post, user) like. The unique constraint keeps likes a set.
    """
    __tablename__ = "post_likes"

    id = Column(Integer, primary_key=True)
    post_id = Column(String(32), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_like"),
    )


class Comment(Base):
    """
    Comment on a post. author_id/author_name are copied from the commenter
    at write time and are not tied to the users table.
    """
    __tablename__ = "comments"

    id = Column(String(32), primary_key=True, default=generate_id)
    post_id = Column(String(32), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    author_id = Column(String(32), nullable=False)
    author_name = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    post = relationship("BlogPost", back_populates="comments")


class AboutContent(Base):
    """
    Singleton row holding the About page document.
    """
    __tablename__ = "about_content"

    id = Column(String(32), primary_key=True, default="about_page")
    content = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    position = Column(String(100), nullable=False)
    bio = Column(Text, nullable=False)
    image_url = Column(String(1024), nullable=False, default="/images/default-avatar.png")
    email = Column(String(255), nullable=True)
    social_links = Column(JSON, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
