from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from bloghub import posts
from bloghub.database import get_db
from bloghub.dependencies import (
    authenticate_request,
    check_ownership_or_admin,
    get_auth_token,
    get_current_user,
)
from bloghub.errors import Forbidden
from bloghub.models import User
from bloghub.schemas import (
    CommentEnvelope,
    CommentResponse,
    MessageResponse,
    PostAction,
    PostCreate,
    PostEnvelope,
    PostListResponse,
    PostUpdate,
)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
def list_posts(
    author_id: Optional[str] = Query(None, alias="authorId"),
    db: Session = Depends(get_db)
):
    """
    All posts, newest first. authorId narrows the list to one writer.
    """
    if author_id:
        return {"posts": posts.list_posts_by_author(db, author_id)}
    return {"posts": posts.list_posts(db)}


@router.post("", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
def create_post(
    request: PostCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Publish a post as the logged-in user.
    """
    post = posts.create_post(
        db,
        author=user,
        title=request.title,
        content=request.content,
        description=request.description,
        image_url=request.image_url,
    )
    return {"message": "Post created successfully", "post": post}


@router.get("/{post_id}", response_model=PostEnvelope)
def get_post(post_id: str, db: Session = Depends(get_db)):
    return {"post": posts.get_post_or_404(db, post_id)}


@router.put("/{post_id}", response_model=MessageResponse)
def update_post(
    post_id: str,
    request: PostUpdate,
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db)
):
    """
    Edit a post. Only its author or an admin may do this.
    """
    ctx = authenticate_request(db, token)
    post = posts.get_post_or_404(db, post_id)
    check_ownership_or_admin(ctx, post.author_id, "You can only edit your own posts")

    posts.update_post(db, post, request.changes())
    return MessageResponse(message="Post updated successfully")


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: str,
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db)
):
    """
    Delete a post with its comments and likes. Author or admin only.
    """
    ctx = authenticate_request(db, token)
    post = posts.get_post_or_404(db, post_id)
    check_ownership_or_admin(ctx, post.author_id, "You can only delete your own posts")

    posts.delete_post(db, post)
    return MessageResponse(message="Post deleted successfully")


@router.patch("/{post_id}")
def post_action(
    post_id: str,
    request: PostAction,
    token: Optional[str] = Depends(get_auth_token),
    db: Session = Depends(get_db)
):
    """
    Social actions on a post: like, unlike, add-comment, delete-comment.

    Any logged-in user may like or comment, but only as themselves.
    Comments can be deleted by their author or an admin.
    """
    ctx = authenticate_request(db, token)
    user = ctx.user
    post = posts.get_post_or_404(db, post_id)

    if request.action in ("like", "unlike"):
        if request.user_id is not None and request.user_id != user.id:
            raise Forbidden(f"Cannot {request.action} post as another user")
        if request.action == "like":
            posts.like_post(db, post, user.id)
            return MessageResponse(message="Post liked successfully")
        posts.unlike_post(db, post, user.id)
        return MessageResponse(message="Post unliked successfully")

    if request.action == "add-comment":
        data = request.comment_data
        if data.author_id is not None and data.author_id != user.id:
            raise Forbidden("Cannot add comment as another user")
        comment = posts.add_comment(db, post, user, data.text)
        return CommentEnvelope(
            message="Comment added successfully",
            comment=CommentResponse.model_validate(comment),
        )

    comment = posts.get_comment_or_404(post, request.comment_id)
    check_ownership_or_admin(ctx, comment.author_id, "You can only delete your own comments")
    posts.delete_comment(db, post, comment)
    return MessageResponse(message="Comment deleted successfully")
