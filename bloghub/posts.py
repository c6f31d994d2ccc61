from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bloghub.errors import NotFound, ValidationError
from bloghub.models import BlogPost, Comment, PostLike, User

logger = structlog.get_logger()


def list_posts(db: Session) -> list[BlogPost]:
    """Newest first."""
    return db.query(BlogPost).order_by(BlogPost.created_at.desc()).all()


def list_posts_by_author(db: Session, author_id: str) -> list[BlogPost]:
    return (
        db.query(BlogPost)
        .filter(BlogPost.author_id == author_id)
        .order_by(BlogPost.created_at.desc())
        .all()
    )


def get_post(db: Session, post_id: str) -> Optional[BlogPost]:
    return db.query(BlogPost).filter(BlogPost.id == post_id).first()


def get_post_or_404(db: Session, post_id: str) -> BlogPost:
    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    return post


def create_post(
    db: Session,
    author: User,
    title: str,
    content: str,
    description: str = "",
    image_url: str = "",
) -> BlogPost:
    post = BlogPost(
        title=title,
        content=content,
        description=description,
        image_url=image_url,
        author_id=author.id,
        author_name=author.username,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info("posts.created", post_id=post.id, author_id=author.id)
    return post


def update_post(db: Session, post: BlogPost, changes: dict) -> BlogPost:
    for field, value in changes.items():
        setattr(post, field, value)
    db.commit()
    db.refresh(post)

    logger.info("posts.updated", post_id=post.id, fields=sorted(changes))
    return post


def delete_post(db: Session, post: BlogPost):
    post_id = post.id
    db.delete(post)
    db.commit()
    logger.info("posts.deleted", post_id=post_id)


def like_post(db: Session, post: BlogPost, user_id: str):
    if user_id in post.likes:
        raise ValidationError("Post already liked")

    post.like_rows.append(PostLike(user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Post already liked")


def unlike_post(db: Session, post: BlogPost, user_id: str):
    like = next((row for row in post.like_rows if row.user_id == user_id), None)
    if like is None:
        raise ValidationError("Post is not liked")

    post.like_rows.remove(like)
    db.commit()


def add_comment(db: Session, post: BlogPost, author: User, text: str) -> Comment:
    comment = Comment(text=text, author_id=author.id, author_name=author.username)
    post.comments.append(comment)
    db.commit()
    db.refresh(comment)

    logger.info("posts.comment_added", post_id=post.id, comment_id=comment.id)
    return comment


def get_comment_or_404(post: BlogPost, comment_id: str) -> Comment:
    comment = next((c for c in post.comments if c.id == comment_id), None)
    if comment is None:
        raise NotFound("Comment not found in this post")
    return comment


def delete_comment(db: Session, post: BlogPost, comment: Comment):
    post_id, comment_id = post.id, comment.id
    post.comments.remove(comment)
    db.commit()
    logger.info("posts.comment_deleted", post_id=post_id, comment_id=comment_id)
