"""
Back office: user management, post moderation and About page editing.

Every route depends on get_admin_context, so anything short of a live
admin session is turned away with 401 before the handler runs.
"""
import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from bloghub import about, posts, users
from bloghub.database import get_db
from bloghub.dependencies import AuthContext, get_admin_context
from bloghub.errors import NotFound
from bloghub.routers.about_router import about_payload
from bloghub.schemas import (
    AboutPostRequest,
    AboutPutRequest,
    AboutResponse,
    AdminPostDeleteRequest,
    AdminPostListResponse,
    AdminPostResponse,
    AdminPostUpdateRequest,
    AdminUserActionRequest,
    AdminUserCreate,
    AdminUserDeleteRequest,
    AdminUserUpdateRequest,
    DeletedPostResponse,
    DeletedUserResponse,
    SuccessResponse,
    TeamMemberDeleteRequest,
    TeamMemberEnvelope,
    TeamMemberReorderRequest,
    TeamMemberResponse,
    UserEnvelope,
    UserListResponse,
)

router = APIRouter(prefix="/admin", tags=["admin"])


# --------------------- Users ---------------------

@router.get("/users", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = "",
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    found, total = users.list_users(db, page=page, limit=limit, search=search.strip())
    return {
        "users": found,
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit),
        "has_next": page * limit < total,
        "has_prev": page > 1,
    }


@router.post("/users", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(
    request: AdminUserCreate,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    user = users.create_user(
        db,
        username=request.username,
        email=request.email,
        phone_number=request.phone_number,
        gender=request.gender,
        password=request.password,
        is_admin=request.is_admin,
    )
    return {"message": "User created successfully", "user": user}


@router.put("/users", response_model=UserEnvelope)
def update_user(
    request: AdminUserUpdateRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    user = users.find_user_by_id(db, request.user_id)
    if not user:
        raise NotFound("User not found")

    changes = request.updates.model_dump(exclude_unset=True)
    # An admin cannot change their own admin flag
    user = users.update_user(db, user, changes, allow_admin_flag=user.id != admin.user.id)
    return {"message": "User updated successfully", "user": user}


@router.delete("/users", response_model=DeletedUserResponse)
def delete_user(
    request: AdminUserDeleteRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    """
    Delete a non-admin account with its posts and sessions.
    """
    users.delete_user_as_admin(db, request.user_id, admin.user.id)
    return DeletedUserResponse(
        message="User account deleted successfully",
        deleted_user_id=request.user_id,
    )


@router.patch("/users", response_model=UserEnvelope)
def user_action(
    request: AdminUserActionRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    # toggleAdmin is the only action; the schema rejects anything else
    user = users.toggle_admin(db, request.user_id, admin.user.id)
    return {"message": "User updated successfully", "user": user}


# --------------------- Posts ---------------------

@router.get("/posts", response_model=AdminPostListResponse)
def list_posts(
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    rows = [AdminPostResponse.model_validate(post) for post in posts.list_posts(db)]
    return AdminPostListResponse(posts=rows, total=len(rows))


@router.put("/posts", response_model=SuccessResponse)
def update_post(
    request: AdminPostUpdateRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    post = posts.get_post_or_404(db, request.post_id)
    posts.update_post(db, post, request.updates.changes())
    return SuccessResponse()


@router.delete("/posts", response_model=DeletedPostResponse)
def delete_post(
    request: AdminPostDeleteRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    post = posts.get_post_or_404(db, request.post_id)
    posts.delete_post(db, post)
    return DeletedPostResponse(
        message="Post deleted successfully",
        deleted_post_id=request.post_id,
    )


# --------------------- About page ---------------------

@router.get("/about", response_model=AboutResponse)
def get_about(
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    return AboutResponse(content=about_payload(db, active_only=False))


@router.post("/about")
def update_about_section(
    request: AboutPostRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    """
    Replace one section of the page, or create a team member when
    action is createTeamMember.
    """
    if request.action == "createTeamMember":
        member = about.create_team_member(db, request.team_member.model_dump())
        return TeamMemberEnvelope(member=TeamMemberResponse.model_validate(member))

    about.update_about_content(db, {request.section: request.content})
    return SuccessResponse()


@router.put("/about")
def update_about(
    request: AboutPutRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    """
    Replace several sections at once, or edit a team member when action is
    updateTeamMember.
    """
    if request.action == "updateTeamMember":
        changes = request.team_member_updates.model_dump(exclude_unset=True)
        member = about.update_team_member(db, request.team_member_id, changes)
        return TeamMemberEnvelope(member=TeamMemberResponse.model_validate(member))

    about.update_about_content(db, request.updates)
    return SuccessResponse()


@router.delete("/about", response_model=SuccessResponse)
def delete_team_member(
    request: TeamMemberDeleteRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    about.delete_team_member(db, request.team_member_id)
    return SuccessResponse()


@router.patch("/about", response_model=SuccessResponse)
def reorder_team_members(
    request: TeamMemberReorderRequest,
    admin: AuthContext = Depends(get_admin_context),
    db: Session = Depends(get_db)
):
    about.reorder_team_members(db, request.ordered_ids)
    return SuccessResponse()
