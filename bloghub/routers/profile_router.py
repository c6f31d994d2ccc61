from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bloghub.database import get_db
from bloghub.dependencies import get_current_user
from bloghub.models import User
from bloghub.schemas import ProfileUpdate, UserEnvelope
from bloghub.users import update_user

router = APIRouter(prefix="/profile", tags=["profile"])


@router.put("", response_model=UserEnvelope)
def update_profile(
    request: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's own profile. Only fields present in the body change;
    an empty profilePicture removes the picture.
    """
    changes = request.model_dump(exclude_unset=True)
    if "profile_picture" in changes:
        changes["profile_picture"] = changes["profile_picture"] or None

    user = update_user(db, user, changes)
    return {"message": "Profile updated successfully", "user": user}
