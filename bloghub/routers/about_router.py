from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bloghub import about
from bloghub.database import get_db
from bloghub.schemas import AboutResponse, TeamMemberResponse

router = APIRouter(prefix="/about", tags=["about"])


def about_payload(db: Session, active_only: bool = True) -> dict:
    """
    Page document with the team list folded in under teamMembers.
    """
    members = about.list_team_members(db, active_only=active_only)
    return {
        **about.get_about_content(db),
        "teamMembers": [
            TeamMemberResponse.model_validate(m).model_dump(by_alias=True, mode="json")
            for m in members
        ],
    }


@router.get("", response_model=AboutResponse)
def get_about(db: Session = Depends(get_db)):
    """
    Public About page.
    """
    return AboutResponse(content=about_payload(db))
