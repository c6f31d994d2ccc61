"""
About page content and team members.

The page itself is one JSON document in a singleton row, seeded with
DEFAULT_ABOUT_CONTENT the first time it is read. Section updates are
shallow merges: each top-level key sent replaces the stored one.
"""
import copy

import structlog
from sqlalchemy.orm import Session

from bloghub.errors import NotFound
from bloghub.models import AboutContent, TeamMember, utcnow

logger = structlog.get_logger()

ABOUT_PAGE_ID = "about_page"
DEFAULT_MEMBER_IMAGE = "/images/default-avatar.png"
NULLABLE_MEMBER_FIELDS = ("email", "social_links")

DEFAULT_ABOUT_CONTENT = {
    "hero": {
        "title": "About BlogHub",
        "subtitle": "BlogHub",
        "description": (
            "BlogHub is a community where writers and readers come together "
            "to share stories, ideas, and inspiration."
        ),
        "ctaPrimary": "Start Writing Today",
        "ctaSecondary": "Explore Blogs",
    },
    "stats": [
        {"number": "50K+", "label": "Active Writers"},
        {"number": "500K+", "label": "Blog Posts"},
        {"number": "10M+", "label": "Monthly Readers"},
        {"number": "120+", "label": "Countries"},
    ],
    "mission": {
        "title": "Our Mission",
        "description": (
            "To empower every voice by providing a platform where stories can "
            "be shared, discovered, and celebrated."
        ),
        "forWriters": {
            "title": "For Writers",
            "description": "The tools and audience you need, whether you are a seasoned author or just starting out.",
            "features": [
                "Easy-to-use writing tools",
                "Built-in audience growth",
                "Real-time analytics",
            ],
        },
        "forReaders": {
            "title": "For Readers",
            "description": "Discover writers from around the world and explore new topics.",
            "features": [
                "Personalized recommendations",
                "Save your favorite articles",
                "Engage with writers directly",
            ],
        },
    },
    "features": [
        {"icon": "PenTool", "title": "Easy Writing Experience", "description": "An editor that keeps formatting out of your way."},
        {"icon": "Globe", "title": "Global Reach", "description": "Share your stories with readers everywhere."},
        {"icon": "Users", "title": "Vibrant Community", "description": "Writers who share, support, and inspire each other."},
        {"icon": "Shield", "title": "Safe Space", "description": "A respectful and inclusive environment."},
    ],
    "milestones": [
        {"year": "2020", "title": "BlogHub Founded", "description": "Started with a simple mission."},
        {"year": "2021", "title": "First 10K Users", "description": "10,000 writers on board."},
        {"year": "2022", "title": "Mobile App Launch", "description": "Dedicated apps for iOS and Android."},
        {"year": "2023", "title": "Global Recognition", "description": "Named a top emerging platform for creators."},
    ],
    "team": {
        "title": "Meet Our Team",
        "description": "The passionate people behind BlogHub",
    },
}


def _get_or_create(db: Session) -> AboutContent:
    row = db.query(AboutContent).filter(AboutContent.id == ABOUT_PAGE_ID).first()
    if row is None:
        row = AboutContent(id=ABOUT_PAGE_ID, content=copy.deepcopy(DEFAULT_ABOUT_CONTENT))
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def get_about_content(db: Session) -> dict:
    """
    Stored sections layered over the defaults, so sections added to the
    defaults later still show up.
    """
    row = _get_or_create(db)
    return {**copy.deepcopy(DEFAULT_ABOUT_CONTENT), **row.content}


def update_about_content(db: Session, sections: dict) -> dict:
    row = _get_or_create(db)
    # Reassign rather than mutate: the JSON column does not track in-place changes
    row.content = {**row.content, **sections}
    row.updated_at = utcnow()
    db.commit()
    db.refresh(row)

    logger.info("about.updated", sections=sorted(sections))
    return row.content


def list_team_members(db: Session, active_only: bool = True) -> list[TeamMember]:
    query = db.query(TeamMember)
    if active_only:
        query = query.filter(TeamMember.is_active.is_(True))
    return query.order_by(TeamMember.order, TeamMember.created_at).all()


def get_team_member_or_404(db: Session, member_id: str) -> TeamMember:
    member = db.query(TeamMember).filter(TeamMember.id == member_id).first()
    if member is None:
        raise NotFound("Member not found")
    return member


def create_team_member(db: Session, data: dict) -> TeamMember:
    data = dict(data)
    data["image_url"] = data.get("image_url") or DEFAULT_MEMBER_IMAGE
    member = TeamMember(**data, is_active=True)
    db.add(member)
    db.commit()
    db.refresh(member)

    logger.info("about.team_member_created", member_id=member.id)
    return member


def update_team_member(db: Session, member_id: str, changes: dict) -> TeamMember:
    member = get_team_member_or_404(db, member_id)
    for field, value in changes.items():
        if value is None and field not in NULLABLE_MEMBER_FIELDS:
            continue
        setattr(member, field, value)
    member.updated_at = utcnow()
    db.commit()
    db.refresh(member)
    return member


def delete_team_member(db: Session, member_id: str):
    member = get_team_member_or_404(db, member_id)
    db.delete(member)
    db.commit()
    logger.info("about.team_member_deleted", member_id=member_id)


def reorder_team_members(db: Session, ordered_ids: list[str]):
    """
    Position in ordered_ids becomes each member's order. Unknown ids are
    skipped.
    """
    members = {
        m.id: m
        for m in db.query(TeamMember).filter(TeamMember.id.in_(ordered_ids)).all()
    }
    now = utcnow()
    for index, member_id in enumerate(ordered_ids):
        member = members.get(member_id)
        if member is not None:
            member.order = index
            member.updated_at = now
    db.commit()
