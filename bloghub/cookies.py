"""
Session cookie helpers.

Setting and clearing go through the same attributes, otherwise a browser
keeps a cookie scoped to a domain the clearing response did not name.
"""
from typing import Optional

from fastapi import Response

from bloghub.config import get_settings

settings = get_settings()


def cookie_domain() -> Optional[str]:
    # Host-only cookie during local development
    return settings.cookie_domain if settings.cookie_domain != "localhost" else None


def set_session_cookie(response: Response, token: str):
    """
    Attach the session token cookie.

    The cookie only holds the opaque token; its max-age matches the
    server-side session window.
    """
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=settings.cookie_httponly,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,
        max_age=settings.session_max_age,
        path="/",
        domain=cookie_domain()
    )


def clear_session_cookie(response: Response):
    """
    Expire the session cookie on the client.
    """
    response.set_cookie(
        key=settings.cookie_name,
        value="",
        httponly=settings.cookie_httponly,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,
        max_age=0,
        path="/",
        domain=cookie_domain()
    )
