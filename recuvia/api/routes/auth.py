from fastapi import APIRouter, Depends, Response
import logging

from recuvia.api.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_current_user,
    get_supabase_client,
)
from recuvia.config import settings
from recuvia.database.supabase_client import SupabaseClient
from recuvia.models.item_models import AuthenticatedUser
from recuvia.models.request_models import SignInRequest
from recuvia.models.response_models import BaseResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

COOKIE_MAX_AGE = 7 * 24 * 60 * 60


def _set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    for key, value in ((ACCESS_TOKEN_COOKIE, access_token), (REFRESH_TOKEN_COOKIE, refresh_token)):
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            max_age=COOKIE_MAX_AGE,
            secure=settings.cookie_secure,
            samesite="lax",
            path="/"
        )


@router.post("/signin", response_model=UserResponse)
def sign_in(request: SignInRequest, response: Response, supabase: SupabaseClient = Depends(get_supabase_client)):
    session = supabase.sign_in(request.email, request.password)
    _set_session_cookies(response, session["access_token"], session["refresh_token"])
    return {"user": {"id": session["user_id"], "email": session.get("email")}}


@router.post("/signout", response_model=BaseResponse)
def sign_out(response: Response):
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")
    return {"success": True}


@router.get("/me", response_model=UserResponse)
def current_user(response: Response, user: AuthenticatedUser = Depends(get_current_user)):
    # Keep cookies current when the session was refreshed
    if user.access_token and user.refresh_token:
        _set_session_cookies(response, user.access_token, user.refresh_token)
    return {"user": {"id": user.id, "email": user.email or None}}
