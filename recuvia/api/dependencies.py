from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, Request

from recuvia.database.supabase_client import SupabaseClient, supabase_client
from recuvia.models.item_models import AuthenticatedUser
from recuvia.pipelines.ingestion_orchestrator import IngestionOrchestrator
from recuvia.services.item_service import ItemService, item_service
from recuvia.services.processing_status import ProcessingStatusStore, processing_status_store
from recuvia.services.search_service import SearchService, search_service

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
REFRESH_TOKEN_HEADER = "x-refresh-token"


def get_supabase_client() -> SupabaseClient:
    return supabase_client


def get_status_store() -> ProcessingStatusStore:
    return processing_status_store


def get_search_service() -> SearchService:
    return search_service


def get_item_service() -> ItemService:
    return item_service


@lru_cache(maxsize=1)
def get_ingestion_orchestrator() -> IngestionOrchestrator:
    return IngestionOrchestrator()


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def get_current_user(request: Request, supabase: SupabaseClient = Depends(get_supabase_client)) -> AuthenticatedUser:
    """
    Resolve the caller from the session cookies (or a bearer token plus refresh token).
    Raises AuthenticationError when there is no valid session.
    """
    access_token = _bearer_token(request) or request.cookies.get(ACCESS_TOKEN_COOKIE)
    refresh_token = request.headers.get(REFRESH_TOKEN_HEADER) or request.cookies.get(REFRESH_TOKEN_COOKIE)

    session = supabase.session_client(access_token, refresh_token)

    logger.info(f"Session retrieved for user {session['user_id']}")
    return AuthenticatedUser(
        id=session["user_id"],
        email=session.get("email") or "",
        access_token=session.get("access_token") or "",
        refresh_token=session.get("refresh_token") or "",
        client=session["client"],
    )
