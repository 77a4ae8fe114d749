from supabase import create_client, Client
from supabase.lib.client_options import SyncClientOptions
from typing import List, Dict, Any, Optional
import logging

from recuvia.config import settings
from recuvia.exceptions import AuthenticationError, StorageError, PersistenceError

logger = logging.getLogger(__name__)

ITEM_COLUMNS = "id, title, description, location, url, submitter_id, submitter_email, created_at"


def _session_options() -> SyncClientOptions:
    """
    Options for clients that hold a user session.
    They never start the SDK's background refresh timer; set_session refreshes
    an expired access token on the next request instead.
    """
    return SyncClientOptions(auto_refresh_token=False, persist_session=False)


class SupabaseClient:
    """
    Thin wrapper around the Supabase project used by Recuvia.

    The anonymous client serves public reads (browsing, similarity search) and sign-in.
    Writes go through a per-request client carrying the caller's session, so the
    project's row-level security policies apply to them.
    """

    def __init__(self):
        self._client: Optional[Client] = None

    def _create(self, options: Optional[SyncClientOptions] = None) -> Client:
        url = settings.supabase_url
        key = settings.supabase_anon_key

        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment variables")

        return create_client(url, key, options=options)

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = self._create()
        return self._client

    # ============= AUTH =============

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email and password.
        Returns the user and session tokens to be stored in cookies.
        """
        try:
            # A fresh client so the shared anonymous client never holds a user session
            response = self._create(_session_options()).auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"Sign-in failed for {email}: {str(e)}")
            raise AuthenticationError(f"Invalid login credentials: {str(e)}")

        if not response.session or not response.user:
            raise AuthenticationError("Invalid login credentials")

        logger.info(f"User signed in: {response.user.id}")
        return {
            "user_id": response.user.id,
            "email": response.user.email,
            "access_token": response.session.access_token,
            "refresh_token": response.session.refresh_token,
        }

    def session_client(self, access_token: str, refresh_token: str) -> Dict[str, Any]:
        """
        Build a request-scoped client holding the caller's session.

        Returns dict with the client and the session's user.
        Raises AuthenticationError when the tokens are missing or rejected.
        """
        if not access_token or not refresh_token:
            raise AuthenticationError("No active session")

        user_client = self._create(_session_options())
        try:
            response = user_client.auth.set_session(access_token, refresh_token)
        except Exception as e:
            logger.warning(f"Session validation failed: {str(e)}")
            raise AuthenticationError(f"Invalid session: {str(e)}")

        if not response or not response.user:
            raise AuthenticationError("No active session")

        session = response.session
        return {
            "client": user_client,
            "user_id": response.user.id,
            "email": response.user.email or "",
            # set_session may have refreshed an expired access token
            "access_token": session.access_token if session else access_token,
            "refresh_token": session.refresh_token if session else refresh_token,
        }

    # ============= STORAGE =============

    def upload_image(self, client: Client, file_name: str, data: bytes, content_type: str = "image/jpeg") -> None:
        try:
            client.storage.from_(settings.bucket).upload(
                file_name,
                data,
                {"content-type": content_type or "image/jpeg"}
            )
        except Exception as e:
            logger.error(f"Storage upload error for {file_name}: {str(e)}")
            raise StorageError(f"Storage upload error: {str(e)}")

        logger.info(f"Uploaded {len(data)} bytes to {settings.bucket}/{file_name}")

    def get_public_url(self, client: Client, file_name: str) -> str:
        try:
            url = client.storage.from_(settings.bucket).get_public_url(file_name)
        except Exception as e:
            logger.error(f"Storage getPublicUrl error for {file_name}: {str(e)}")
            raise StorageError(f"Failed to get public URL for uploaded image: {str(e)}")

        if not url:
            logger.warning(f"Storage getPublicUrl returned empty URL for: {file_name}")
            raise StorageError("Failed to get public URL for uploaded image.")

        return url

    def delete_image(self, client: Client, file_name: str) -> None:
        try:
            client.storage.from_(settings.bucket).remove([file_name])
        except Exception as e:
            logger.error(f"Storage delete error for {file_name}: {str(e)}")
            raise StorageError(f"Storage delete error: {str(e)}")

        logger.info(f"Removed {settings.bucket}/{file_name}")

    # ============= ITEMS =============

    def insert_item(self, client: Client, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert an item row with its embedding.

        Errors are not wrapped: the caller's retry loop inspects the
        Postgres error code (e.g. 42501 for row-level security).
        """
        response = client.table(settings.items_table).insert(row).execute()

        if not response.data:
            raise PersistenceError(f"Insert returned no data for item {row.get('id')}")

        return response.data[0]

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.table(settings.items_table).select(ITEM_COLUMNS).eq("id", item_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching item {item_id}: {str(e)}")
            raise PersistenceError(f"Failed to fetch item: {str(e)}")

        if response.data:
            return response.data[0]

        return None

    def list_items(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Most recent items first, without embeddings
        """
        try:
            response = self.client.table(settings.items_table).select(ITEM_COLUMNS).order(
                "created_at", desc=True
            ).limit(limit).execute()
        except Exception as e:
            logger.error(f"Error listing items: {str(e)}")
            raise PersistenceError(f"Failed to list items: {str(e)}")

        return response.data if response.data else []

    def delete_item(self, client: Client, item_id: str) -> None:
        try:
            client.table(settings.items_table).delete().eq("id", item_id).execute()
        except Exception as e:
            logger.error(f"Error deleting item {item_id}: {str(e)}")
            raise PersistenceError(f"Database delete error: {str(e)}")

        logger.info(f"Deleted item {item_id}")

    def match_items(self, query_embedding: List[float],
                    similarity_threshold: float,
                    match_count: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Nearest-neighbour search through the match_items database function.
        match_count=None asks for every row above the threshold.
        """
        try:
            response = self.client.rpc(settings.match_function, {
                "query_embedding": query_embedding,
                "match_threshold": similarity_threshold,
                "match_count": match_count,
            }).execute()
        except Exception as e:
            logger.error(f"Error in vector similarity search: {str(e)}")
            raise PersistenceError(f"Similarity search failed: {str(e)}")

        logger.info(f"Found {len(response.data or [])} similar items")
        return response.data if response.data else []


# Global instance
supabase_client = SupabaseClient()
