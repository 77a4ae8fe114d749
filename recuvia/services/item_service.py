from typing import List, Dict, Any
import logging

from recuvia.config import settings
from recuvia.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from recuvia.models.item_models import AuthenticatedUser

logger = logging.getLogger(__name__)


class ItemService:
    """
    Browsing and deletion of found items
    """

    def __init__(self, supabase=None):
        if supabase is None:
            from recuvia.database.supabase_client import supabase_client as supabase
        self.supabase = supabase

    def list_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self.supabase.list_items(limit=limit)

    def can_delete(self, user: AuthenticatedUser, item: Dict[str, Any]) -> bool:
        """
        Owners and privileged accounts (ADMIN_EMAILS) may delete an item
        """
        if item.get("submitter_id") and item.get("submitter_id") == user.id:
            return True
        return bool(user.email) and user.email.lower() in settings.admin_emails

    def delete_item(self, user: AuthenticatedUser, item_id: str, file_name: str) -> None:
        """
        Remove the stored image, then the item row.
        There is no compensation if the second step fails after the first succeeded.
        """
        item = self.supabase.get_item(item_id)
        if not item:
            raise NotFoundError(f"Item not found: {item_id}")

        if not self.can_delete(user, item):
            logger.warning(f"User {user.id} attempted to delete item {item_id} owned by {item.get('submitter_id')}")
            raise PermissionDeniedError("You can only delete items you reported")

        # Stored images are named "<item id>-<original name>"
        if not file_name.startswith(f"{item_id}-") or "/" in file_name:
            logger.warning(f"User {user.id} sent file name {file_name} that does not belong to item {item_id}")
            raise ValidationError(f"fileName does not belong to item {item_id}")

        self.supabase.delete_image(user.client, file_name)
        self.supabase.delete_item(user.client, item_id)

        logger.info(f"Item {item_id} deleted by user {user.id}")


# Global service instance
item_service = ItemService()
