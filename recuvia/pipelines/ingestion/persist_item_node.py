from typing import Any, Dict, TYPE_CHECKING
import logging
import time
from langsmith import traceable
from tenacity import Retrying, RetryError, stop_after_attempt, wait_exponential, before_sleep_log

from recuvia.exceptions import PersistenceError
from recuvia.models.item_models import ItemRecord

if TYPE_CHECKING:
    from recuvia.database.supabase_client import SupabaseClient
    from recuvia.models.pipeline_models import IngestionState

logger = logging.getLogger(__name__)

# Postgres insufficient_privilege, raised when a row-level security policy rejects the write
RLS_VIOLATION_CODE = "42501"


def is_rls_violation(error: Any) -> bool:
    return str(getattr(error, "code", "")) == RLS_VIOLATION_CODE


def _sleep(seconds: float) -> None:
    time.sleep(seconds)


def _insert_once(state: 'IngestionState', supabase: 'SupabaseClient', record: Dict[str, Any]) -> Dict[str, Any]:
    attempt = state.get("insert_attempts", 0) + 1
    state["insert_attempts"] = attempt

    try:
        logger.info(f"Attempt {attempt}: Inserting item {record['id']} for user {record['submitter_id']}")
        stored = supabase.insert_item(state["user_client"], record)
    except Exception as e:
        logger.error(f"Database insert attempt {attempt} failed: {str(e)}")
        if is_rls_violation(e):
            logger.error("RLS policy violation detected. Confirm the insert policy and that the caller's session is attached.")
        raise

    logger.info(f"Insert successful for item {record['id']} on attempt {attempt}")
    return stored


@traceable(name="persist_item")
def persist_item_node(state: 'IngestionState', supabase: 'SupabaseClient', max_retries: int = 3) -> 'IngestionState':
    """
    Insert the item row with its embedding, owned by the caller.

    Retries up to max_retries attempts with exponential backoff (2s, 4s, ...)
    between them. Row-level security rejections are logged separately but are
    retried like any other failure.
    """
    state["pipeline_step"] = "persisting_item"
    state["insert_attempts"] = 0

    record = ItemRecord(
        id=state["item_id"],
        title=state["title"],
        description=state.get("description") or "",
        location=state["location"],
        url=state["image_url"],
        submitter_id=state["user_id"],
        submitter_email=state.get("user_email") or None,
        embedding=state["embedding"],
    ).model_dump(exclude={"created_at"})

    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=2),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=_sleep,
    )

    try:
        stored = retrying(_insert_once, state, supabase, record)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        raise PersistenceError(f"Failed database insert after {max_retries} attempts: {str(last_error)}")

    state["record"] = stored or record
    state["pipeline_step"] = "item_persisted"
    return state
