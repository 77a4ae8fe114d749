# Found-item Ingestion Orchestrator
from typing import Dict, Any, Optional
from functools import partial
import logging
import time
import uuid
from langgraph.graph import StateGraph, END

# LangSmith tracing
from langsmith import traceable

from recuvia.config import settings
from recuvia.exceptions import RecuviaError, ValidationError
from recuvia.models.item_models import AuthenticatedUser
from recuvia.models.pipeline_models import IngestionState
from recuvia.pipelines.ingestion.store_image_node import store_image_node
from recuvia.pipelines.ingestion.embed_image_node import embed_image_node
from recuvia.pipelines.ingestion.persist_item_node import persist_item_node

logger = logging.getLogger(__name__)


def validate_submission(title: Optional[str], location: Optional[str], image_bytes: Optional[bytes]) -> None:
    """
    Reject a submission missing any required field.
    Runs before anything is written to storage or the database.
    """
    missing = []
    if not title or not title.strip():
        missing.append("title")
    if not location or not location.strip():
        missing.append("location")
    if not image_bytes:
        missing.append("image")

    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class IngestionOrchestrator:
    """
    Orchestrator for the found-item upload pipeline

    Pipeline Flow:
    1. Store the image in object storage and resolve its public URL
    2. Compute the image embedding
    3. Insert the item row with its embedding (with retries)

    Processing status is tracked per item id for progress polling. Nothing is
    rolled back on failure: an image may stay in storage without a row.
    """

    def __init__(self, supabase=None, embedder=None, status_store=None, max_retries: Optional[int] = None):
        if supabase is None:
            from recuvia.database.supabase_client import supabase_client as supabase
        if embedder is None:
            from recuvia.services.embedding_service import embedding_service as embedder
        if status_store is None:
            from recuvia.services.processing_status import processing_status_store as status_store

        self.supabase = supabase
        self.embedder = embedder
        self.status_store = status_store
        self.max_retries = max_retries if max_retries is not None else settings.insert_max_retries
        self.graph = None
        self._build_graph()

    def _build_graph(self):
        """Build the ingestion LangGraph workflow"""
        try:
            workflow = StateGraph(IngestionState)

            workflow.add_node("store_image", partial(store_image_node, supabase=self.supabase))
            workflow.add_node("embed_image", partial(embed_image_node, embedder=self.embedder))
            workflow.add_node("persist_item", partial(persist_item_node, supabase=self.supabase, max_retries=self.max_retries))

            workflow.set_entry_point("store_image")
            workflow.add_edge("store_image", "embed_image")
            workflow.add_edge("embed_image", "persist_item")
            workflow.add_edge("persist_item", END)

            self.graph = workflow.compile()
            logger.info("Ingestion LangGraph workflow compiled successfully")

        except Exception as e:
            logger.error(f"Error building ingestion LangGraph workflow: {str(e)}")
            self.graph = None

    def _run_pipeline(self, state: IngestionState) -> IngestionState:
        if self.graph:
            return self.graph.invoke(state)

        # Sequential execution when the graph could not be compiled
        state = store_image_node(state, supabase=self.supabase)
        state = embed_image_node(state, embedder=self.embedder)
        return persist_item_node(state, supabase=self.supabase, max_retries=self.max_retries)

    @traceable(name="ingestion_pipeline")
    def ingest(self, user: AuthenticatedUser, title: str, location: str, image_bytes: bytes,
               image_name: str = "", content_type: str = "image/jpeg",
               description: Optional[str] = None) -> Dict[str, Any]:
        """
        Main entry point for uploading a found item

        Returns dict with success, itemId, imageUrl and processingTime (ms).
        Raises ValidationError before any side effect, then StorageError,
        EmbeddingError or PersistenceError for the failing stage.
        """
        start_time = time.monotonic()

        validate_submission(title, location, image_bytes)

        item_id = str(uuid.uuid4())
        self.status_store.start(item_id)
        logger.info(f"Starting ingestion of item {item_id} for user {user.id}")

        initial_state: IngestionState = {
            "item_id": item_id,
            "title": title.strip(),
            "description": (description or "").strip(),
            "location": location.strip(),
            "image_bytes": image_bytes,
            "image_name": image_name or "image.jpg",
            "content_type": content_type or "image/jpeg",
            "user_id": user.id,
            "user_email": user.email,
            "user_client": user.client,
            "file_name": None,
            "image_url": None,
            "embedding": None,
            "record": None,
            "insert_attempts": 0,
            "pipeline_step": "initialized"
        }

        try:
            result = self._run_pipeline(initial_state)
        except RecuviaError as e:
            logger.error(f"Ingestion of item {item_id} failed: {e.message}")
            self.status_store.fail(item_id, e.message)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error ingesting item {item_id}")
            self.status_store.fail(item_id, str(e))
            raise RecuviaError(str(e))

        self.status_store.complete(item_id)
        processing_time = int((time.monotonic() - start_time) * 1000)

        logger.info(f"Upload and insert successful for item {item_id} in {processing_time}ms "
                    f"after {result.get('insert_attempts')} insert attempt(s)")

        return {
            "success": True,
            "itemId": item_id,
            "imageUrl": result["image_url"],
            "processingTime": processing_time
        }
