from typing import Dict, Any, List, Optional
from typing_extensions import TypedDict


class IngestionState(TypedDict, total=False):
    """
    State object for the found-item ingestion pipeline
    Compatible with LangGraph's state handling
    """
    # Input
    item_id: str
    title: str
    description: str
    location: str
    image_bytes: bytes
    image_name: str
    content_type: str
    user_id: str
    user_email: str
    user_client: Any

    # Pipeline data
    file_name: Optional[str]
    image_url: Optional[str]
    embedding: Optional[List[float]]
    record: Optional[Dict[str, Any]]
    insert_attempts: int

    # Pipeline metadata
    pipeline_step: str
