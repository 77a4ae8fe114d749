# Models for lost-and-found items
from pydantic import BaseModel
from typing import List, Optional, Any


class Item(BaseModel):
    id: str
    title: str
    description: Optional[str] = ""
    location: str
    url: str
    submitter_id: Optional[str] = None
    submitter_email: Optional[str] = None
    created_at: Optional[str] = None


class ItemRecord(Item):
    """Row as written by the ingestion pipeline, embedding included"""
    embedding: List[float]


class SearchResult(Item):
    score: float


class AuthenticatedUser(BaseModel):
    """Caller identity plus the Supabase client holding their session"""
    id: str
    email: str = ""
    access_token: str = ""
    refresh_token: str = ""
    client: Any = None

    class Config:
        arbitrary_types_allowed = True
