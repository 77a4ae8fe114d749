# Pydantic models for outgoing API responses
from pydantic import BaseModel
from typing import List, Optional

from .item_models import Item, SearchResult


class BaseResponse(BaseModel):
    """Base response model for API endpoints"""
    success: bool = True
    message: Optional[str] = None


class UploadResponse(BaseModel):
    success: bool = True
    itemId: str
    imageUrl: str
    processingTime: int


class SearchResponse(BaseModel):
    items: List[SearchResult]


class ItemListResponse(BaseModel):
    items: List[Item]


class ProcessingStatusResponse(BaseModel):
    itemId: str
    status: str
    message: str
    timestamp: int


class UserInfo(BaseModel):
    id: str
    email: Optional[str] = None


class UserResponse(BaseModel):
    user: UserInfo
