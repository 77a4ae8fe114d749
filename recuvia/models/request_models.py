# Pydantic models for incoming API requests
from pydantic import BaseModel, Field
from typing import Optional, Union


class TextSearchRequest(BaseModel):
    query: str = ""
    threshold: float = 0.1
    maxResults: Optional[Union[int, str]] = None


class ItemSearchRequest(BaseModel):
    itemId: Optional[str] = None
    imageUrl: Optional[str] = None
    threshold: float = 0.5
    maxResults: Optional[Union[int, str]] = None


class DeleteRequest(BaseModel):
    itemId: str = Field(..., min_length=1)
    fileName: str = Field(..., min_length=1)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
