# Item models
from .item_models import Item, ItemRecord, SearchResult, AuthenticatedUser

# Pipeline models
from .pipeline_models import IngestionState

# Request/Response models
from .request_models import *
from .response_models import *

__all__ = [
    "Item",
    "ItemRecord",
    "SearchResult",
    "AuthenticatedUser",
    "IngestionState"
]
