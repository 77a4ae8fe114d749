# Found-item ingestion pipeline
# Nodes run in order: store image -> embed image -> persist item

from .store_image_node import store_image_node, storage_file_name
from .embed_image_node import embed_image_node
from .persist_item_node import persist_item_node, is_rls_violation

__all__ = [
    "store_image_node",
    "storage_file_name",
    "embed_image_node",
    "persist_item_node",
    "is_rls_violation"
]
