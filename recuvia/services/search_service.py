from typing import List, Dict, Any, Optional, Union
import logging

import httpx

from recuvia.config import settings
from recuvia.exceptions import ValidationError, StorageError, NotFoundError

logger = logging.getLogger(__name__)

UNBOUNDED = "all"

MaxResults = Union[int, str, None]


def parse_threshold(value: Any) -> float:
    """
    Similarity threshold as a float in [0, 1]
    """
    if isinstance(value, bool):
        raise ValidationError("threshold must be a number between 0 and 1")
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        raise ValidationError("threshold must be a number between 0 and 1")

    if threshold != threshold or not 0.0 <= threshold <= 1.0:
        raise ValidationError("threshold must be a number between 0 and 1")

    return threshold


def parse_max_results(value: MaxResults) -> Optional[int]:
    """
    Positive integer, or None for unbounded ("all", empty or missing)
    """
    if isinstance(value, bool):
        raise ValidationError("maxResults must be a positive integer or 'all'")
    if value is None:
        return None

    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("", UNBOUNDED):
            return None
        if not text.isdigit():
            raise ValidationError("maxResults must be a positive integer or 'all'")
        value = int(text)

    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("maxResults must be a positive integer or 'all'")
        value = int(value)

    if not isinstance(value, int) or value < 1:
        raise ValidationError("maxResults must be a positive integer or 'all'")

    return value


def shape_results(rows: List[Dict[str, Any]], threshold: float, max_results: Optional[int]) -> List[Dict[str, Any]]:
    """
    Turn ranked rows into search results: score >= threshold, best first,
    at most max_results entries, embeddings dropped
    """
    results = []
    for row in rows:
        score = row.get("similarity", row.get("score"))
        if score is None:
            continue
        score = float(score)
        if score < threshold:
            continue

        result = {key: value for key, value in row.items() if key not in ("embedding", "similarity")}
        result["score"] = score
        results.append(result)

    results.sort(key=lambda x: x["score"], reverse=True)

    if max_results is not None:
        results = results[:max_results]

    return results


class SearchService:
    """
    Similarity search over found items.
    Ranking happens in the database; this service validates parameters,
    builds the query vector and shapes the response.
    """

    def __init__(self, supabase=None, embedder=None, http_timeout: float = 30.0):
        if supabase is None:
            from recuvia.database.supabase_client import supabase_client as supabase
        if embedder is None:
            from recuvia.services.embedding_service import embedding_service as embedder

        self.supabase = supabase
        self.embedder = embedder
        self.http_timeout = http_timeout

    def _search(self, embedding: List[float], threshold: float, max_results: Optional[int]) -> List[Dict[str, Any]]:
        rows = self.supabase.match_items(
            query_embedding=embedding,
            similarity_threshold=threshold,
            match_count=max_results
        )
        results = shape_results(rows, threshold, max_results)
        logger.info(f"Search returned {len(results)} items (threshold={threshold}, max_results={max_results or 'all'})")
        return results

    def search_by_text(self, query: Optional[str], threshold: Any = 0.1, max_results: MaxResults = None) -> List[Dict[str, Any]]:
        threshold = parse_threshold(threshold)
        max_results = parse_max_results(max_results)

        if not query or not query.strip():
            return []

        embedding = self.embedder.embed_text(query.strip())
        return self._search(embedding, threshold, max_results)

    def search_by_image(self, image_bytes: Optional[bytes], threshold: Any = 0.5, max_results: MaxResults = None) -> List[Dict[str, Any]]:
        threshold = parse_threshold(threshold)
        max_results = parse_max_results(max_results)

        if not image_bytes:
            raise ValidationError("Missing required field: image")

        embedding = self.embedder.embed_image(image_bytes)
        return self._search(embedding, threshold, max_results)

    def fetch_image(self, image_url: str) -> bytes:
        try:
            response = httpx.get(image_url, timeout=self.http_timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch image {image_url}: {str(e)}")
            raise StorageError(f"Failed to fetch image: {str(e)}")

        if not response.content:
            raise StorageError(f"Fetched image is empty: {image_url}")

        return response.content

    def search_by_item(self, item_id: Optional[str] = None, image_url: Optional[str] = None,
                       threshold: Any = 0.5, max_results: MaxResults = None) -> List[Dict[str, Any]]:
        """
        Search with the image of an item that is already stored
        """
        threshold = parse_threshold(threshold)
        max_results = parse_max_results(max_results)

        if image_url:
            # Only images from the project's own bucket may be fetched
            if not settings.supabase_url or not image_url.startswith(settings.public_storage_prefix):
                logger.warning(f"Rejected image URL outside the item bucket: {image_url}")
                raise ValidationError("imageUrl must point to an image stored by this service")
        else:
            if not item_id:
                raise ValidationError("Either itemId or imageUrl is required")
            item = self.supabase.get_item(item_id)
            if not item:
                raise NotFoundError(f"Item not found: {item_id}")
            image_url = item.get("url")
            if not image_url:
                raise StorageError(f"Item {item_id} has no image")

        image_bytes = self.fetch_image(image_url)
        return self.search_by_image(image_bytes, threshold, max_results)


# Global service instance
search_service = SearchService()
