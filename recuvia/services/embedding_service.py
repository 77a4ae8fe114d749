import io
import logging
import threading
from typing import List, Optional, Any

import numpy as np
from PIL import Image, UnidentifiedImageError

from recuvia.config import settings
from recuvia.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


def check_dimension(embedding: List[float], dimension: int) -> List[float]:
    """
    Reject embeddings whose size does not match the database vector column
    """
    if len(embedding) != dimension:
        raise EmbeddingError(
            f"Generated embedding dimension ({len(embedding)}) does not match "
            f"expected dimension ({dimension})"
        )
    return embedding


class EmbeddingService:
    """
    CLIP embeddings for item images and text queries.

    Images and text share one embedding space, so a text query can be matched
    against image embeddings stored at upload time. The model is loaded once per
    process, on first use, and shared read-only by all requests afterwards.
    """

    def __init__(self, model_name: Optional[str] = None, dimension: Optional[int] = None):
        self.model_name = model_name or settings.clip_model_name
        self.dimension = dimension or settings.vector_dimension
        self._model = None
        self._lock = threading.Lock()

    def _load_model(self) -> Any:
        from sentence_transformers import SentenceTransformer
        return SentenceTransformer(self.model_name)

    def get_model(self) -> Any:
        if self._model is None:
            with self._lock:
                # Another request may have finished loading while we waited
                if self._model is None:
                    logger.info(f"Initializing embedding model {self.model_name}...")
                    try:
                        self._model = self._load_model()
                    except Exception as e:
                        logger.error(f"Failed to load embedding model {self.model_name}: {str(e)}")
                        raise EmbeddingError(f"Failed to load embedding model: {str(e)}")
                    logger.info("Embedding model loaded successfully")
        return self._model

    def warm_up(self) -> None:
        self.get_model()

    def embed_image(self, image_bytes: bytes) -> List[float]:
        """
        Compute the embedding of an encoded image (JPEG, PNG, ...)
        """
        if not image_bytes:
            raise EmbeddingError("Cannot embed an empty image")

        try:
            image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Could not decode image for embedding: {str(e)}")
            raise EmbeddingError(f"Could not decode image: {str(e)}")

        model = self.get_model()
        try:
            vector = model.encode(image)
        except Exception as e:
            logger.error(f"Image embedding failed: {str(e)}")
            raise EmbeddingError(f"Image embedding failed: {str(e)}")

        return self._to_checked_list(vector)

    def embed_text(self, text: str) -> List[float]:
        model = self.get_model()
        try:
            vector = model.encode(text)
        except Exception as e:
            logger.error(f"Text embedding failed: {str(e)}")
            raise EmbeddingError(f"Text embedding failed: {str(e)}")

        return self._to_checked_list(vector)

    def _to_checked_list(self, vector: Any) -> List[float]:
        embedding = np.asarray(vector, dtype=np.float32).reshape(-1).tolist()
        return check_dimension(embedding, self.dimension)


# Global service instance
embedding_service = EmbeddingService()
