import os
from typing import List


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings:
    """
    Environment-backed settings for the Recuvia backend.
    Values are read on access so tests and .env loading can change them at runtime.
    """

    @property
    def supabase_url(self) -> str:
        return os.getenv("SUPABASE_URL", "")

    @property
    def supabase_anon_key(self) -> str:
        return os.getenv("SUPABASE_ANON_KEY", "")

    @property
    def bucket(self) -> str:
        return os.getenv("SUPABASE_BUCKET", "item-images")

    @property
    def public_storage_prefix(self) -> str:
        """URL prefix of every public object in the image bucket"""
        return f"{self.supabase_url.rstrip('/')}/storage/v1/object/public/{self.bucket}/"

    @property
    def items_table(self) -> str:
        return os.getenv("SUPABASE_ITEMS_TABLE", "items")

    @property
    def match_function(self) -> str:
        return os.getenv("SUPABASE_MATCH_FUNCTION", "match_items")

    @property
    def clip_model_name(self) -> str:
        return os.getenv("CLIP_MODEL_NAME", "clip-ViT-B-32")

    @property
    def vector_dimension(self) -> int:
        return int(os.getenv("VECTOR_DIMENSION", "512"))

    @property
    def insert_max_retries(self) -> int:
        return int(os.getenv("INSERT_MAX_RETRIES", "3"))

    @property
    def admin_emails(self) -> List[str]:
        return [email.lower() for email in _split_csv(os.getenv("ADMIN_EMAILS", ""))]

    @property
    def processing_status_max_entries(self) -> int:
        return int(os.getenv("PROCESSING_STATUS_MAX_ENTRIES", "1000"))

    @property
    def cors_allow_origins(self) -> List[str]:
        return _split_csv(os.getenv("CORS_ALLOW_ORIGINS", "*")) or ["*"]

    @property
    def preload_model(self) -> bool:
        return os.getenv("PRELOAD_MODEL", "false").lower() in ("1", "true", "yes")

    @property
    def cookie_secure(self) -> bool:
        return os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

    @property
    def log_level(self) -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()


# Global settings instance
settings = Settings()
