from .meilisearch_client import MeilisearchClient

__all__ = ["MeilisearchClient"]
