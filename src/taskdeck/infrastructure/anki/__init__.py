from .repository import CollectionRepository, create_collection

__all__ = ["CollectionRepository", "create_collection"]
