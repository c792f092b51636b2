from .direct_store import DirectCardStore

__all__ = ["DirectCardStore"]
