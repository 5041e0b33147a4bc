"""Graph source and score sink contracts, plus an in-memory backend."""

from .base import GraphSource, ScoreSink
from .memory import InMemoryTrustStore

__all__ = [
    "GraphSource",
    "InMemoryTrustStore",
    "ScoreSink",
]
