from pydantic import BaseModel, Field
from typing import Optional, List, Literal
import base64
import zlib

from .requests import TokenUsage


class CacheEntryMetadata(BaseModel):
    """Lookup metadata stored with each cache entry."""
    request_type: str = "general"
    prompt_hash: str
    normalized_prompt: str = ""
    context_hash: Optional[str] = None
    similarity: Optional[float] = None


class CacheEntry(BaseModel):
    """
    A cached provider response.

    ``content`` holds the payload as stored; when ``encoding`` is ``zlib``
    it is base64 text of the compressed UTF-8 bytes. Use ``text()`` to read
    the original content back.
    """
    id: str
    key: str
    content: str
    encoding: Literal["identity", "zlib"] = "identity"
    usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    model: str
    created_at: float
    last_accessed: float
    access_count: int = 0
    ttl: float = Field(..., gt=0, description="Time to live in seconds")
    metadata: CacheEntryMetadata

    def text(self) -> str:
        """Decoded content."""
        if self.encoding == "zlib":
            return zlib.decompress(base64.b64decode(self.content)).decode("utf-8")
        return self.content

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl

    @staticmethod
    def encode_content(content: str) -> str:
        return base64.b64encode(zlib.compress(content.encode("utf-8"))).decode("ascii")


class CacheStats(BaseModel):
    """Counters maintained by the response cache."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    total_requests: int = 0
    semantic_matches: int = 0
    compression_savings: int = 0


class CacheSnapshot(BaseModel):
    """Serializable image of the cache used by persistence backends."""
    entries: List[CacheEntry] = Field(default_factory=list)
    stats: CacheStats = Field(default_factory=CacheStats)
    timestamp: float = 0.0
