"""Per-text embedding cache shared by the remote gateways."""

from typing import Awaitable, Callable, Dict, List

from cachetools import TTLCache


def create_embedding_cache(maxsize: int, ttl: int) -> TTLCache:
    """Create a TTL cache keyed by input text."""
    return TTLCache(maxsize=maxsize, ttl=ttl)


async def cached_batch(
    cache: TTLCache,
    texts: List[str],
    fetch: Callable[[List[str]], Awaitable[List[List[float]]]],
) -> List[List[float]]:
    """Embed ``texts``, calling ``fetch`` only for texts not already cached.

    Embeddings are deterministic per text, so a cached vector is always
    the one a fresh call would return for the same model.
    """
    found: Dict[str, List[float]] = {}
    missing: List[str] = []
    for text in texts:
        if text in found or text in missing:
            continue
        vector = cache.get(text)
        if vector is None:
            missing.append(text)
        else:
            found[text] = vector

    if missing:
        fetched = await fetch(missing)
        if len(fetched) != len(missing):
            raise ValueError(f"Expected {len(missing)} embeddings, got {len(fetched)}")
        for text, vector in zip(missing, fetched):
            found[text] = vector
            # Writing may evict earlier hits; results come from found, not the cache.
            cache[text] = vector

    return [found[text] for text in texts]
