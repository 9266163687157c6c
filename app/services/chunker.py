"""Fixed-size sliding-window text chunking."""

from typing import List

CHUNK_SIZE = 500
CHUNK_OVERLAP = 50


def split_text(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> List[str]:
    """Split *text* into windows of *chunk_size* characters.

    Chunk ``i`` covers ``[i * (chunk_size - overlap), i * (chunk_size - overlap) + chunk_size)``;
    the last chunk is the first window that reaches the end of *text*.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not 0 <= overlap < chunk_size:
        raise ValueError("overlap must be non-negative and smaller than chunk_size")
    if not text:
        return []

    step = chunk_size - overlap
    chunks: List[str] = []
    start = 0
    while True:
        chunks.append(text[start : start + chunk_size])
        if start + chunk_size >= len(text):
            return chunks
        start += step
