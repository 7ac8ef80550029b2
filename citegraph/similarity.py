"""
Cosine similarity and ranking.
"""

from typing import List, Sequence, Tuple, TypeVar

import numpy as np

from citegraph.validation_and_errors import ContractViolation


T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    dot(a, b) / (|a| * |b|).

    Vectors must have equal length. When either norm is zero the similarity
    is 0.0, which keeps the pair out of any strictly-positive ranking.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or vb.ndim != 1:
        raise ContractViolation("cosine_similarity expects one-dimensional vectors")
    if va.shape != vb.shape:
        raise ContractViolation(
            f"Vector dimension mismatch: {va.shape[0]} != {vb.shape[0]}"
        )

    na = np.linalg.norm(va)
    nb = np.linalg.norm(vb)
    if na == 0 or nb == 0:
        return 0.0
    return float(np.dot(va, vb) / (na * nb))


def rank_by_similarity(
    query_embedding: Sequence[float],
    items: Sequence[T],
    embeddings: Sequence[Sequence[float]],
    threshold: float = 0.0,
) -> List[Tuple[T, float]]:
    """
    Score every item against the query, keep scores strictly above
    `threshold`, and order by score descending.

    Equal scores keep their input order (sorted() is stable), and scores are
    compared at full precision.
    """
    if len(items) != len(embeddings):
        raise ContractViolation(
            f"{len(items)} items but {len(embeddings)} embeddings"
        )

    scored = [
        (item, cosine_similarity(query_embedding, embedding))
        for item, embedding in zip(items, embeddings)
    ]
    kept = [(item, score) for item, score in scored if score > threshold]
    return sorted(kept, key=lambda pair: pair[1], reverse=True)
