from __future__ import annotations

"""Nearest-neighbour identity labels for face embeddings."""

import threading
from typing import List, Tuple

import numpy as np


def _cosine(a: np.ndarray, b: np.ndarray) -> float:
    """Return cosine similarity between vectors ``a`` and ``b``."""
    if not a.any() or not b.any():
        return 0.0
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


class IdentityIndex:
    """In-memory gallery of named reference embeddings."""

    def __init__(self, similarity_thresh: float = 0.6) -> None:
        self.similarity_thresh = similarity_thresh
        self._names: List[str] = []
        self._embeddings: List[np.ndarray] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)

    def add(self, name: str, embedding: np.ndarray) -> None:
        vec = np.asarray(embedding, dtype=np.float32).ravel()
        with self._lock:
            if self._embeddings and vec.shape != self._embeddings[0].shape:
                raise ValueError(
                    f"embedding dim {vec.shape[0]} != {self._embeddings[0].shape[0]}"
                )
            self._names.append(name)
            self._embeddings.append(vec)

    def match(self, embedding: np.ndarray) -> Tuple[str, float]:
        """Return ``(name, score)`` of the best match, ``("", score)`` if none passes."""
        vec = np.asarray(embedding, dtype=np.float32).ravel()
        with self._lock:
            pairs = list(zip(self._names, self._embeddings))
        best_name = ""
        best_score = 0.0
        for name, ref in pairs:
            if ref.shape != vec.shape:
                continue
            score = _cosine(vec, ref)
            if score > best_score:
                best_name, best_score = name, score
        if best_score < self.similarity_thresh:
            return "", best_score
        return best_name, best_score


__all__ = ["IdentityIndex"]
