"""
Text similarity functions used for fuzzy cache matching.

All scorers are pure and deterministic and return a value in [0, 1].
The cosine scorer projects text onto a small fixed vocabulary, so words
outside ``VOCABULARY`` do not contribute; two prompts sharing no
vocabulary words score 0 regardless of their other content.
"""

import math
import re
from collections import Counter
from typing import List, Sequence, Union

from rapidfuzz.distance import Levenshtein

from ..config.settings import SimilarityAlgorithm

VOCABULARY: Sequence[str] = (
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "an", "a", "that", "this", "these", "those",
    "i", "you", "he", "she", "it", "we", "they",
    "world", "story", "character", "plot", "scene", "dialogue",
    "narrative", "fiction", "fantasy", "magic", "hero", "villain",
    "quest", "adventure", "kingdom", "castle",
)

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_prompt(text: str) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""
    simplified = _PUNCTUATION.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", simplified).strip()


def _tokens(text: str) -> List[str]:
    return text.lower().split()


def text_to_vector(text: str, vocabulary: Sequence[str] = VOCABULARY) -> List[int]:
    """Term-frequency vector of ``text`` over ``vocabulary``."""
    frequencies = Counter(_tokens(text))
    return [frequencies.get(word, 0) for word in vocabulary]


def cosine_similarity(text1: str, text2: str) -> float:
    vec1 = text_to_vector(text1)
    vec2 = text_to_vector(text2)

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    norm1 = math.sqrt(sum(a * a for a in vec1))
    norm2 = math.sqrt(sum(b * b for b in vec2))

    if norm1 == 0 or norm2 == 0:
        return 0.0
    return min(1.0, dot_product / (norm1 * norm2))


def jaccard_similarity(text1: str, text2: str) -> float:
    set1 = set(_tokens(text1))
    set2 = set(_tokens(text2))
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def levenshtein_distance(str1: str, str2: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    return Levenshtein.distance(str1, str2)


def levenshtein_similarity(text1: str, text2: str) -> float:
    longer_length = max(len(text1), len(text2))
    if longer_length == 0:
        return 1.0
    # (max_len - distance) / max_len
    return Levenshtein.normalized_similarity(text1, text2)


_SCORERS = {
    SimilarityAlgorithm.COSINE: cosine_similarity,
    SimilarityAlgorithm.JACCARD: jaccard_similarity,
    SimilarityAlgorithm.LEVENSHTEIN: levenshtein_similarity,
}


def similarity(
    text1: str,
    text2: str,
    algorithm: Union[SimilarityAlgorithm, str] = SimilarityAlgorithm.COSINE,
) -> float:
    """
    Score two texts with the named algorithm.

    Identical inputs always score 1.0.

    Raises:
        ValueError: If the algorithm is not one of cosine, jaccard, levenshtein
    """
    try:
        scorer = _SCORERS[SimilarityAlgorithm(algorithm)]
    except ValueError:
        raise ValueError(f"Unknown similarity algorithm: {algorithm}")

    if text1 == text2:
        return 1.0
    return scorer(text1, text2)
