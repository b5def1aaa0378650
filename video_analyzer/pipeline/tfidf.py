import re
import math
import logging
from typing import Dict, List, Sequence

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from ..errors import VectorizationError
from ..models import TfidfResult

logger = logging.getLogger("video_analyzer")


# Common English stop words
STOP_WORDS = frozenset([
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "if", "in",
    "into", "is", "it", "no", "not", "of", "on", "or", "such", "that", "the",
    "their", "then", "there", "these", "they", "this", "to", "was", "will", "with",
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves", "you", "your",
    "yours", "yourself", "yourselves", "he", "him", "his", "himself", "she", "her",
    "hers", "herself", "its", "itself", "them", "theirs", "themselves",
    "what", "which", "who", "whom", "when", "where", "why", "how",
    "all", "each", "every", "both", "few", "more", "most", "other", "some",
    "am", "been", "being", "do", "does", "did", "doing", "would", "should",
    "could", "ought", "might", "shall", "can", "need", "dare", "had", "has",
    "have", "having", "s", "t", "d", "ll", "re", "ve", "m",
    "about", "above", "after", "again", "against", "before", "below", "between",
    "during", "from", "further", "here", "just", "nor", "only", "own", "same",
    "so", "than", "too", "very", "now", "don", "didn", "doesn", "hadn", "hasn",
    "haven", "isn", "wasn", "weren", "won", "wouldn", "shouldn", "couldn",
    "down", "off", "out", "over", "under", "until", "up",
])

DEFAULT_MAX_DF = 0.95

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def tokenize(text: str) -> List[str]:
    """
    Unigrams and bigrams of a text after stop-word removal.

    Bigrams pair consecutive surviving words, so they may join words that
    were separated by a stop word in the original text.
    """
    words = [
        word for word in _NON_ALNUM_RE.sub(" ", text.lower()).split()
        if word not in STOP_WORDS
    ]

    tokens = list(words)
    for first, second in zip(words, words[1:]):
        tokens.append(f"{first} {second}")
    return tokens


def _document_frequencies(tokenized_docs: List[List[str]]) -> Dict[str, int]:
    """Document frequency per term, keyed in first-seen order"""
    df: Dict[str, int] = {}
    for tokens in tokenized_docs:
        for token in dict.fromkeys(tokens):
            df[token] = df.get(token, 0) + 1
    return df


def prune_vocabulary(df: Dict[str, int], n_docs: int, max_df: float = DEFAULT_MAX_DF) -> List[str]:
    """
    Keep terms with 1 <= df <= floor(max_df * n_docs); with a single document
    nothing is pruned. If pruning would drop everything, keep every term.
    """
    max_df_count = math.floor(n_docs * max_df)
    vocabulary = [
        term for term, count in df.items()
        if count >= 1 and (n_docs <= 1 or count <= max_df_count)
    ]
    if not vocabulary:
        vocabulary = list(df)
    return vocabulary


def build_tfidf_matrix(texts: Sequence[str], max_df: float = DEFAULT_MAX_DF) -> TfidfResult:
    """
    Build an L2-normalized TF-IDF matrix from frame texts.

    Empty/whitespace-only texts get no row; original_indices maps each row
    back to its position in `texts`. Weights use sublinear term frequency
    (1 + ln count) and smoothed idf (ln((1+n)/(1+df)) + 1).
    """
    non_empty_indices: List[int] = []
    non_empty_texts: List[str] = []
    for i, text in enumerate(texts):
        if not isinstance(text, str):
            raise VectorizationError(f"Text at index {i} is {type(text).__name__}, expected str")
        if text.strip():
            non_empty_indices.append(i)
            non_empty_texts.append(text)

    if not non_empty_texts:
        return TfidfResult(matrix=np.zeros((0, 0)), vocabulary=[], original_indices=[])

    tokenized_docs = [tokenize(text) for text in non_empty_texts]
    n_docs = len(tokenized_docs)
    vocabulary = prune_vocabulary(_document_frequencies(tokenized_docs), n_docs, max_df)

    if not vocabulary:
        # Every token was a stop word: each row is the zero vector
        return TfidfResult(
            matrix=np.zeros((n_docs, 0)),
            vocabulary=[],
            original_indices=non_empty_indices,
        )

    vectorizer = TfidfVectorizer(
        analyzer=tokenize,
        vocabulary=vocabulary,
        sublinear_tf=True,
        smooth_idf=True,
        use_idf=True,
        norm="l2",
        dtype=np.float64,
    )
    matrix = vectorizer.fit_transform(non_empty_texts).toarray()

    logger.debug(f"TF-IDF matrix: {matrix.shape[0]} documents x {matrix.shape[1]} terms")

    return TfidfResult(matrix=matrix, vocabulary=vocabulary, original_indices=non_empty_indices)


def cosine_similarities(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of every row to one vector. Zero vectors (or a
    zero-width matrix) have similarity 0 to everything.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] == 0:
        return np.zeros(matrix.shape[0] if matrix.ndim == 2 else 0)
    return cosine_similarity(matrix, np.asarray(vector, dtype=np.float64).reshape(1, -1)).ravel()
