"""
Clustering strategies for TF-IDF frame vectors.

Every strategy maps an (n_vectors, n_terms) matrix to one integer label
per row. Label -1 marks a noise point (density clustering only).
"""

import math
import logging
import warnings
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from sklearn.cluster import KMeans, DBSCAN
from sklearn.exceptions import ConvergenceWarning

from ..config import AnalyzerConfig
from ..errors import VectorizationError

logger = logging.getLogger("video_analyzer")


NOISE_LABEL = -1


class ClusterStrategy(ABC):
    """Interface shared by all clustering backends"""

    name: str = "base"

    @abstractmethod
    def cluster(self, vectors: np.ndarray) -> np.ndarray:
        """
        Assign a cluster label to every row.

        Args:
            vectors: Validated 2-D float matrix, one row per frame

        Returns:
            Integer array of length len(vectors)
        """
        pass


class KMeansStrategy(ClusterStrategy):
    """K-means with k-means++ seeding and a fixed seed, so reruns agree"""

    name = "kmeans"

    def __init__(self, n_clusters: int, seed: int = 42, max_iter: int = 100):
        if n_clusters < 1:
            raise ValueError(f"n_clusters must be >= 1, got {n_clusters}")
        self.n_clusters = n_clusters
        self.seed = seed
        self.max_iter = max_iter

    def cluster(self, vectors: np.ndarray) -> np.ndarray:
        n_vectors = len(vectors)
        if n_vectors == 0:
            return np.zeros(0, dtype=int)

        # Adjust cluster count if we have fewer data points
        effective_clusters = min(self.n_clusters, n_vectors)
        if effective_clusters < self.n_clusters:
            logger.warning(f"Reducing clusters from {self.n_clusters} to {effective_clusters} (not enough data)")

        if effective_clusters <= 1:
            return np.zeros(n_vectors, dtype=int)

        kmeans = KMeans(
            n_clusters=effective_clusters,
            init="k-means++",
            n_init=1,
            max_iter=self.max_iter,
            random_state=self.seed,
        )
        with warnings.catch_warnings():
            # Duplicate frames often give fewer distinct points than k
            warnings.simplefilter("ignore", ConvergenceWarning)
            labels = kmeans.fit_predict(vectors)

        logger.info(f"K-means produced {len(set(labels.tolist()))} clusters")
        return labels.astype(int)


class DBSCANStrategy(ClusterStrategy):
    """DBSCAN over cosine distance (1 - cosine similarity)"""

    name = "dbscan"

    def __init__(self, eps: float, min_samples: int = 2):
        if eps <= 0:
            raise ValueError(f"eps must be > 0, got {eps}")
        if min_samples < 1:
            raise ValueError(f"min_samples must be >= 1, got {min_samples}")
        self.eps = eps
        self.min_samples = min_samples

    def cluster(self, vectors: np.ndarray) -> np.ndarray:
        n_vectors = len(vectors)
        if n_vectors == 0:
            return np.zeros(0, dtype=int)

        if n_vectors < self.min_samples:
            logger.warning(f"Not enough data for DBSCAN (need at least {self.min_samples}), returning single cluster")
            return np.zeros(n_vectors, dtype=int)

        dbscan = DBSCAN(eps=self.eps, min_samples=self.min_samples, metric="cosine")
        labels = dbscan.fit_predict(vectors).astype(int)

        n_clusters = len(set(labels.tolist()) - {NOISE_LABEL})
        n_noise = int(np.sum(labels == NOISE_LABEL))

        logger.info(f"DBSCAN found {n_clusters} clusters (eps={self.eps})")
        if n_noise > 0:
            logger.info(f"  {n_noise} frames marked as noise (excluded from groups)")

        return labels


def auto_cluster_count(n_vectors: int, max_clusters: int = 50) -> int:
    """round(sqrt(n/2)) clamped to [1, max_clusters]; halves round up"""
    estimate = int(math.floor(math.sqrt(n_vectors / 2) + 0.5))
    return max(1, min(estimate, max_clusters))


def select_strategy(
    n_vectors: int,
    n_clusters: Optional[int] = None,
    eps: Optional[float] = None,
    config: Optional[AnalyzerConfig] = None,
) -> ClusterStrategy:
    """
    Pick the clustering strategy for a run: an explicit eps selects DBSCAN,
    otherwise an explicit n_clusters selects K-means, otherwise K-means with
    an automatic k.
    """
    config = config or AnalyzerConfig()

    if eps is not None:
        if n_clusters is not None:
            logger.warning(f"Both n_clusters={n_clusters} and eps={eps} given, using DBSCAN")
        logger.info(f"Using DBSCAN clustering (eps={eps})...")
        return DBSCANStrategy(eps, min_samples=config.DBSCAN_MIN_SAMPLES)

    if n_clusters is not None:
        logger.info(f"Using K-means clustering (k={n_clusters})...")
        return KMeansStrategy(n_clusters, seed=config.KMEANS_SEED, max_iter=config.KMEANS_MAX_ITER)

    auto_k = auto_cluster_count(n_vectors, config.MAX_AUTO_CLUSTERS)
    logger.info(f"Using K-means with auto k={auto_k}...")
    return KMeansStrategy(auto_k, seed=config.KMEANS_SEED, max_iter=config.KMEANS_MAX_ITER)


def validate_matrix(vectors) -> np.ndarray:
    """Coerce vectors to a finite 2-D float matrix, raising VectorizationError otherwise"""
    try:
        matrix = np.asarray(vectors, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise VectorizationError(f"Vectors are not a rectangular numeric matrix: {e}") from e

    if matrix.ndim == 1 and matrix.size == 0:
        return matrix.reshape(0, 0)
    if matrix.ndim != 2:
        raise VectorizationError(f"Expected a 2-D matrix, got {matrix.ndim} dimension(s)")
    if not np.all(np.isfinite(matrix)):
        raise VectorizationError("Matrix contains NaN or infinite values")
    return matrix


def cluster_vectors(vectors, strategy: ClusterStrategy) -> np.ndarray:
    """Validate a vector matrix and label every row with the given strategy"""
    matrix = validate_matrix(vectors)
    if matrix.shape[0] == 0:
        return np.zeros(0, dtype=int)

    if matrix.shape[1] == 0:
        # No vocabulary: every row is the zero vector
        matrix = np.zeros((matrix.shape[0], 1))

    labels = strategy.cluster(matrix)
    if len(labels) != matrix.shape[0]:
        raise VectorizationError(f"{strategy.name} returned {len(labels)} labels for {matrix.shape[0]} vectors")
    return labels
