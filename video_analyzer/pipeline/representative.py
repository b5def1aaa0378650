from typing import List, Sequence

import numpy as np

from .tfidf import DEFAULT_MAX_DF, build_tfidf_matrix, cosine_similarities
from .util import frame_number


TIE_TOLERANCE = 1e-9


def select_representative(
    group_frame_paths: Sequence[str],
    group_texts: Sequence[str],
    max_df: float = DEFAULT_MAX_DF,
) -> str:
    """
    Select the most representative frame from a group.

    Instead of picking the middle frame by time, this picks the frame whose
    TF-IDF vector is closest to the centroid of the group. The TF-IDF matrix
    is built from this group's texts only. Ties go to the earliest frame.

    Args:
        group_frame_paths: Frame paths in this group
        group_texts: OCR texts corresponding to each frame in the group

    Returns:
        The path of the most representative frame
    """
    if not group_frame_paths:
        raise ValueError("Cannot select representative from empty group")
    if len(group_frame_paths) != len(group_texts):
        raise ValueError(
            f"Frame paths and texts must be index aligned ({len(group_frame_paths)} != {len(group_texts)})"
        )

    if len(group_frame_paths) == 1:
        return group_frame_paths[0]

    # Chronological order makes the first best match the earliest frame
    order: List[int] = sorted(range(len(group_frame_paths)), key=lambda i: frame_number(group_frame_paths[i]))
    frame_paths = [group_frame_paths[i] for i in order]
    texts = [group_texts[i] for i in order]

    result = build_tfidf_matrix(texts, max_df=max_df)

    # If no non-empty texts, fall back to first frame
    if result.n_rows == 0:
        return frame_paths[0]

    # If only one non-empty text, return that frame
    if result.n_rows == 1:
        return frame_paths[result.original_indices[0]]

    centroid = result.matrix.mean(axis=0)
    similarities = cosine_similarities(result.matrix, centroid)
    # Rounding can split members that are equally close to the centroid
    best = similarities.max()
    best_row = int(np.flatnonzero(np.isclose(similarities, best, rtol=0, atol=TIE_TOLERANCE))[0])

    return frame_paths[result.original_indices[best_row]]
