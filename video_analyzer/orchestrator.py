"""
Pipeline orchestration.

Sequences hashing, cache lookup, frame sampling, OCR, vectorization,
clustering and representative selection for one video, and assembles
the PipelineResult.
"""

import os
import time
import shutil
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from .adapters.base import CacheStore
from .adapters.file_cache import FileCacheStore
from .config import AnalyzerConfig
from .logging_setup import log_exception
from .models import (
    AnalyzerOptions,
    FrameSample,
    FrameTimestamp,
    GroupInfo,
    PipelineResult,
    TimeRange,
    VideoAsset,
)
from .pipeline.clustering import NOISE_LABEL, cluster_vectors, select_strategy
from .pipeline.frames import extract_frames, get_video_fps
from .pipeline.ocr import check_tesseract, ocr_all_frames
from .pipeline.representative import select_representative
from .pipeline.tfidf import build_tfidf_matrix
from .pipeline.util import ensure_dir, format_timestamp, frame_number, hash_file, remove_files

logger = logging.getLogger("video_analyzer")


REPRESENTATIVE_DIRNAME = "representative_frames"


class PipelineOrchestrator:
    """Runs the frame deduplication pipeline for one video at a time"""

    def __init__(self, config: Optional[AnalyzerConfig] = None, cache: Optional[CacheStore] = None):
        self.config = config or AnalyzerConfig()
        self.cache = cache or FileCacheStore(self.config.cache_dir)

    def analyze(self, options: AnalyzerOptions) -> PipelineResult:
        """
        Run the complete pipeline.

        1. Hash video for cache lookup
        2. Extract frames (ffmpeg) and OCR them (tesseract, parallel), or use cached
        3. Build TF-IDF matrix and cluster
        4. Select representative frames (centroid-closest), save them, build timestamps

        Raises:
            FileNotFoundError, VideoAnalyzerError subclasses on fatal errors;
            no partial result is returned
        """
        start_time = time.time()
        video_path = os.path.abspath(options.video_path)

        try:
            return self._run(options, video_path, start_time)
        except Exception as e:
            log_exception(logger, f"Pipeline failed for video {video_path}: {e}")
            raise

    def _run(self, options: AnalyzerOptions, video_path: str, start_time: float) -> PipelineResult:
        if not os.path.isfile(video_path):
            raise FileNotFoundError(f"Video file not found: {video_path}")

        video_name = os.path.splitext(os.path.basename(video_path))[0]
        output_dir = os.path.join(os.path.dirname(video_path), video_name)
        ensure_dir(output_dir)

        logger.info(f"Processing: {os.path.basename(video_path)}")
        logger.info(f"Output directory: {output_dir}")

        # Native frame rate, for reference only
        fps = get_video_fps(video_path, default=self.config.DEFAULT_FPS, timeout=self.config.STAGE_TIMEOUT_SEC)
        logger.info(f"Video FPS: {fps:.2f}")

        logger.info("Hashing video for cache lookup...")
        video = VideoAsset(path=video_path, content_hash=hash_file(video_path))
        logger.info(f"Video hash: {video.content_hash[:12]}...")

        cached = self.cache.lookup(video.content_hash)
        if cached is not None:
            frames, texts = list(cached.frames), list(cached.texts)
            logger.info(f"Using cached data: {len(frames)} frames, skipping extraction and OCR")
        else:
            frames, texts = self._extract_and_ocr(video, options)
            if not frames:
                logger.warning("No frames extracted")
                return PipelineResult(
                    video_path=video_path,
                    output_dir=output_dir,
                    fps=fps,
                    total_frames=0,
                )

        logger.info("[Step 3/4] Clustering frames...")
        labels = self._cluster(texts, options)
        clusters = self._group_by_label(frames, labels)

        logger.info("[Step 4/4] Creating output files...")
        groups, representative_paths = self._build_groups(clusters, frames, texts, output_dir)

        logger.info(f"Representative frames saved to: {os.path.join(output_dir, REPRESENTATIVE_DIRNAME)}")
        logger.info(f"Done in {time.time() - start_time:.2f}s: {len(groups)} groups from {len(frames)} frames")

        return PipelineResult(
            video_path=video_path,
            output_dir=output_dir,
            fps=fps,
            total_frames=len(frames),
            groups=groups,
            representative_frame_paths=representative_paths,
        )

    def _extract_and_ocr(self, video: VideoAsset, options: AnalyzerOptions) -> Tuple[List[str], List[str]]:
        """Sample frames into the cache directory, OCR them and save the cache record"""
        # Fail before spending time on extraction if OCR cannot run at all
        check_tesseract()

        logger.info("[Step 1/4] Extracting frames...")
        frames = extract_frames(
            video.path,
            self.cache.frames_dir(video.content_hash),
            sample_fps=self.config.SAMPLE_FPS,
            width=self.config.FRAME_WIDTH,
            quality=self.config.JPEG_QUALITY,
            timeout=self.config.STAGE_TIMEOUT_SEC,
        )
        if not frames:
            return [], []

        logger.info("[Step 2/4] Running OCR...")
        ocr_results = ocr_all_frames(
            frames,
            lang=options.lang,
            workers=options.workers,
            oem=self.config.OCR_OEM,
            psm=self.config.OCR_PSM,
            timeout=self.config.STAGE_TIMEOUT_SEC or 0,
            progress_every=self.config.OCR_PROGRESS_EVERY,
        )
        texts = [ocr_results.get(frame, "") for frame in frames]

        self.cache.save(video.content_hash, frames, texts)
        return frames, texts

    def _cluster(self, texts: List[str], options: AnalyzerOptions) -> List[Optional[int]]:
        """
        Label every frame: a cluster label for vectorized frames, None for
        frames with empty text (those never join a group).
        """
        tfidf = build_tfidf_matrix(texts, max_df=self.config.MAX_DF)
        labels: List[Optional[int]] = [None] * len(texts)

        if tfidf.n_rows == 0:
            logger.warning("No frame contains text; nothing to cluster")
            return labels

        strategy = select_strategy(
            tfidf.n_rows,
            n_clusters=options.n_clusters,
            eps=options.dbscan_eps,
            config=self.config,
        )
        cluster_labels = cluster_vectors(tfidf.matrix, strategy)

        # Map back to full frame set
        for row, frame_index in enumerate(tfidf.original_indices):
            labels[frame_index] = int(cluster_labels[row])
        return labels

    def _group_by_label(self, frames: List[str], labels: List[Optional[int]]) -> List[List[int]]:
        """Frame indices per cluster, noise dropped, groups ordered by mean frame number"""
        cluster_map: Dict[int, List[int]] = {}
        for i, label in enumerate(labels):
            if label is None or label == NOISE_LABEL:
                continue
            cluster_map.setdefault(label, []).append(i)

        ordinals = [frame_number(frame) for frame in frames]
        clusters = [
            sorted(indices, key=lambda i: ordinals[i])
            for indices in cluster_map.values()
        ]
        # Sort clusters by average frame number (chronological order)
        clusters.sort(key=lambda indices: (float(np.mean([ordinals[i] for i in indices])), ordinals[indices[0]]))
        return clusters

    def _build_groups(
        self,
        clusters: List[List[int]],
        frames: List[str],
        texts: List[str],
        output_dir: str,
    ) -> Tuple[List[GroupInfo], List[str]]:
        representative_dir = os.path.join(output_dir, REPRESENTATIVE_DIRNAME)
        ensure_dir(representative_dir)
        # A previous run may have produced more groups
        remove_files(os.path.join(representative_dir, "group_*"))

        groups: List[GroupInfo] = []
        representative_paths: List[str] = []

        for group_index, indices in enumerate(clusters, start=1):
            display_name = f"Group {group_index}"
            logger.info(f"  {display_name}: {len(indices)} frames")

            group_frame_paths = [frames[i] for i in indices]
            group_texts = [texts[i] for i in indices]

            # Select representative frame (centroid-closest in TF-IDF space)
            representative = select_representative(group_frame_paths, group_texts, max_df=self.config.MAX_DF)

            ext = os.path.splitext(representative)[1]
            representative_dest = os.path.join(representative_dir, f"group_{group_index:02d}{ext}")
            shutil.copyfile(representative, representative_dest)
            representative_paths.append(representative_dest)

            samples = [
                FrameSample(ordinal=frame_number(path), file_path=path, sample_rate=self.config.SAMPLE_FPS)
                for path in group_frame_paths
            ]
            frame_timestamps = [
                FrameTimestamp(
                    frame_number=sample.ordinal,
                    timestamp=format_timestamp(sample.timestamp_seconds),
                    file_name=os.path.basename(sample.file_path),
                )
                for sample in samples
            ]

            groups.append(GroupInfo(
                group_index=group_index,
                group_name=display_name,
                representative_frame=representative_dest,
                frame_count=len(indices),
                time_range=TimeRange(start=frame_timestamps[0].timestamp, end=frame_timestamps[-1].timestamp),
                frames=frame_timestamps,
            ))

        return groups, representative_paths


def analyze_video(
    video_path: str,
    n_clusters: Optional[int] = None,
    dbscan_eps: Optional[float] = None,
    lang: str = "eng",
    workers: int = 8,
    config: Optional[AnalyzerConfig] = None,
) -> PipelineResult:
    """Convenience wrapper: run the pipeline once with a fresh orchestrator"""
    options = AnalyzerOptions(
        video_path=video_path,
        n_clusters=n_clusters,
        dbscan_eps=dbscan_eps,
        lang=lang,
        workers=workers,
    )
    return PipelineOrchestrator(config).analyze(options)
