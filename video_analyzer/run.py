import sys
import signal
import logging
import argparse
from typing import List, Optional

from .config import AnalyzerConfig
from .logging_setup import setup_logging
from .models import AnalyzerOptions
from .orchestrator import PipelineOrchestrator

logger = logging.getLogger("video_analyzer")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="video-analyzer",
        description="Reduce a video to one representative frame per distinct on-screen text state.",
    )
    parser.add_argument("video_path", help="Path to the video file")
    strategy = parser.add_mutually_exclusive_group()
    strategy.add_argument("-k", "--clusters", type=int, dest="n_clusters",
                          help="Number of K-means clusters (default: automatic)")
    strategy.add_argument("--eps", type=float, dest="dbscan_eps",
                          help="Use DBSCAN with this cosine-distance radius instead of K-means")
    parser.add_argument("--lang", default=None, help="Tesseract language code (default: OCR_LANG or eng)")
    parser.add_argument("--workers", type=int, default=None,
                        help="Concurrent OCR workers (default: OCR_WORKERS or 8)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--json-out", default=None, help="Also write the result JSON to this file")
    return parser


def signal_handler(signum, frame):
    """Handle shutdown signals"""
    logger.info(f"Received signal {signum}, shutting down...")
    sys.exit(130)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; prints the PipelineResult as JSON on stdout"""
    args = build_parser().parse_args(argv)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    config = AnalyzerConfig.from_env()
    if args.log_level:
        config.LOG_LEVEL = args.log_level
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)

    try:
        config.validate()
        options = AnalyzerOptions(
            video_path=args.video_path,
            n_clusters=args.n_clusters,
            dbscan_eps=args.dbscan_eps,
            lang=args.lang or config.OCR_LANG,
            workers=args.workers if args.workers is not None else config.OCR_WORKERS,
        )
        result = PipelineOrchestrator(config).analyze(options)
    except Exception as e:
        # Pipeline failures were logged with their traceback by the orchestrator
        logger.error(f"Video analysis failed: {e}")
        return 1

    payload = result.model_dump_json(indent=2)
    if args.json_out:
        with open(args.json_out, 'w', encoding='utf-8') as f:
            f.write(payload)
        logger.info(f"Result written to {args.json_out}")
    print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
