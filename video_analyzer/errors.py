"""
Exception types raised by the video analyzer.

Only fatal conditions are raised; recoverable per-frame or probe failures
are logged and degraded in place by the stage that hits them.
"""


class VideoAnalyzerError(Exception):
    """Base class for fatal pipeline errors"""


class FrameExtractionError(VideoAnalyzerError):
    """The decoder could not be run or did not produce its output directory"""


class OCRUnavailableError(VideoAnalyzerError):
    """The OCR binary is missing or cannot be executed"""


class VectorizationError(VideoAnalyzerError):
    """Vectorization or clustering input is malformed (non-text input, ragged rows)"""


class PipelineCancelledError(VideoAnalyzerError):
    """A stage was stopped through its cancellation event before completing"""
