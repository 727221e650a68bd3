"""Aspect-ratio classification for uploaded videos."""

from errors import DataError

LANDSCAPE = "16:9"
PORTRAIT = "9:16"
OTHER = "other"

# Object-store key prefix per classification
ASPECT_BUCKETS = {
    LANDSCAPE: "landscape",
    PORTRAIT: "portrait",
}


def classify_aspect_ratio(width: int, height: int) -> str:
    """Classify width/height into "16:9", "9:16" or "other".

    The bands are open intervals around 16/9 (~1.778) and 9/16 (0.5625), so
    something like 1.6 or 1.85 is "other" rather than the nearest ratio.
    """
    if height == 0:
        raise DataError("Video height cannot be zero")

    ratio = width / height
    if 1.7 < ratio < 1.8:
        return LANDSCAPE
    if 0.5 < ratio < 0.6:
        return PORTRAIT
    return OTHER


def aspect_bucket(aspect_ratio: str) -> str:
    return ASPECT_BUCKETS.get(aspect_ratio, "other")
