"""Predicted space savings for jobs that have not finished yet.

The daemon re-encodes to AV1. Given the source bitrate, frame rate, and codec,
this module predicts the AV1 output size and therefore the bytes a transcode
would save. The numbers are deliberately conservative rules of thumb.
"""

from av1watch.models import Job

#: AV1 bitrate as a fraction of the source codec's bitrate at similar quality
CODEC_EFFICIENCY: dict[str, float] = {
    "hevc": 0.55,
    "h265": 0.55,
    "h264": 0.40,
    "avc": 0.40,
    "vp9": 0.85,
    "av1": 1.0,
}

#: Efficiency assumed for codecs not listed above
DEFAULT_CODEC_EFFICIENCY: float = 0.50

#: Megabits per second of AV1 per megapixel-second of video
AV1_MBPS_PER_MEGAPIXEL_SECOND: float = 0.5

#: Audio and container overhead carried over unchanged, in Mbps
AUDIO_BITRATE_MBPS: float = 0.2

#: The predicted output is never allowed above this fraction of the original
MAX_OUTPUT_FRACTION: float = 0.95

#: Frame rate assumed when the reported one cannot be parsed
FALLBACK_FRAME_RATE: float = 30.0


def parse_frame_rate(value: str) -> float | None:
    """
    Parse an ffprobe frame rate.

    Args:
        value: Either a fraction ("30000/1001") or a decimal ("29.97").

    Returns:
        Frames per second, or None if the value cannot be parsed or has a
        zero denominator.
    """
    if "/" in value:
        numerator, _, denominator = value.partition("/")
        try:
            num = float(numerator)
            den = float(denominator)
        except ValueError:
            return None
        if den == 0:
            return None
        return num / den
    try:
        return float(value)
    except ValueError:
        return None


def estimate_space_savings(job: Job) -> float | None:
    """
    Predict bytes saved by transcoding a job's source to AV1.

    Args:
        job: Job with probed source metadata.

    Returns:
        Predicted bytes saved, or None when the original size or any of
        width, height, bitrate, codec, or frame rate is unknown.
    """
    original = job.original_bytes
    meta = job.metadata
    if not original:
        return None
    if (
        meta.width is None
        or meta.height is None
        or meta.bitrate is None
        or meta.codec is None
        or meta.frame_rate is None
    ):
        return None

    fps = parse_frame_rate(meta.frame_rate) or FALLBACK_FRAME_RATE
    megapixels_per_second = meta.width * meta.height * fps / 1_000_000
    efficiency = CODEC_EFFICIENCY.get(meta.codec.lower(), DEFAULT_CODEC_EFFICIENCY)

    source_mbps = meta.bitrate / 1_000_000
    if source_mbps > 0:
        av1_mbps = source_mbps * efficiency
        total_source_mbps = source_mbps + AUDIO_BITRATE_MBPS
    else:
        av1_mbps = megapixels_per_second * AV1_MBPS_PER_MEGAPIXEL_SECOND
        total_source_mbps = av1_mbps * 2.0 + AUDIO_BITRATE_MBPS

    duration_seconds = original * 8 / (total_source_mbps * 1_000_000)
    predicted = (av1_mbps + AUDIO_BITRATE_MBPS) * 1_000_000 * duration_seconds / 8
    predicted = min(predicted, original * MAX_OUTPUT_FRACTION)
    return original - predicted
