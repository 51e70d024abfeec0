"""
Quality profiles for rotating movies.

A profile fixes the number of rotation frames, the still image size and
the frame rate and bitrate given to the encoder. Two profiles exist:
"regular" (the default) and "large" (smoother and larger movie).
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityProfile:
    name: str
    frames: int
    degrees_per_frame: float
    width: int
    height: int
    frame_rate: int
    bitrate: int

    @property
    def bitrate_tag(self):
        """Bitrate in kilobits as used in movie file names, e.g. '3200k'."""
        return f"{self.bitrate // 1000}k"

    @property
    def stills_script_name(self):
        return f"jmol_create_stills{self.frames}.spt"


QUALITY_PROFILES = {
    "regular": QualityProfile(
        name="regular",
        frames=72,
        degrees_per_frame=5.0,
        width=480,
        height=480,
        frame_rate=10,
        bitrate=3200000,
    ),
    "large": QualityProfile(
        name="large",
        frames=144,
        degrees_per_frame=2.5,
        width=640,
        height=640,
        frame_rate=20,
        bitrate=6400000,
    ),
}

DEFAULT_QUALITY_PROFILE = "regular"


def get_quality_profile(name=None):
    """
    Look up a quality profile by name.

    Args:
        name (str, optional): "regular" or "large". None gives the default.

    Returns:
        QualityProfile: The matching profile.

    Raises:
        ValueError: If the name is not a known profile.
    """
    if name is None:
        name = DEFAULT_QUALITY_PROFILE
    if isinstance(name, QualityProfile):
        return name
    try:
        return QUALITY_PROFILES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown quality profile {name}. "
            f"Available profiles: {list(QUALITY_PROFILES)}."
        )


def profile_from_large_file(large_file):
    """Map the -large_file flag onto a quality profile."""
    return get_quality_profile("large" if large_file else "regular")
