"""
Jmol stills scripts and the still image files they produce.

The stills script rotates the structure about the Y axis and writes one
numbered GIF per rotation step: movie0001.gif, movie0002.gif, ... The same
numbering is consumed by the encoder through FRAME_PATTERN.
"""

import glob
import logging
import os

logger = logging.getLogger(__name__)

FRAME_PREFIX = "movie"
FRAME_EXTENSION = ".gif"
# printf-style pattern handed to the encoder
FRAME_PATTERN = f"{FRAME_PREFIX}%04d{FRAME_EXTENSION}"
# glob pattern of the frames left in the working directory
FRAME_GLOB = f"{FRAME_PREFIX}[0-9][0-9][0-9][0-9]{FRAME_EXTENSION}"


def frame_filename(index):
    return FRAME_PATTERN % index


def generate_stills_script(profile):
    """
    Build the Jmol script that writes the rotation frames.

    Args:
        profile (QualityProfile): Number of frames, rotation step and
            image size.

    Returns:
        str: Jmol script text.
    """
    lines = [
        f"# {profile.stills_script_name}: "
        f"{profile.frames} frames, rotating "
        f"{profile.degrees_per_frame:g} degrees about Y per frame",
        "set refreshing true",
    ]
    for index in range(1, profile.frames + 1):
        lines.append(f"rotate y {profile.degrees_per_frame:g}")
        lines.append(
            f'write IMAGE {profile.width} {profile.height} GIF '
            f'"{frame_filename(index)}"'
        )
    return "\n".join(lines) + "\n"


def merge_scripts(state_script, stills_script):
    """
    Concatenate a user state script with a stills script.

    Both scripts are bytes; the state script is copied as it is, whatever
    its encoding. A newline is inserted between them when the state script
    does not end with one, so its last command is not joined to the first
    stills command.
    """
    if state_script and not state_script.endswith(b"\n"):
        state_script += b"\n"
    return state_script + stills_script


def list_frames(folder):
    """Sorted paths of the still images present in folder."""
    return sorted(glob.glob(os.path.join(folder, FRAME_GLOB)))
