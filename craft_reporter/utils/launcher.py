"""
Open rendered reports in the platform viewer.
"""

import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from craft_reporter.core.logging import get_logger


def viewer_command(path: Path, platform: Optional[str] = None) -> List[str]:
    """
    Build the command that opens a file with the desktop's default viewer.

    Args:
        path: File to open
        platform: sys.platform value (default: current platform)

    Returns:
        Command as list of strings
    """
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open", str(path)]
    if platform == "win32":
        # start is a cmd builtin; the empty string is the window title
        return ["cmd", "/c", "start", "", str(path)]
    return ["xdg-open", str(path)]


def open_in_viewer(path: Path, platform: Optional[str] = None) -> bool:
    """
    Launch the viewer without waiting for it.

    A missing or failing viewer is logged, never raised: the report is
    already on disk at this point.

    Returns:
        True if the viewer process was started
    """
    logger = get_logger(__name__)
    cmd = viewer_command(path, platform)
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except FileNotFoundError as e:
        logger.warning(f"Command not found, cannot open report: {e}")
        return False
    except OSError as e:
        logger.warning(f"Failed to open report {path}: {e}")
        return False
    return True
