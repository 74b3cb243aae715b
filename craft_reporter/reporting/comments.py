"""
Loader for persisted user comments keyed by test id.
"""

import json
from pathlib import Path
from typing import Dict

from craft_reporter.core.logging import get_logger

logger = get_logger(__name__)


def load_comments(path: Path) -> Dict[str, str]:
    """
    Read the comments side-file.

    A missing or unreadable file yields an empty mapping so that report
    generation never fails on history.
    """
    path = Path(path)
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable comments file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring comments file {path}: expected a JSON object, got {type(data).__name__}")
        return {}

    comments = {}
    for test_id, comment in data.items():
        if isinstance(comment, str):
            comments[test_id] = comment
        else:
            logger.debug(f"Dropping non-text comment for {test_id}")
    return comments
