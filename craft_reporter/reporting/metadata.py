"""
Normalize free-form test annotations into structured metadata.
"""

from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from craft_reporter.reporting.models import TestMetadata

Annotation = Tuple[str, Optional[str]]


def _setter(attr: str) -> Callable[[TestMetadata, str], None]:
    def _set(metadata: TestMetadata, value: str) -> None:
        setattr(metadata, attr, value)
    return _set


def _append_tag(metadata: TestMetadata, value: str) -> None:
    metadata.tags.append(value)


# Lower-cased annotation kind -> field setter
ANNOTATION_HANDLERS: Dict[str, Callable[[TestMetadata, str], None]] = {
    "epic": _setter("epic"),
    "feature": _setter("feature"),
    "story": _setter("story"),
    "suite": _setter("suite"),
    "subsuite": _setter("sub_suite"),
    "parentsuite": _setter("parent_suite"),
    "severity": _setter("severity"),
    "owner": _setter("owner"),
    "description": _setter("description"),
    "tag": _append_tag,
}


def normalize_metadata(
    annotations: Iterable[Annotation],
    title_path: Sequence[str],
) -> TestMetadata:
    """
    Build structured metadata from annotations and the test's title path.

    Known kinds set their field (last one wins) and ``tag`` appends. Unknown
    kinds with a non-empty description land in ``parameters``. The suite
    hierarchy is then back-filled from the title path without overwriting
    anything an annotation already set.

    Args:
        annotations: (kind, description) pairs; kind is case-insensitive
        title_path: Outermost grouping first, test name last

    Returns:
        TestMetadata
    """
    metadata = TestMetadata()

    for kind, description in annotations:
        kind = str(kind).lower()
        value = description or ""
        handler = ANNOTATION_HANDLERS.get(kind)
        if handler is not None:
            handler(metadata, value)
        elif value:
            metadata.parameters[kind] = value

    if len(title_path) > 1:
        if not metadata.parent_suite:
            metadata.parent_suite = title_path[0]
        if not metadata.suite and len(title_path) > 2:
            metadata.suite = title_path[1]
        if not metadata.sub_suite and len(title_path) > 3:
            metadata.sub_suite = title_path[2]

    return metadata
