"""Unified diff → ChangedFile records.

Only added and context lines are kept: they are the only ones with a position
in the new file, and that position (``target_line_no``) is later posted
verbatim as the inline-comment anchor. Removed lines have no such anchor.

This module does no I/O; the pipeline attaches file content afterwards.
"""

from __future__ import annotations

import logging
import re

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from reviewbot_core.models import ChangedFile, ChangedLine, LineKind
from reviewbot_core.utils.code import detect_language

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"

# Zero-width split so every chunk keeps its own "diff --git" header.
_FILE_BOUNDARY_RE = re.compile(r"^(?=diff --git )", re.MULTILINE)


def _strip_prefix(path: str | None, prefix: str) -> str | None:
    if path and path.startswith(prefix):
        return path[len(prefix) :]
    return path


def resolve_path(source_file: str | None, target_file: str | None) -> str | None:
    """Return the new-side path, the old-side path for deletions, or None.

    None means both sides are /dev/null and the entry carries nothing useful.
    """
    target = _strip_prefix(target_file, "b/")
    if target and target != DEV_NULL:
        return target
    source = _strip_prefix(source_file, "a/")
    if source and source != DEV_NULL:
        return source
    return None


def _build_file(patched_file) -> ChangedFile | None:
    path = resolve_path(patched_file.source_file, patched_file.target_file)
    if path is None:
        return None

    changed_lines = []
    for hunk in patched_file:
        for line in hunk:
            if line.is_added:
                kind = LineKind.ADDED
            elif line.is_context:
                kind = LineKind.UNCHANGED
            else:
                continue  # removed line, no new-file position
            changed_lines.append(ChangedLine(line.target_line_no, line.value.rstrip("\r\n"), kind))

    return ChangedFile(
        path=path,
        additions=patched_file.added,
        deletions=patched_file.removed,
        changed_lines=tuple(changed_lines),
        language=detect_language(path),
        is_deleted=_strip_prefix(patched_file.target_file, "b/") == DEV_NULL,
    )


def parse_diff(diff_text: str) -> list[ChangedFile]:
    """Parse a pull request's unified diff into ChangedFile records, in diff order.

    Each ``diff --git`` section is parsed on its own so one malformed entry
    is skipped (and logged) instead of discarding the whole pull request.
    """
    if not diff_text or not diff_text.strip():
        return []

    files: list[ChangedFile] = []
    for chunk in _FILE_BOUNDARY_RE.split(diff_text):
        if not chunk.strip():
            continue
        try:
            patch_set = PatchSet(chunk)
        except UnidiffParseError as e:
            header = chunk.splitlines()[0] if chunk.splitlines() else ""
            logger.warning("Skipping unparseable diff entry %r: %s", header[:120], e)
            continue
        for patched_file in patch_set:
            changed = _build_file(patched_file)
            if changed is not None:
                files.append(changed)
    return files
