from __future__ import annotations

import dataclasses
import logging

from github import Github, GithubException

from reviewbot_core.diff import parse_diff
from reviewbot_core.models import ChangedFile
from reviewbot_core.utils.code import detect_language

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def build_file_diff(file) -> str:
    """Render one PR file (as returned by ``pr.get_files()``) as a git-style diff entry.

    GitHub's ``patch`` holds only the hunks; the header lines are rebuilt so
    a unified-diff parser sees additions, deletions and renames the same way
    it would in ``git diff`` output. Binary or oversized files have no patch
    and produce a header-only entry.
    """
    new_path = file.filename
    old_path = file.previous_filename or new_path
    lines = [f"diff --git a/{old_path} b/{new_path}"]
    if file.status == "added":
        lines += ["new file mode 100644", "--- /dev/null", f"+++ b/{new_path}"]
    elif file.status == "removed":
        lines += ["deleted file mode 100644", f"--- a/{old_path}", "+++ /dev/null"]
    else:
        lines += [f"--- a/{old_path}", f"+++ b/{new_path}"]

    text = "\n".join(lines) + "\n"
    patch = file.patch or ""
    if patch:
        text += patch if patch.endswith("\n") else patch + "\n"
    return text


def fetch_diff(pr) -> str:
    """Return the pull request's changes as unified diff text, in GitHub's file order."""
    return "".join(build_file_diff(f) for f in pr.get_files())


def fetch_changed_files(pr) -> list[ChangedFile]:
    """Return the pull request's file entries as ChangedFile records, in GitHub's file order.

    GitHub leaves ``patch`` out for binary files and for diffs too large to
    render. Those entries have no hunks to count, so their addition and
    deletion totals are taken from the file entry itself.
    """
    files = []
    for entry in pr.get_files():
        parsed = parse_diff(build_file_diff(entry))
        if entry.patch:
            files.extend(parsed)
            continue

        if parsed:
            changed = dataclasses.replace(parsed[0], additions=entry.additions, deletions=entry.deletions)
        else:
            changed = ChangedFile(
                path=entry.filename,
                additions=entry.additions,
                deletions=entry.deletions,
                language=detect_language(entry.filename),
                is_deleted=entry.status == "removed",
            )
        logger.debug("%s has no patch; using GitHub's line counts (+%d)", changed.path, changed.additions)
        files.append(changed)
    return files


def fetch_file_content(repo, path: str, ref: str) -> str | None:
    """Return the file's text at ``ref``, or None when it cannot be read."""
    try:
        contents = repo.get_contents(path, ref=ref)
    except GithubException as e:
        logger.warning("Could not fetch %s: %s", path, e)
        return None
    # A directory listing, or a file too large for the contents API (encoding "none").
    if isinstance(contents, list) or contents.encoding != "base64":
        logger.warning("Could not fetch %s: not a readable file", path)
        return None
    return contents.decoded_content.decode("utf-8", errors="replace")


def post_inline_comments(repo, pr, commit_sha: str, comments: list[dict]) -> bool:
    """Post ``comments`` as one COMMENT review anchored to ``commit_sha``.

    Best-effort: a rejected review is logged and reported as False so the
    caller can still post the summary.
    """
    if not comments:
        logger.info("No inline comments to post")
        return True
    try:
        pr.create_review(
            commit=repo.get_commit(commit_sha),
            body=f"ReviewBot left {len(comments)} inline comment(s).",
            event="COMMENT",
            comments=[{**c, "side": "RIGHT"} for c in comments],
        )
    except GithubException as e:
        logger.error("Failed to post review comments: %s", e)
        return False
    logger.info("Posted %d inline comment(s)", len(comments))
    return True


def post_summary_comment(pr, body: str) -> bool:
    try:
        pr.create_issue_comment(body)
    except GithubException as e:
        logger.error("Failed to post summary: %s", e)
        return False
    logger.info("Posted summary comment")
    return True
