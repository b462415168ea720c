"""Streaming git log parser producing GitHub-shaped raw commit payloads."""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Any, Iterator

from repopulse.models import Branch

logger = logging.getLogger(__name__)

COMMIT_SEP = "\x1e"  # record separator (ASCII RS)
FIELD_SEP = "\x1f"  # field separator (ASCII US)

# The record separator leads each record so that a block holds the header
# and the numstat lines git prints after it.
GIT_LOG_FORMAT = "%x1e" + "%x1f".join(
    [
        "%H",  # hash
        "%an",  # author name
        "%ae",  # author email
        "%aI",  # author date ISO
        "%cn",  # committer name
        "%ce",  # committer email
        "%cI",  # committer date ISO
        "%s",  # subject
        "%b",  # body
    ]
) + "%x1f"

_HEADER_FIELDS = 9
_RENAME_RE = re.compile(r"\{(.*?) => (.*?)\}")


def _expand_rename_path(path: str, use_old: bool) -> str:
    """Expand git's rename format: 'dir/{old.py => new.py}/sub' -> full path."""

    def replace(m: re.Match[str]) -> str:
        old, new = m.group(1), m.group(2)
        return old if use_old else new

    expanded = _RENAME_RE.sub(replace, path)
    # Clean up double slashes from empty parts like {old => new} at root
    return expanded.replace("//", "/").strip("/")


def _parse_numstat_line(line: str) -> dict[str, Any] | None:
    """Parse a numstat line 'added\\tdeleted\\tpath' into a file payload."""
    parts = line.split("\t", 2)
    if len(parts) != 3:
        return None

    added_str, deleted_str, path = parts
    try:
        # Binary files report "-" for both counts
        additions = int(added_str) if added_str != "-" else 0
        deletions = int(deleted_str) if deleted_str != "-" else 0
    except ValueError:
        return None

    entry: dict[str, Any] = {
        "filename": path,
        "status": "modified",
        "additions": additions,
        "deletions": deletions,
        "changes": additions + deletions,
    }
    if " => " in path and "{" in path:
        entry["previous_filename"] = _expand_rename_path(path, use_old=True)
        entry["filename"] = _expand_rename_path(path, use_old=False)
        entry["status"] = "renamed"
    elif " => " in path:
        # Full path rename without braces: old => new
        entry["previous_filename"], entry["filename"] = path.split(" => ", 1)
        entry["status"] = "renamed"
    return entry


def _parse_commit_block(raw: str) -> dict[str, Any] | None:
    """Parse a single commit block (header fields + numstat lines)."""
    parts = raw.split(FIELD_SEP)
    if len(parts) < _HEADER_FIELDS + 1:
        return None

    hash_ = parts[0].strip()
    author_name, author_email, author_date = parts[1:4]
    committer_name, committer_email, committer_date = parts[4:7]
    subject, body = parts[7], parts[8].strip()
    numstat = FIELD_SEP.join(parts[_HEADER_FIELDS:])

    files = []
    for line in numstat.split("\n"):
        line = line.strip()
        if not line:
            continue
        entry = _parse_numstat_line(line)
        if entry:
            files.append(entry)

    additions = sum(f["additions"] for f in files)
    deletions = sum(f["deletions"] for f in files)
    return {
        "sha": hash_,
        "commit": {
            "author": {"name": author_name, "email": author_email, "date": author_date},
            "committer": {
                "name": committer_name,
                "email": committer_email,
                "date": committer_date,
            },
            "message": f"{subject}\n\n{body}" if body else subject,
        },
        "stats": {"additions": additions, "deletions": deletions, "total": additions + deletions},
        "files": files,
    }


def iter_raw_commits(
    repo_path: str,
    max_count: int | None = None,
    since_months: int | None = None,
    no_merges: bool = True,
) -> Iterator[dict[str, Any]]:
    """Stream commits from git log, newest first, with constant memory usage.

    Args:
        repo_path: Path to the git repository.
        max_count: Stop after this many commits.
        since_months: Only commits within the last N months.
        no_merges: Skip merge commits.

    Yields:
        Raw commit payloads in the GitHub REST "commit detail" shape.
    """
    cmd = [
        "git",
        "-C",
        repo_path,
        "log",
        f"--pretty=format:{GIT_LOG_FORMAT}",
        "--numstat",
        "-M",  # rename detection
    ]
    if no_merges:
        cmd.append("--no-merges")
    if max_count is not None:
        cmd.append(f"--max-count={max_count}")
    if since_months is not None:
        cmd.extend(["--since", f"{since_months} months ago"])

    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
    )
    assert proc.stdout is not None
    assert proc.stderr is not None

    count = 0
    buffer = ""
    for chunk in iter(lambda: proc.stdout.read(8192), ""):
        buffer += chunk
        while COMMIT_SEP in buffer:
            raw_commit, buffer = buffer.split(COMMIT_SEP, 1)
            if not raw_commit.strip():
                continue
            commit = _parse_commit_block(raw_commit)
            if commit:
                count += 1
                yield commit

    # The last record has no separator after it
    if buffer.strip():
        commit = _parse_commit_block(buffer)
        if commit:
            count += 1
            yield commit

    proc.wait()
    if proc.returncode != 0:
        stderr = proc.stderr.read()
        raise RuntimeError(f"git log failed: {stderr}")
    logger.info("Read %d commits from %s", count, repo_path)


def list_branches(repo_path: str, protected_names: list[str] | None = None) -> list[Branch]:
    """Local branches; names in ``protected_names`` are marked protected."""
    protected = set(protected_names or [])
    result = subprocess.run(
        ["git", "-C", repo_path, "for-each-ref", "--format=%(refname:short)", "refs/heads"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        raise RuntimeError(f"git for-each-ref failed: {result.stderr}")
    names = sorted(line.strip() for line in result.stdout.splitlines() if line.strip())
    return [Branch(name=name, protected=name in protected) for name in names]


def current_branch(repo_path: str) -> str:
    result = subprocess.run(
        ["git", "-C", repo_path, "rev-parse", "--abbrev-ref", "HEAD"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        raise RuntimeError(f"git rev-parse failed: {result.stderr}")
    return result.stdout.strip()
