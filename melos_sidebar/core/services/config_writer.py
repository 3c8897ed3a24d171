"""
Config writer — append recommended scripts to melos.yaml.

This is line-based text editing, not structured YAML mutation: the
file is split into lines, new entries are spliced in after the
top-level ``scripts:`` header (or a new header is appended), and the
result is written back in one atomic step.  Comments, key order and
formatting elsewhere in the file are left untouched.

The text operations are kept behind three small functions so a
structured backend could replace them:

    locate_section(lines)     → index of the ``scripts:`` header, or None
    entry_exists(lines, name) → True if the section declares ``<name>:``
    render_entry(script)      → the three lines of a new entry

New entries copy the indentation of the section's existing entries, so
a file indented by four spaces stays a valid mapping.  A UTF-8 BOM is
kept as-is and does not hide the header.
"""

from __future__ import annotations

import logging
import re
import tempfile
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from melos_sidebar.core.config.loader import MELOS_CONFIG_FILE, config_path
from melos_sidebar.core.models.script import RecommendedScript

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^scripts:\s*(?:#.*)?$")

# Entry indentation when the section has no entries to copy it from
DEFAULT_INDENT = "  "

_BOM = "\ufeff"

# Serializes read-modify-write cycles issued by this process.
# External writers are not coordinated: last writer wins.
_write_lock = threading.Lock()


@dataclass
class InsertResult:
    """Outcome of one insertion into melos.yaml."""

    ok: bool = True
    path: Path | None = None
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    created_section: bool = False
    error: str | None = None

    @property
    def changed(self) -> bool:
        """Whether the file was rewritten."""
        return self.ok and bool(self.added)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {
            "ok": self.ok,
            "added": list(self.added),
            "skipped": list(self.skipped),
            "created_section": self.created_section,
        }
        if self.path is not None:
            result["path"] = str(self.path)
        if self.error:
            result["error"] = self.error
        return result


# ── Text operations ─────────────────────────────────────────────────


def locate_section(lines: Sequence[str]) -> int | None:
    """Find the top-level ``scripts:`` header.

    Matches a line that is exactly ``scripts:`` at column 0, optionally
    followed by whitespace and a comment.  First match wins.
    """
    for i, line in enumerate(lines):
        if _SECTION_RE.match(line.rstrip("\r")):
            return i
    return None


def section_bounds(lines: Sequence[str]) -> tuple[int, int] | None:
    """``(header, end)`` of the ``scripts:`` section, ``end`` exclusive.

    The section ends at the next line that starts at column 0 and is
    neither blank nor a comment (the next top-level key).
    """
    header = locate_section(lines)
    if header is None:
        return None

    end = header + 1
    while end < len(lines):
        line = lines[end].rstrip("\r")
        if line and not line[0].isspace() and not line.startswith("#"):
            break
        end += 1
    return header, end


def entry_indent(lines: Sequence[str]) -> str:
    """Indentation of the section's entries.

    Taken from the first key line under ``scripts:`` so new entries line
    up with existing ones; two spaces for an empty or missing section.
    """
    bounds = section_bounds(lines)
    if bounds is not None:
        header, end = bounds
        for line in lines[header + 1:end]:
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                return line[:len(line) - len(line.lstrip())]
    return DEFAULT_INDENT


def _find_entry(lines: Sequence[str], name: str) -> int | None:
    bounds = section_bounds(lines)
    if bounds is None:
        return None

    header, end = bounds
    pattern = re.compile(
        rf"^{re.escape(entry_indent(lines))}{re.escape(name)}:(?:\s|$)",
    )
    for i in range(header + 1, end):
        if pattern.match(lines[i]):
            return i
    return None


def entry_exists(lines: Sequence[str], name: str) -> bool:
    """Whether the ``scripts:`` section declares ``<name>:``.

    Only keys at the section's entry indentation count: a nested
    ``run:`` field or a same-named key elsewhere in the file is not a
    script.
    """
    return _find_entry(lines, name) is not None


def render_entry(script: RecommendedScript, indent: str = DEFAULT_INDENT) -> list[str]:
    """Render one entry as a nested mapping under ``scripts:``."""
    return [
        f"{indent}{script.name}:",
        f"{indent * 2}run: {script.run}",
        f"{indent * 2}description: {script.description}",
    ]


def find_script_line(root: Path, name: str) -> int | None:
    """0-based line number of a script's ``<name>:`` header in melos.yaml.

    Returns None if the file or the entry is absent.
    """
    path = config_path(root)
    try:
        # utf-8-sig: a leading BOM is not part of the first line
        lines = path.read_text(encoding="utf-8-sig").split("\n")
    except (OSError, UnicodeDecodeError):
        return None
    return _find_entry(lines, name)


# ── Insertion ───────────────────────────────────────────────────────


def splice_entries(
    lines: list[str],
    entries: Sequence[RecommendedScript],
) -> tuple[list[str], InsertResult]:
    """Compute the new line buffer for ``entries`` (pure, no I/O).

    Each entry is checked against the current buffer; ones already
    present are skipped.  New entries use the indentation of the
    existing ones (see ``entry_indent``).

    Returns:
        (new_lines, result) — ``new_lines`` is ``lines`` unchanged when
        there is nothing to add.
    """
    result = InsertResult()
    new_lines: list[str] = []
    indent = entry_indent(lines)

    for script in entries:
        if entry_exists(lines, script.name):
            result.skipped.append(script.name)
            continue
        new_lines.extend(render_entry(script, indent))
        result.added.append(script.name)

    if not new_lines:
        return lines, result

    out = list(lines)
    index = locate_section(out)
    if index is not None:
        out[index + 1:index + 1] = new_lines
    else:
        result.created_section = True
        block = ["scripts:", *new_lines]
        # Keep a trailing newline at the end of the file
        if out and out[-1] == "":
            out[-1:-1] = block
        else:
            out.extend(block)

    return out, result


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via temp file + rename."""
    _fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=".melos_",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        # mkstemp creates 0600; keep the original file's mode
        tmp.chmod(path.stat().st_mode & 0o777)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def insert_scripts(
    root: Path,
    entries: Sequence[RecommendedScript],
) -> InsertResult:
    """Insert recommended scripts into ``root/melos.yaml``.

    New entries go immediately after the ``scripts:`` header.  Without
    a header, ``scripts:`` and the entries are appended at end of file.
    Entries already present are skipped, so calling this twice with the
    same entries leaves the file as the first call did.

    The new content is built entirely in memory before the single
    atomic write; on failure the previous file is retained.

    Args:
        root: Workspace root directory.
        entries: Ordered entries (usually from ``resolve()``).

    Returns:
        InsertResult — ``ok=False`` with ``error`` on a missing file
        or I/O failure.  Never raises.
    """
    path = config_path(root)

    with _write_lock:
        if not path.is_file():
            logger.warning("Cannot add scripts: %s not found at %s", MELOS_CONFIG_FILE, root)
            return InsertResult(ok=False, path=path, error=f"{MELOS_CONFIG_FILE} not found")

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read %s: %s", path, e)
            return InsertResult(ok=False, path=path, error=f"Cannot read {MELOS_CONFIG_FILE}: {e}")

        # A BOM would hide the header on line 0; put it back on write
        bom = _BOM if content.startswith(_BOM) else ""
        lines = content[len(bom):].split("\n")
        new_lines, result = splice_entries(lines, entries)
        result.path = path

        if not result.added:
            logger.debug("Nothing to add to %s (skipped: %s)", path, result.skipped)
            return result

        try:
            _atomic_write(path, bom + "\n".join(new_lines))
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            return InsertResult(
                ok=False,
                path=path,
                skipped=result.skipped,
                error=f"Failed to add script to {MELOS_CONFIG_FILE}: {e}",
            )

    logger.info(
        "Added %d script(s) to %s: %s", len(result.added), path, ", ".join(result.added),
    )
    return result
