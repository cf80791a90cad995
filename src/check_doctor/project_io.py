"""Loading a project directory into a ProjectState and writing it back."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

import pathspec

from check_doctor.project import ProjectState, Unit

logger = logging.getLogger(__name__)


def load_project(
    root: Path, exclude_patterns: Iterable[str] = (), *, name: str | None = None
) -> ProjectState:
    """Read every UTF-8 text file below ``root`` into a project state.

    Unit names are POSIX paths relative to ``root``. Files matching the
    Git-style ``exclude_patterns`` are never loaded; files that are not valid
    UTF-8 are skipped with a log line.

    Args:
        root: Project directory
        exclude_patterns: Git wildmatch patterns of files to leave out
        name: Project name (defaults to the directory name)

    Returns:
        Project state holding one unit per loaded file

    Raises:
        NotADirectoryError: If root is not a directory

    """
    if not root.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root}")

    exclude_spec = pathspec.PathSpec.from_lines("gitwildmatch", list(exclude_patterns))
    units: list[Unit] = []
    for file_path in sorted(root.rglob("*")):
        if not file_path.is_file():
            continue
        relative = file_path.relative_to(root).as_posix()
        if exclude_spec.match_file(relative):
            logger.debug("Excluding file: %s", relative)
            continue
        try:
            with open(file_path, encoding="utf-8", newline="") as f:
                content = f.read()
        except UnicodeDecodeError:
            logger.info("Skipping non-UTF-8 file %s", relative)
            continue
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", relative, e)
            continue
        modified = datetime.fromtimestamp(file_path.stat().st_mtime, UTC)
        units.append(Unit(name=relative, content=content, modified_at=modified))

    logger.info("Loaded %d unit(s) from %s", len(units), root)
    return ProjectState(units, name=name or root.resolve().name)


def write_project(state: ProjectState, root: Path) -> list[str]:
    """Write the project state back to ``root``.

    Only units whose content differs from the file on disk are written.
    Units deleted during the session are removed from disk.

    Args:
        state: Project state to write
        root: Project directory

    Returns:
        Sorted names of the units written or removed

    """
    changed: list[str] = []
    for unit in state:
        target = root / unit.name
        if target.is_file():
            try:
                with open(target, encoding="utf-8", newline="") as f:
                    if f.read() == unit.content:
                        continue
            except UnicodeDecodeError:
                pass
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(unit.content)
        changed.append(unit.name)

    for name in state.deleted_units():
        target = root / name
        if target.is_file():
            target.unlink()
            changed.append(name)

    if changed:
        logger.debug("Wrote %d unit(s) to %s", len(changed), root)
    return sorted(changed)
