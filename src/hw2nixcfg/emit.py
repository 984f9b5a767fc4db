"""All-or-nothing emission of a document set.

Documents are written to a staging directory next to the target and the
staging directory is renamed into place. A previous output directory is
moved aside first and restored if the rename fails, so after any failure
the target is exactly what it was before.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from hw2nixcfg.errors import EmissionError
from hw2nixcfg.models.documents import DocumentSet


def _swap_into_place(staging: Path, target: Path) -> None:
    """Replace target with staging; restore target on failure."""
    if not target.exists():
        os.replace(staging, target)
        return

    backup = Path(tempfile.mkdtemp(prefix=f".{target.name}.previous.", dir=target.parent))
    # mkdtemp only reserved the name; os.replace needs it gone on some platforms.
    backup.rmdir()
    os.replace(target, backup)
    try:
        os.replace(staging, target)
    except OSError:
        os.replace(backup, target)
        raise
    shutil.rmtree(backup, ignore_errors=True)


def write_documents(documents: DocumentSet, output_dir: Path | str) -> list[Path]:
    """Write every document into output_dir, atomically.

    Returns:
        The written file paths, sorted by file name.

    Raises:
        EmissionError: On any I/O failure. No partial output remains.
    """
    output_dir = Path(output_dir)
    try:
        output_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}.", dir=output_dir.parent))
    except OSError as e:
        raise EmissionError(f"cannot prepare {output_dir}: {e}", output_dir) from e

    names: list[str] = []
    try:
        for document in sorted(documents.values(), key=lambda d: d.filename):
            (staging / document.filename).write_text(document.text, encoding="utf-8")
            names.append(document.filename)
        # mkdtemp creates 0700; give the published directory normal permissions.
        staging.chmod(0o755)
        _swap_into_place(staging, output_dir)
    except OSError as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise EmissionError(f"cannot write {output_dir}: {e}", output_dir) from e

    return [output_dir / name for name in names]
