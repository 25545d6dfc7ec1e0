import re
from pathlib import Path

# Word characters include Hangul, so student and exam names survive intact.
SAFE_FILENAME_RE = re.compile(r"[^\w.-]+")


def sanitize_filename(name: str) -> str:
    """Return a filesystem-safe export filename.

    - Reject path traversal.
    - Join path segments with underscores and collapse unsafe characters.
    - Strip leading dots so exports are never hidden files.
    - Fall back to 'export' when nothing is left.
    """
    raw = str(name or "").strip()
    parts = [p for p in raw.replace("\\", "/").split("/") if p not in ("", ".")]
    if ".." in parts:
        raise ValueError("Path traversal not allowed")
    cleaned = SAFE_FILENAME_RE.sub("_", "_".join(parts))
    cleaned = re.sub(r"\.{2,}", ".", cleaned).lstrip(".")
    return cleaned or "export"


def build_export_path(base_dir: Path, filename: str) -> Path:
    resolved_base = base_dir.resolve()
    path = (resolved_base / sanitize_filename(filename)).resolve()
    if resolved_base not in path.parents:
        raise ValueError("Export path escapes base directory")
    return path
