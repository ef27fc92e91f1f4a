from __future__ import annotations

import re
from pathlib import Path

from errors import InvalidIdentifier

DOCUMENT_PREFIX = "data_"
DOCUMENT_SUFFIX = ".json"
DOCUMENT_GLOB = f"{DOCUMENT_PREFIX}*{DOCUMENT_SUFFIX}"

_SAFE_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def is_safe_identifier(doc_id: object) -> bool:
    return isinstance(doc_id, str) and bool(_SAFE_ID_RE.fullmatch(doc_id))


def require_identifier(doc_id: str | None) -> str:
    """
    Return `doc_id` if it is usable as part of a file name.

    Only letters, digits, '_' and '-' are accepted, which rules out path
    separators and '..'.
    """
    if doc_id is None or doc_id == "":
        raise InvalidIdentifier("Missing 'id' parameter")
    if not is_safe_identifier(doc_id):
        raise InvalidIdentifier(
            "Invalid 'id' parameter: only letters, digits, '_' and '-' are allowed",
            details={"id": doc_id},
        )
    return doc_id


def document_filename(doc_id: str) -> str:
    return f"{DOCUMENT_PREFIX}{doc_id}{DOCUMENT_SUFFIX}"


def document_path(data_dir: Path, doc_id: str) -> Path:
    return data_dir / document_filename(require_identifier(doc_id))
