from __future__ import annotations

import dataclasses
from pathlib import Path
import sys


import pytest


# The service modules (app, settings, persistence, ...) live at the repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    p = tmp_path / "data"
    p.mkdir(parents=True, exist_ok=True)
    return p


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, data_dir: Path):
    """
    Settings pointed at a temp data directory, with background work off so
    tests never touch real ./data.
    """
    from settings import get_settings

    for name in ("MAX_KEYS", "MAX_UPLOAD_SIZE_MB", "NORMALIZE_UPLOADS", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)

    return dataclasses.replace(
        get_settings(),
        data_dir=data_dir,
        seed_demo_data=False,
        cleanup_enabled=False,
        log_file=None,
    )


@pytest.fixture
def locks():
    from persistence.locks import DocumentLockRegistry

    return DocumentLockRegistry()


@pytest.fixture
def store(data_dir: Path):
    from persistence.disk_store import DiskJsonDocumentStore

    return DiskJsonDocumentStore(data_dir)


@pytest.fixture
def service(store, locks):
    from persistence.documents import DocumentService
    from persistence.undo import UndoLedger
    from validation import ValidationLimits

    return DocumentService(store, locks, UndoLedger(), ValidationLimits())


@pytest.fixture
def client(settings):
    from fastapi.testclient import TestClient

    import app as app_module

    with TestClient(app_module.create_app(settings)) as c:
        yield c
