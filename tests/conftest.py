# tests/conftest.py
# -*- coding: utf-8 -*-
import os
import sys
import pathlib
import tempfile

import pytest
from sqlalchemy import event, delete


# =====================================================================================
# Localização do projeto (garante que "vault_app" e "config" estejam no sys.path)
# =====================================================================================
def _add_project_root():
    here = pathlib.Path(__file__).resolve()
    for candidate in [here.parent, *here.parents]:
        if (candidate / "vault_app").is_dir():
            if str(candidate) not in sys.path:
                sys.path.insert(0, str(candidate))
            return candidate
    return None


PROJECT_ROOT = _add_project_root()


# =====================================================================================
# Ambiente de testes (sem scheduler)
# =====================================================================================
@pytest.fixture(autouse=True, scope="session")
def _testing_env():
    os.environ["APP_ENV"] = "testing"
    os.environ["FLASK_ENV"] = "testing"
    os.environ["DISABLE_SCHEDULER"] = "1"
    yield


def _set_sqlite_pragmas(dbapi_conn, _conn_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


# =====================================================================================
# App Flask com SQLite temporário e schema criado uma vez por sessão
# =====================================================================================
@pytest.fixture(scope="session")
def app(_testing_env):
    from config import TestingConfig
    from vault_app import create_app
    from vault_app.extensions import db

    fd, db_path = tempfile.mkstemp(prefix="vault_test_", suffix=".sqlite")
    os.close(fd)

    class _Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}

    app = create_app(_Config)

    with app.app_context():
        event.listen(db.engine, "connect", _set_sqlite_pragmas)
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    try:
        os.remove(db_path)
    except OSError:
        pass


_VAULT_KEYS = (
    "VAULT_STORAGE_PATH",
    "VAULT_BACKUP_PATH",
    "VAULT_BACKUP_RETENTION_DAYS",
    "VAULT_ENABLE_FILE_TRACKING",
    "VAULT_ENABLE_COMPRESSION",
    "VAULT_DEFAULT_QUOTA_MB",
    "VAULT_MAX_QUOTA_MB",
    "VAULT_ALLOWED_EXTENSIONS",
    "VAULT_MAX_FILE_SIZE_MB",
    "VAULT_PURGE_AFTER_DAYS",
)


# =====================================================================================
# Diretórios do vault em tmp_path + tabelas limpas a cada teste
# =====================================================================================
@pytest.fixture(autouse=True)
def vault_dirs(app, tmp_path):
    from vault_app.services import rebuild_vault

    saved = {k: app.config.get(k) for k in _VAULT_KEYS}
    app.config["VAULT_STORAGE_PATH"] = str(tmp_path / "storage")
    app.config["VAULT_BACKUP_PATH"] = str(tmp_path / "backups")
    with app.app_context():
        rebuild_vault()

    yield {"storage": tmp_path / "storage", "backups": tmp_path / "backups"}

    app.config.update(saved)
    from vault_app.extensions import db
    from vault_app.models import QuotaRecord, FileRecord, BackupRecord
    with app.app_context():
        db.session.rollback()
        for model in (FileRecord, BackupRecord, QuotaRecord):
            db.session.execute(delete(model))
        db.session.commit()
        rebuild_vault()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    from vault_app.extensions import db
    with app.app_context():
        try:
            yield db.session
        finally:
            db.session.rollback()
            db.session.close()


@pytest.fixture
def vault(db_session):
    from vault_app.services import get_vault
    return get_vault()


@pytest.fixture
def backups(db_session):
    from vault_app.services import get_backups
    return get_backups()


@pytest.fixture
def reconfigure(app, db_session):
    """Altera chaves VAULT_* e reconstrói os serviços (restaurado pelo vault_dirs)."""
    from vault_app.services import rebuild_vault

    def _apply(**overrides):
        app.config.update(overrides)
        return rebuild_vault()
    return _apply


# =====================================================================================
# Helpers
# =====================================================================================
def write_file(root: pathlib.Path, rel: str, size: int = 0, content: bytes | None = None) -> pathlib.Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(content if content is not None else b"x" * size)
    return p


@pytest.fixture
def make_file():
    return write_file
