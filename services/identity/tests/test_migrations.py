import importlib.util
from pathlib import Path

import sqlalchemy as sa

from app.auth.models import User  # noqa: F401 - register with Base
from app.permissions.models import Permission  # noqa: F401 - register with Base
from shared.database.postgres import Base

REVISION = (
    Path(__file__).resolve().parents[3]
    / "migrations" / "identity" / "alembic" / "versions" / "001_initial_identity.py"
)


class RecordingOps:
    """Captures the schema operations a revision issues instead of running them."""

    def __init__(self) -> None:
        self.tables: dict[str, list] = {}
        self.indexes: dict[str, tuple[str, tuple[str, ...], bool]] = {}

    def create_table(self, name, *elements, **kw) -> None:
        self.tables[name] = list(elements)

    def create_index(self, name, table, columns, unique=False, **kw) -> None:
        self.indexes[name] = (table, tuple(str(c) for c in columns), unique)

    def execute(self, *args, **kw) -> None:
        pass


def _run_upgrade() -> RecordingOps:
    spec = importlib.util.spec_from_file_location("identity_revision_001", REVISION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    ops = RecordingOps()
    module.op = ops
    module.upgrade()
    return ops


def test_revision_creates_every_model_table() -> None:
    ops = _run_upgrade()
    assert set(ops.tables) == set(Base.metadata.tables)
    for name, table in Base.metadata.tables.items():
        created = {e.name for e in ops.tables[name] if isinstance(e, sa.Column)}
        assert created == set(table.columns.keys())


def test_revision_indexes_match_models() -> None:
    ops = _run_upgrade()
    expected = {
        index.name: (table.name, tuple(c.name for c in index.columns), bool(index.unique))
        for table in Base.metadata.tables.values()
        for index in table.indexes
    }
    assert ops.indexes == expected


def test_revision_has_no_duplicate_unique_constraints() -> None:
    ops = _run_upgrade()
    for elements in ops.tables.values():
        assert not [e for e in elements if isinstance(e, sa.UniqueConstraint)]
