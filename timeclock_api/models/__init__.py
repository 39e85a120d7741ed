# timeclock_api/models/__init__.py
import importlib

_MODEL_MODULES = (
    "timeclock_api.models.master",
    "timeclock_api.models.user",
    "timeclock_api.models.shift",
)


def load_all():
    """Import every model module so db.metadata is complete (create_all / Alembic)."""
    for name in _MODEL_MODULES:
        importlib.import_module(name)
