from src.database.models import AgreementRun, Base, RunStatus
from src.database.operations import (
    add_run,
    add_run_from_result,
    get_all_runs,
    get_run_by_id,
    init_db,
)
from src.database.session import SessionLocal, engine

__all__ = [
    # Models
    "Base",
    "AgreementRun",
    "RunStatus",
    # Session
    "engine",
    "SessionLocal",
    # Run operations
    "add_run",
    "add_run_from_result",
    "get_all_runs",
    "get_run_by_id",
    # Database init
    "init_db",
]
