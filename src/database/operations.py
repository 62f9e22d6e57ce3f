from datetime import datetime, timezone

from src.database.models import AgreementRun, Base, RunStatus
from src.database.session import SessionLocal, engine


def init_db(bind=None) -> None:
    """Initialize the database, creating tables if they don't exist."""
    Base.metadata.create_all(bind or engine)


# ─────────────────────────────────────────────────────────────────────────────
# Agreement run operations
# ─────────────────────────────────────────────────────────────────────────────


def get_run_by_id(run_id: int, session_factory=SessionLocal) -> AgreementRun | None:
    """Look up an agreement run by its database ID."""
    with session_factory() as session:
        return session.query(AgreementRun).filter(AgreementRun.id == run_id).first()


def get_all_runs(
    status: RunStatus | None = None,
    quantity: str | None = None,
    session_factory=SessionLocal,
) -> list[AgreementRun]:
    """
    Get all agreement runs, optionally filtered by status and/or quantity.

    Args:
        status: Filter by run status (SUCCESS or FAILED)
        quantity: Filter by measured quantity

    Returns:
        List of AgreementRun records, newest first
    """
    with session_factory() as session:
        query = session.query(AgreementRun)
        if status is not None:
            query = query.filter(AgreementRun.status == status)
        if quantity is not None:
            query = query.filter(AgreementRun.quantity == quantity)
        return query.order_by(AgreementRun.created_at.desc(), AgreementRun.id.desc()).all()


def add_run(
    quantity: str,
    method_a: str,
    method_b: str,
    status: RunStatus,
    n: int = 0,
    n_missing: int = 0,
    bias: float | None = None,
    sd: float | None = None,
    lower_loa: float | None = None,
    upper_loa: float | None = None,
    multiplier: float | None = None,
    error_msg: str | None = None,
    session_factory=SessionLocal,
) -> AgreementRun:
    """
    Add an agreement run record to the database.

    Args:
        quantity: Measured quantity the methods were compared on
        method_a: Label of the first method
        method_b: Label of the second method
        status: RunStatus.SUCCESS or RunStatus.FAILED
        n: Number of paired subjects
        bias, sd, lower_loa, upper_loa, multiplier: Agreement statistics (if successful)
        error_msg: Error message (if failed)

    Returns:
        The created AgreementRun record
    """
    with session_factory() as session:
        run = AgreementRun(
            quantity=quantity,
            method_a=method_a,
            method_b=method_b,
            status=status,
            created_at=datetime.now(timezone.utc),
            n=n,
            n_missing=n_missing,
            bias=bias,
            sd=sd,
            lower_loa=lower_loa,
            upper_loa=upper_loa,
            multiplier=multiplier,
            error_msg=error_msg,
        )
        session.add(run)
        session.commit()
        session.refresh(run)
        return run


def add_run_from_result(result, session_factory=SessionLocal) -> AgreementRun:
    """Store an AgreementResult from run_agreement_pipeline."""
    summary = result.summary
    if summary is None:
        return add_run(
            quantity=result.quantity,
            method_a=result.method_a,
            method_b=result.method_b,
            status=RunStatus.FAILED,
            n=result.n_pairs,
            error_msg=result.error,
            session_factory=session_factory,
        )

    return add_run(
        quantity=result.quantity,
        method_a=result.method_a,
        method_b=result.method_b,
        status=RunStatus.SUCCESS,
        n=summary.n,
        n_missing=summary.n_missing,
        bias=summary.bias,
        sd=summary.sd,
        lower_loa=summary.lower_loa,
        upper_loa=summary.upper_loa,
        multiplier=summary.multiplier,
        session_factory=session_factory,
    )
