import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class RunStatus(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class AgreementRun(Base):
    __tablename__ = "agreement_runs"

    id = Column(Integer, primary_key=True)
    quantity = Column(String, index=True, nullable=False)
    method_a = Column(String, nullable=False)
    method_b = Column(String, nullable=False)
    status = Column(Enum(RunStatus), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    n = Column(Integer, nullable=False, default=0)  # Paired subjects
    n_missing = Column(Integer, nullable=False, default=0)
    bias = Column(Float)  # Null if the summary was undefined
    sd = Column(Float)
    lower_loa = Column(Float)
    upper_loa = Column(Float)
    multiplier = Column(Float)
    error_msg = Column(Text)  # Error message if failed
