"""Reading measurement tables from CSV and validating comparison inputs."""

from src.measurement_io.reader import (
    DuplicateIdentifierError,
    check_unique_identifiers,
    frame_to_records,
    read_measurement_csv,
    records_to_frame,
)
from src.measurement_io.schema import (
    ComparisonConfig,
    MeasurementRecord,
    load_comparison_config,
)

__all__ = [
    # CSV ingestion
    "read_measurement_csv",
    # Identifier checks
    "DuplicateIdentifierError",
    "check_unique_identifiers",
    # Schema models
    "ComparisonConfig",
    "MeasurementRecord",
    "load_comparison_config",
    # Conversions
    "frame_to_records",
    "records_to_frame",
]
