import json
import pathlib

from pydantic import BaseModel, ConfigDict, Field

# ---------- Measurement ----------


class MeasurementRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    subject_id: str = Field(min_length=1)
    value: float | None


# ---------- Comparison config ----------


class ComparisonConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    table_a: str
    table_b: str
    id_col: str
    quantities: list[str] = Field(min_length=1)

    method_a: str = "A"
    method_b: str = "B"

    multiplier: float = Field(default=1.96, gt=0)
    validate_unique: bool = True


def load_comparison_config(path) -> ComparisonConfig:
    """Load and validate a comparison config from a JSON file."""
    path = pathlib.Path(path)
    with open(path) as f:
        data = json.load(f)
    return ComparisonConfig.model_validate(data)
