from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml

# Paths
PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA = DATA_DIR / "raw" / "insurance.csv"
OUTPUT_DIR = PROJECT_ROOT / "plots"
CONFIG_FILE = PROJECT_ROOT / "configs" / "analysis_config.yaml"

TARGET_COL = "charges"
AGE_COL = "age"
GROUP_COL = "smoker"

# Original columns of the classic insurance dataset
NUM_FEATURES = ["age", "bmi", "children"]
CAT_FEATURES = ["sex", "smoker", "region"]
MODELED_COLUMNS = [TARGET_COL, AGE_COL, GROUP_COL]
REQUIRED_COLUMNS = MODELED_COLUMNS

# Reference level comes first and is absorbed into the intercept
SMOKER_LEVELS = ["no", "yes"]
REFERENCE_LEVEL = SMOKER_LEVELS[0]

PREDICTION_AGES = (20, 40, 60)
AGE_GRID = tuple(range(18, 65))

CONFIDENCE_LEVEL = 0.95
ALPHA = 0.05


@dataclass(frozen=True)
class AnalysisConfig:
    """Run-level settings for a single analysis pass."""

    input_path: Path = RAW_DATA
    output_dir: Path = OUTPUT_DIR
    prediction_ages: Tuple[int, ...] = PREDICTION_AGES
    age_grid: Tuple[int, ...] = AGE_GRID
    confidence_level: float = CONFIDENCE_LEVEL
    alpha: float = ALPHA
    figure_size: Tuple[float, float] = field(default=(8.0, 5.0))

    @property
    def tables_dir(self) -> Path:
        return self.output_dir / "tables"

    @property
    def models_dir(self) -> Path:
        return self.output_dir / "models"


def _coerce(name: str, value):
    if name in ("input_path", "output_dir"):
        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path
    if name == "age_grid" and isinstance(value, dict):
        return tuple(range(int(value["start"]), int(value["stop"]) + 1))
    if name in ("prediction_ages", "age_grid"):
        return tuple(int(v) for v in value)
    if name == "figure_size":
        return tuple(float(v) for v in value)
    return float(value)


def load_config(path: Optional[Union[str, Path]] = None) -> AnalysisConfig:
    """Build an AnalysisConfig, overriding defaults from a YAML file.

    The file is optional; only keys under the top-level ``analysis`` section
    are read. ``age_grid`` accepts either a list or ``{start, stop}`` with an
    inclusive stop.
    """
    config = AnalysisConfig()
    cfg_path = Path(path) if path is not None else CONFIG_FILE
    if not cfg_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return config

    with open(cfg_path, "r") as fh:
        raw = yaml.safe_load(fh) or {}

    section = raw.get("analysis", {}) or {}
    known = {f.name for f in fields(AnalysisConfig)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"Unknown config keys in {cfg_path}: {sorted(unknown)}")

    overrides = {name: _coerce(name, value) for name, value in section.items()}
    config = replace(config, **overrides)

    if not 0 < config.confidence_level < 1:
        raise ValueError(
            f"confidence_level must be between 0 and 1, got {config.confidence_level}"
        )
    if not 0 < config.alpha < 1:
        raise ValueError(f"alpha must be between 0 and 1, got {config.alpha}")
    return config
