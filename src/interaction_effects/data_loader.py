import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from .config import RAW_DATA, REQUIRED_COLUMNS

logger = logging.getLogger(__name__)


def load_insurance_data(path: Optional[Union[str, Path]] = None) -> pd.DataFrame:
    """
    Load raw insurance data from CSV and check the modeled columns exist.
    """
    csv_path = Path(path) if path is not None else RAW_DATA
    if not csv_path.exists():
        raise FileNotFoundError(f"Insurance data not found: {csv_path}")

    logger.info("Loading data from %s", csv_path)
    df = pd.read_csv(csv_path)
    logger.info("Loaded %d rows x %d columns", df.shape[0], df.shape[1])

    check_required_columns(df)
    return df


def check_required_columns(df: pd.DataFrame, required: Iterable[str] = REQUIRED_COLUMNS) -> None:
    missing = set(required) - set(df.columns)
    if missing:
        logger.error("Missing required columns: %s", missing)
        raise ValueError(f"Missing required columns: {sorted(missing)}")


def count_missing(df: pd.DataFrame, columns: Optional[Iterable[str]] = None) -> int:
    """Count missing cells. Advisory only: nothing is dropped or imputed."""
    subset = df[list(columns)] if columns is not None else df
    n_missing = int(subset.isna().sum().sum())
    if n_missing:
        per_column = subset.isna().sum()
        logger.warning(
            "Found %d missing values: %s",
            n_missing,
            per_column[per_column > 0].to_dict(),
        )
    else:
        logger.info("No missing values found")
    return n_missing
