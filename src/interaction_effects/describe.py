import logging
from typing import Dict

import pandas as pd

from .config import AGE_COL, GROUP_COL, TARGET_COL
from .data_loader import count_missing

logger = logging.getLogger(__name__)


def describe_dataset(df: pd.DataFrame) -> Dict[str, object]:
    """Shape, dtypes, numeric summary and missing-value count of the dataset."""
    overview = {
        "n_rows": int(df.shape[0]),
        "n_columns": int(df.shape[1]),
        "dtypes": df.dtypes.astype(str).to_dict(),
        "numeric_summary": df.describe(),
        "n_missing": count_missing(df),
    }
    logger.info("Dataset: %d rows, %d columns", overview["n_rows"], overview["n_columns"])
    return overview


def summarize_by_group(df: pd.DataFrame, group_col: str = GROUP_COL) -> pd.DataFrame:
    """Count, mean age, mean and standard deviation of charges per group."""
    summary = (
        df.groupby(group_col, observed=True)
        .agg(
            n=(TARGET_COL, "size"),
            mean_age=(AGE_COL, "mean"),
            mean_charges=(TARGET_COL, "mean"),
            sd_charges=(TARGET_COL, "std"),
        )
        .reset_index()
    )
    summary[group_col] = summary[group_col].astype(str)
    logger.info("Summary by %s:\n%s", group_col, summary.to_string(index=False))
    return summary
