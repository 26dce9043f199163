import logging
from typing import Iterable

import pandas as pd

from .config import CAT_FEATURES, GROUP_COL, MODELED_COLUMNS, SMOKER_LEVELS
from .features import DesignEncoder

logger = logging.getLogger(__name__)


def normalize_types(df: pd.DataFrame, cat_cols: Iterable[str] = CAT_FEATURES) -> pd.DataFrame:
    """Mark the categorical columns as unordered pandas categoricals.

    ``smoker`` gets the fixed level order ``["no", "yes"]`` so "no" is the
    reference level whatever order the rows come in. Columns absent from the
    frame are skipped.
    """
    df = df.copy()
    for col in cat_cols:
        if col not in df.columns:
            continue
        if col == GROUP_COL:
            values = df[col].astype("string").str.strip().str.lower()
            unexpected = set(values.dropna().unique()) - set(SMOKER_LEVELS)
            if unexpected:
                raise ValueError(
                    f"Unexpected levels in '{col}': {sorted(unexpected)}; "
                    f"expected {SMOKER_LEVELS}"
                )
            df[col] = pd.Categorical(values, categories=SMOKER_LEVELS, ordered=False)
        else:
            df[col] = df[col].astype("category")

    logger.info("Categorical columns: %s", [c for c in cat_cols if c in df.columns])
    return df


def make_design_encoder(interaction: bool = False) -> DesignEncoder:
    """Return an unfitted encoder for the additive or interaction design."""
    return DesignEncoder(levels=tuple(SMOKER_LEVELS), interaction=interaction)


def build_design_matrix(df: pd.DataFrame, encoder: DesignEncoder) -> pd.DataFrame:
    """Encode ``df`` with a fitted encoder.

    This is the single encoding path used both when fitting a model and when
    predicting from it.
    """
    return encoder.transform(df)


def drop_incomplete(df: pd.DataFrame, columns: Iterable[str] = MODELED_COLUMNS) -> pd.DataFrame:
    """Drop rows with a missing value in any of ``columns``.

    Both models must be fit on the frame this returns so they share rows.
    """
    columns = list(columns)
    complete = df.dropna(subset=columns)
    n_dropped = len(df) - len(complete)
    if n_dropped:
        logger.warning(
            "Dropped %d of %d rows with missing values in %s", n_dropped, len(df), columns
        )
    return complete
