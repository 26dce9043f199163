import logging
from itertools import product
from typing import Iterable, Sequence, Union

import pandas as pd

from .config import (
    AGE_COL,
    AGE_GRID,
    CONFIDENCE_LEVEL,
    GROUP_COL,
    PREDICTION_AGES,
    SMOKER_LEVELS,
)
from .features import INTERCEPT, indicator_name, interaction_name
from .models import FittedModel
from .preprocessing import build_design_matrix, normalize_types

logger = logging.getLogger(__name__)

QueryLike = Union[pd.DataFrame, Iterable[dict], Iterable[tuple]]


def _as_query_frame(queries: QueryLike) -> pd.DataFrame:
    if isinstance(queries, pd.DataFrame):
        df = queries[[AGE_COL, GROUP_COL]].copy()
    else:
        rows = list(queries)
        if rows and not isinstance(rows[0], dict):
            df = pd.DataFrame(rows, columns=[AGE_COL, GROUP_COL])
        else:
            df = pd.DataFrame(rows)
    if df.empty:
        raise ValueError("No query points to predict")
    if df[[AGE_COL, GROUP_COL]].isna().any().any():
        raise ValueError("Query points must not contain missing values")
    return normalize_types(df, cat_cols=[GROUP_COL])


def predict(
    model: FittedModel,
    queries: QueryLike,
    confidence_level: float = CONFIDENCE_LEVEL,
) -> pd.DataFrame:
    """Predict charges at (age, smoker) query points.

    Queries are a DataFrame with ``age`` and ``smoker`` columns, a list of
    dicts, or a list of ``(age, smoker)`` tuples. The design rows come from
    the model's own fitted encoder.

    Returns the queries with ``predicted``, ``std_error``, ``ci_low`` and
    ``ci_high`` (confidence interval of the mean).
    """
    df = _as_query_frame(queries)
    X = build_design_matrix(df, model.encoder)

    frame = model.results.get_prediction(X).summary_frame(alpha=1 - confidence_level)

    out = df.reset_index(drop=True)
    out[GROUP_COL] = out[GROUP_COL].astype(str)
    out["predicted"] = frame["mean"].to_numpy()
    out["std_error"] = frame["mean_se"].to_numpy()
    out["ci_low"] = frame["mean_ci_lower"].to_numpy()
    out["ci_high"] = frame["mean_ci_upper"].to_numpy()
    return out


def group_slopes(model: FittedModel) -> pd.DataFrame:
    """Intercept and age slope for each smoker group."""
    params = model.params
    ref, other = SMOKER_LEVELS[0], SMOKER_LEVELS[1]
    shift = params.get(indicator_name(GROUP_COL, other), 0.0)
    extra_slope = params.get(interaction_name(AGE_COL, GROUP_COL, other), 0.0)

    return pd.DataFrame(
        {
            GROUP_COL: [ref, other],
            "intercept": [params[INTERCEPT], params[INTERCEPT] + shift],
            "slope": [params[AGE_COL], params[AGE_COL] + extra_slope],
        }
    )


def prediction_table(model: FittedModel, ages: Sequence[int] = PREDICTION_AGES) -> pd.DataFrame:
    """Predicted charges per group at ``ages`` and the smoker minus
    non-smoker difference. Repeated ages are reported once."""
    ref, other = SMOKER_LEVELS[0], SMOKER_LEVELS[1]
    ages = list(dict.fromkeys(ages))
    preds = predict(model, list(product(ages, SMOKER_LEVELS)))
    wide = preds.pivot(index=AGE_COL, columns=GROUP_COL, values="predicted")

    table = pd.DataFrame(
        {
            AGE_COL: wide.index.to_numpy(),
            "non_smoker": wide[ref].to_numpy(),
            "smoker": wide[other].to_numpy(),
        }
    )
    table["difference"] = table["smoker"] - table["non_smoker"]
    logger.info("Predicted charges (%s model):\n%s", model.name, table.to_string(index=False))
    return table


def prediction_grid(
    models: Sequence[FittedModel], ages: Sequence[int] = AGE_GRID
) -> pd.DataFrame:
    """Long table over every (age, smoker) pair with one ``charges_<model>``
    column per model."""
    grid = pd.DataFrame(list(product(ages, SMOKER_LEVELS)), columns=[AGE_COL, GROUP_COL])
    for model in models:
        grid[f"charges_{model.name.lower()}"] = predict(model, grid)["predicted"].to_numpy()
    return grid
