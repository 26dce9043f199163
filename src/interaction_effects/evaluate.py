import logging
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from statsmodels.stats.anova import anova_lm

from .config import AGE_COL, ALPHA, GROUP_COL, SMOKER_LEVELS
from .features import interaction_name
from .models import FittedModel

logger = logging.getLogger(__name__)

INTERACTION_TERM = interaction_name(AGE_COL, GROUP_COL, SMOKER_LEVELS[1])


def regression_metrics(y_true, y_pred) -> Dict[str, float]:
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    r2 = r2_score(y_true, y_pred)
    mae = mean_absolute_error(y_true, y_pred)

    return {
        "rmse": rmse,
        "r2": float(r2),
        "mae": float(mae),
    }


@dataclass(frozen=True)
class ComparisonResult:
    """Nested-model comparison of a restricted and a full OLS fit.

    Deltas are always full minus restricted.
    """

    restricted: str
    full: str
    anova: pd.DataFrame
    f_statistic: float
    df_num: float
    df_denom: float
    p_value: float
    aic: Dict[str, float]
    bic: Dict[str, float]
    r_squared: Dict[str, float]
    adj_r_squared: Dict[str, float]

    @property
    def delta_aic(self) -> float:
        return self.aic[self.full] - self.aic[self.restricted]

    @property
    def delta_bic(self) -> float:
        return self.bic[self.full] - self.bic[self.restricted]

    @property
    def delta_r_squared(self) -> float:
        return self.r_squared[self.full] - self.r_squared[self.restricted]

    @property
    def delta_adj_r_squared(self) -> float:
        return self.adj_r_squared[self.full] - self.adj_r_squared[self.restricted]


def _check_nested(restricted: FittedModel, full: FittedModel) -> None:
    small, big = set(restricted.terms), set(full.terms)
    if not small < big:
        raise ValueError(
            f"{restricted.name} model terms {sorted(small)} are not a strict subset of "
            f"{full.name} model terms {sorted(big)}; models are not nested"
        )
    if restricted.nobs != full.nobs:
        raise ValueError(
            f"Models were fit on different data ({restricted.nobs} vs {full.nobs} rows)"
        )


def compare_models(restricted: FittedModel, full: FittedModel) -> ComparisonResult:
    """Nested F-test, information criteria and R-squared for two fitted models.

    Only produces the numbers; deciding which model to prefer is left to the
    caller (see ``interpret_comparison``).
    """
    _check_nested(restricted, full)

    table = anova_lm(restricted.results, full.results)
    table.index = [restricted.name, full.name]
    test_row = table.iloc[1]

    models = (restricted, full)
    result = ComparisonResult(
        restricted=restricted.name,
        full=full.name,
        anova=table,
        f_statistic=float(test_row["F"]),
        df_num=float(test_row["df_diff"]),
        df_denom=float(test_row["df_resid"]),
        p_value=float(test_row["Pr(>F)"]),
        aic={m.name: float(m.results.aic) for m in models},
        bic={m.name: float(m.results.bic) for m in models},
        r_squared={m.name: float(m.results.rsquared) for m in models},
        adj_r_squared={m.name: float(m.results.rsquared_adj) for m in models},
    )

    logger.info(
        "F(%d, %d) = %.4f, p = %.4g; dAIC = %.2f, dBIC = %.2f, dR2 = %.5f, dAdjR2 = %.5f",
        result.df_num,
        result.df_denom,
        result.f_statistic,
        result.p_value,
        result.delta_aic,
        result.delta_bic,
        result.delta_r_squared,
        result.delta_adj_r_squared,
    )
    return result


def comparison_table(result: ComparisonResult, models: Sequence[FittedModel] = ()) -> pd.DataFrame:
    """One row per model with AIC, BIC, R-squared and, if the fitted models
    are passed, in-sample error metrics."""
    names = [result.restricted, result.full]
    df = pd.DataFrame(
        {
            "model": names,
            "aic": [result.aic[n] for n in names],
            "bic": [result.bic[n] for n in names],
            "r_squared": [result.r_squared[n] for n in names],
            "adj_r_squared": [result.adj_r_squared[n] for n in names],
        }
    )
    if models:
        metrics = {
            m.name: regression_metrics(m.results.model.endog, m.results.fittedvalues)
            for m in models
        }
        for key in ("rmse", "mae"):
            df[key] = [metrics[n][key] for n in names]
    return df


def interaction_test(model: FittedModel, term: str = INTERACTION_TERM) -> pd.Series:
    """Tidy row for the interaction coefficient of ``model``."""
    tidy = model.tidy().set_index("term")
    if term not in tidy.index:
        raise KeyError(f"{model.name} model has no '{term}' term")
    return tidy.loc[term]


def interpret_comparison(result: ComparisonResult, alpha: float = ALPHA) -> str:
    """Plain-language summary of a comparison at significance level ``alpha``."""
    significant = result.p_value < alpha
    lines = [
        f"Nested F-test: F({result.df_num:.0f}, {result.df_denom:.0f}) = "
        f"{result.f_statistic:.3f}, p = {result.p_value:.4g} "
        f"({'significant' if significant else 'not significant'} at alpha = {alpha}).",
        f"AIC {'favours' if result.delta_aic < 0 else 'does not favour'} the "
        f"{result.full} model (delta = {result.delta_aic:.2f}).",
        f"BIC {'favours' if result.delta_bic < 0 else 'does not favour'} the "
        f"{result.full} model (delta = {result.delta_bic:.2f}).",
        f"R-squared changes by {result.delta_r_squared:.5f}; adjusted R-squared by "
        f"{result.delta_adj_r_squared:.5f}.",
    ]
    return "\n".join(lines)
