from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

import joblib
import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.regression.linear_model import RegressionResultsWrapper

from .config import AGE_COL, CONFIDENCE_LEVEL, GROUP_COL, MODELED_COLUMNS, TARGET_COL
from .features import DesignEncoder, INTERCEPT
from .preprocessing import build_design_matrix, make_design_encoder

logger = logging.getLogger(__name__)


class ModelFitError(ValueError):
    """Raised when OLS cannot be fit as specified (e.g. rank-deficient design)."""


@dataclass(frozen=True)
class ModelSpec:
    name: str
    interaction: bool = False

    @property
    def formula(self) -> str:
        op = "*" if self.interaction else "+"
        return f"{TARGET_COL} ~ {AGE_COL} {op} {GROUP_COL}"


ADDITIVE = ModelSpec(name="Additive", interaction=False)
INTERACTION = ModelSpec(name="Interaction", interaction=True)


@dataclass(frozen=True)
class FittedModel:
    """An OLS fit together with the encoder that produced its design matrix."""

    spec: ModelSpec
    results: RegressionResultsWrapper
    encoder: DesignEncoder

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def params(self) -> pd.Series:
        return self.results.params

    @property
    def terms(self) -> List[str]:
        return list(self.results.params.index)

    @property
    def nobs(self) -> int:
        return int(self.results.nobs)

    def tidy(self, confidence_level: float = CONFIDENCE_LEVEL) -> pd.DataFrame:
        """Per-coefficient table: estimate, std error, t statistic, p-value and CI."""
        res = self.results
        ci = res.conf_int(alpha=1 - confidence_level)
        return pd.DataFrame(
            {
                "term": res.params.index,
                "estimate": res.params.values,
                "std_error": res.bse.values,
                "statistic": res.tvalues.values,
                "p_value": res.pvalues.values,
                "conf_low": ci.iloc[:, 0].values,
                "conf_high": ci.iloc[:, 1].values,
            }
        )

    def glance(self) -> Dict[str, float]:
        """One-row model summary."""
        res = self.results
        return {
            "r_squared": float(res.rsquared),
            "adj_r_squared": float(res.rsquared_adj),
            "sigma": float(np.sqrt(res.scale)),
            "statistic": float(res.fvalue),
            "p_value": float(res.f_pvalue),
            "df": float(res.df_model),
            "log_lik": float(res.llf),
            "aic": float(res.aic),
            "bic": float(res.bic),
            "deviance": float(res.ssr),
            "df_residual": float(res.df_resid),
            "nobs": float(res.nobs),
        }


def _check_design(X: pd.DataFrame, spec: ModelSpec) -> None:
    n_rows, n_cols = X.shape
    if n_rows <= n_cols:
        raise ModelFitError(
            f"{spec.name} model needs more observations than coefficients "
            f"({n_rows} rows for {n_cols} coefficients)"
        )

    rank = np.linalg.matrix_rank(X.to_numpy())
    if rank == n_cols:
        return

    constant = [
        c for c in X.columns
        if c != INTERCEPT and np.ptp(X[c].to_numpy()) == 0
    ]
    if constant:
        detail = f"constant predictor column(s): {constant}"
    else:
        detail = f"linearly dependent columns among {list(X.columns)}"
    raise ModelFitError(
        f"{spec.name} model ({spec.formula}) has a rank-deficient design matrix "
        f"(rank {rank} < {n_cols}); {detail}"
    )


def fit_model(df: pd.DataFrame, spec: ModelSpec) -> FittedModel:
    """Fit ``spec`` to ``df`` by ordinary least squares."""
    logger.info("Fitting %s model: %s", spec.name, spec.formula)

    modeled = MODELED_COLUMNS
    n_missing = int(df[modeled].isna().sum().sum())
    if n_missing:
        raise ModelFitError(
            f"{spec.name} model: {n_missing} missing value(s) in modeled columns {modeled}"
        )

    encoder = make_design_encoder(interaction=spec.interaction)
    try:
        encoder.fit(df)
        X = build_design_matrix(df, encoder)
    except ValueError as exc:
        raise ModelFitError(f"{spec.name} model: could not encode design matrix: {exc}") from exc

    _check_design(X, spec)

    y = pd.to_numeric(df[TARGET_COL]).astype(float)
    results = sm.OLS(y, X).fit()

    logger.info(
        "%s model: R2=%.4f adj R2=%.4f AIC=%.2f BIC=%.2f",
        spec.name,
        results.rsquared,
        results.rsquared_adj,
        results.aic,
        results.bic,
    )
    return FittedModel(spec=spec, results=results, encoder=encoder)


def save_model(model: FittedModel, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(model, path)
    logger.info("Saved %s model to %s", model.name, path)
    return path


def load_model(path: Union[str, Path]) -> FittedModel:
    try:
        return joblib.load(path)
    except Exception as e:
        raise RuntimeError(f"Error loading model from {path}: {e}")
