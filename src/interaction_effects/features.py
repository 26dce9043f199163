from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.preprocessing import OneHotEncoder
from sklearn.utils.validation import check_is_fitted

from .config import AGE_COL, GROUP_COL, SMOKER_LEVELS

INTERCEPT = "Intercept"


def indicator_name(group_col: str, level: str) -> str:
    """Treatment-coded column name, e.g. ``smoker[T.yes]``."""
    return f"{group_col}[T.{level}]"


def interaction_name(numeric_col: str, group_col: str, level: str) -> str:
    return f"{numeric_col}:{indicator_name(group_col, level)}"


class DesignEncoder(BaseEstimator, TransformerMixin):
    """sklearn-compatible transformer that turns observations into an OLS
    design matrix with an intercept, the numeric covariate, treatment-coded
    group indicators and, optionally, numeric x group interaction columns.

    The group levels are fixed up front and the first one is the reference
    level, so the same fitted encoder gives identical columns at fit time and
    at prediction time. Unknown levels raise ``ValueError``.
    """

    def __init__(
        self,
        numeric_col: str = AGE_COL,
        group_col: str = GROUP_COL,
        levels: Sequence[str] = tuple(SMOKER_LEVELS),
        interaction: bool = False,
    ):
        self.numeric_col = numeric_col
        self.group_col = group_col
        self.levels = levels
        self.interaction = interaction

    def fit(self, X: pd.DataFrame, y: Optional[pd.Series] = None):
        self._check_columns(X)
        self.onehot_ = OneHotEncoder(
            categories=[list(self.levels)],
            drop="first",
            handle_unknown="error",
            sparse_output=False,
        )
        self.onehot_.fit(self._group_frame(X))
        self.feature_names_ = self._build_feature_names()
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, "onehot_")
        self._check_columns(X)

        numeric = pd.to_numeric(X[self.numeric_col]).to_numpy(dtype=float)
        indicators = self.onehot_.transform(self._group_frame(X))

        columns = [np.ones(len(X)), numeric]
        columns.extend(indicators.T)
        if self.interaction:
            columns.extend(numeric * ind for ind in indicators.T)

        return pd.DataFrame(
            np.column_stack(columns), columns=self.feature_names_, index=X.index
        )

    def get_feature_names_out(self, input_features=None) -> np.ndarray:
        check_is_fitted(self, "feature_names_")
        return np.asarray(self.feature_names_, dtype=object)

    # --- helpers ---

    def _check_columns(self, X: pd.DataFrame) -> None:
        missing = {self.numeric_col, self.group_col} - set(X.columns)
        if missing:
            raise KeyError(f"Input data must contain columns: {sorted(missing)}")

    def _group_frame(self, X: pd.DataFrame) -> pd.DataFrame:
        return X[[self.group_col]].astype(str)

    def _build_feature_names(self) -> List[str]:
        non_reference = list(self.levels)[1:]
        names = [INTERCEPT, self.numeric_col]
        names.extend(indicator_name(self.group_col, lvl) for lvl in non_reference)
        if self.interaction:
            names.extend(
                interaction_name(self.numeric_col, self.group_col, lvl)
                for lvl in non_reference
            )
        return names
