import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .config import AGE_COL, AGE_GRID, CONFIDENCE_LEVEL, GROUP_COL, SMOKER_LEVELS, TARGET_COL
from .features import INTERCEPT
from .models import FittedModel
from .predict import predict

logger = logging.getLogger(__name__)

STYLE = "seaborn-v0_8-whitegrid"
SMOKER_PALETTE = {"no": "#4C72B0", "yes": "#DD8452"}
FIGSIZE = (8, 5)


def _save(fig, path: Union[str, Path]) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)
    logger.info("Saved plot to %s", path)
    return path


def plot_interaction(
    df: pd.DataFrame,
    model: FittedModel,
    path: Union[str, Path],
    confidence_level: float = CONFIDENCE_LEVEL,
    figsize: Tuple[float, float] = FIGSIZE,
) -> Path:
    """Scatter of age vs charges coloured by smoker, with each group's fitted
    line and confidence band from ``model``.

    The bands are mean-prediction intervals of the single fitted model, so
    they use its pooled residual variance rather than a separate regression
    per group.
    """
    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=figsize)

        data = df.assign(**{GROUP_COL: df[GROUP_COL].astype(str)})
        sns.scatterplot(
            data=data,
            x=AGE_COL,
            y=TARGET_COL,
            hue=GROUP_COL,
            hue_order=SMOKER_LEVELS,
            palette=SMOKER_PALETTE,
            alpha=0.4,
            s=18,
            ax=ax,
        )

        for level in SMOKER_LEVELS:
            ages = data.loc[data[GROUP_COL] == level, AGE_COL]
            if ages.empty:
                continue
            grid = np.linspace(ages.min(), ages.max(), 100)
            line = predict(
                model,
                pd.DataFrame({AGE_COL: grid, GROUP_COL: level}),
                confidence_level=confidence_level,
            )
            color = SMOKER_PALETTE[level]
            ax.plot(line[AGE_COL], line["predicted"], color=color, linewidth=1.8)
            ax.fill_between(line[AGE_COL], line["ci_low"], line["ci_high"], color=color, alpha=0.2)

        ax.set_xlabel("Age (Years)")
        ax.set_ylabel("Insurance Charges (USD)")
        ax.set_title(
            "Interaction Effect: Age x Smoker on Charges\n"
            "Different slopes indicate interaction between age and smoking status",
            fontweight="bold",
        )
        ax.legend(title="Smoker", loc="center left", bbox_to_anchor=(1.0, 0.5))

    return _save(fig, path)


def plot_coefficient_comparison(
    models: Sequence[FittedModel],
    path: Union[str, Path],
    confidence_level: float = CONFIDENCE_LEVEL,
    figsize: Tuple[float, float] = FIGSIZE,
) -> Path:
    """Horizontal bars of coefficient estimates (intercept excluded) with
    confidence intervals, grouped by model."""
    tidy = pd.concat(
        [m.tidy(confidence_level).assign(model=m.name) for m in models],
        ignore_index=True,
    )
    tidy = tidy[tidy["term"] != INTERCEPT]
    terms = list(dict.fromkeys(tidy["term"]))

    colors = sns.color_palette("Set2", n_colors=len(models))
    height = 0.8 / len(models)
    positions = np.arange(len(terms))

    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=figsize)
        for i, model in enumerate(models):
            rows = tidy[tidy["model"] == model.name].set_index("term").reindex(terms)
            err = np.vstack(
                [rows["estimate"] - rows["conf_low"], rows["conf_high"] - rows["estimate"]]
            )
            ax.barh(
                positions - 0.4 + height * (i + 0.5),
                rows["estimate"],
                height=height,
                xerr=err,
                capsize=3,
                color=colors[i],
                edgecolor="black",
                linewidth=0.5,
                label=model.name,
            )

        ax.axvline(0, color="black", linewidth=0.8)
        ax.set_yticks(positions)
        ax.set_yticklabels(terms)
        ax.set_xlabel("Coefficient Estimate")
        ax.set_ylabel("Term")
        ax.set_title("Model Comparison: Additive vs Interaction", fontweight="bold")
        ax.legend(title="Model")

    return _save(fig, path)


def plot_predictions(
    model: FittedModel,
    path: Union[str, Path],
    ages: Sequence[int] = AGE_GRID,
    figsize: Tuple[float, float] = FIGSIZE,
) -> Path:
    """Predicted charges vs age for each smoker group."""
    grid = pd.DataFrame(
        [(age, level) for level in SMOKER_LEVELS for age in ages],
        columns=[AGE_COL, GROUP_COL],
    )
    preds = predict(model, grid)

    with plt.style.context(STYLE):
        fig, ax = plt.subplots(figsize=figsize)
        sns.lineplot(
            data=preds,
            x=AGE_COL,
            y="predicted",
            hue=GROUP_COL,
            hue_order=SMOKER_LEVELS,
            palette=SMOKER_PALETTE,
            linewidth=2,
            ax=ax,
        )
        ax.set_xlabel("Age (Years)")
        ax.set_ylabel("Predicted Insurance Charges (USD)")
        ax.set_title(
            f"Predicted Charges by Age and Smoker Status\nBased on {model.name.lower()} model",
            fontweight="bold",
        )
        ax.legend(title="Smoker")

    return _save(fig, path)
