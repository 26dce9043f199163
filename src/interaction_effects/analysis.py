import argparse
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .config import AnalysisConfig, load_config
from .data_loader import load_insurance_data
from .describe import describe_dataset, summarize_by_group
from .evaluate import (
    ComparisonResult,
    compare_models,
    comparison_table,
    interaction_test,
    interpret_comparison,
)
from .models import ADDITIVE, INTERACTION, FittedModel, fit_model, save_model
from .predict import group_slopes, prediction_grid, prediction_table
from .preprocessing import drop_incomplete, normalize_types
from .viz import plot_coefficient_comparison, plot_interaction, plot_predictions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    additive: FittedModel
    interaction: FittedModel
    comparison: ComparisonResult
    summary_by_group: pd.DataFrame
    predictions: pd.DataFrame
    n_missing: int
    plots: Dict[str, Path]
    tables: Dict[str, Path]


def _write_table(df: pd.DataFrame, path: Path, index: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    logger.info("Saved table to %s", path)
    return path


def run_analysis(config: Optional[AnalysisConfig] = None) -> AnalysisResult:
    """Load, fit both models, compare them, predict and write all artifacts."""
    config = config or AnalysisConfig()
    config.output_dir.mkdir(parents=True, exist_ok=True)

    # 1) Load and check
    raw = load_insurance_data(config.input_path)
    overview = describe_dataset(raw)
    n_missing = overview["n_missing"]

    # 2) Categorical types; incomplete rows dropped once so both fits share rows
    df = drop_incomplete(normalize_types(raw))

    # 3) Descriptive statistics
    summary = summarize_by_group(df)

    # 4) Fit models
    additive = fit_model(df, ADDITIVE)
    interaction = fit_model(df, INTERACTION)
    for model in (additive, interaction):
        logger.info(
            "%s coefficients:\n%s",
            model.name,
            model.tidy(config.confidence_level).to_string(index=False),
        )

    # 5) Compare
    comparison = compare_models(additive, interaction)
    logger.info("ANOVA:\n%s", comparison.anova.to_string())
    logger.info("Interaction term:\n%s", interaction_test(interaction).to_string())
    logger.info("\n%s", interpret_comparison(comparison, alpha=config.alpha))

    # 6) Predict
    logger.info("Group slopes:\n%s", group_slopes(interaction).to_string(index=False))
    predictions = prediction_table(interaction, config.prediction_ages)
    grid = prediction_grid([additive, interaction], config.age_grid)

    # 7) Plots
    out = config.output_dir
    plots = {
        "interaction": plot_interaction(
            df,
            interaction,
            out / "interaction_plot.png",
            confidence_level=config.confidence_level,
            figsize=config.figure_size,
        ),
        "coefficients": plot_coefficient_comparison(
            [additive, interaction],
            out / "coefficient_comparison.png",
            confidence_level=config.confidence_level,
            figsize=config.figure_size,
        ),
        "predictions": plot_predictions(
            interaction,
            out / "prediction_plot.png",
            ages=config.age_grid,
            figsize=config.figure_size,
        ),
    }

    tables_dir = config.tables_dir
    tables = {
        "summary_by_smoker": _write_table(summary, tables_dir / "summary_by_smoker.csv"),
        "tidy_additive": _write_table(
            additive.tidy(config.confidence_level), tables_dir / "tidy_additive.csv"
        ),
        "tidy_interaction": _write_table(
            interaction.tidy(config.confidence_level), tables_dir / "tidy_interaction.csv"
        ),
        "model_comparison": _write_table(
            comparison_table(comparison, [additive, interaction]),
            tables_dir / "model_comparison.csv",
        ),
        "anova": _write_table(comparison.anova, tables_dir / "anova.csv", index=True),
        "predictions": _write_table(predictions, tables_dir / "predictions.csv"),
        "prediction_grid": _write_table(grid, tables_dir / "prediction_grid.csv"),
    }

    for model in (additive, interaction):
        save_model(model, config.models_dir / f"{model.name.lower()}.joblib")

    return AnalysisResult(
        additive=additive,
        interaction=interaction,
        comparison=comparison,
        summary_by_group=summary,
        predictions=predictions,
        n_missing=n_missing,
        plots=plots,
        tables=tables,
    )


def main(argv=None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Compare additive and interaction models of insurance charges."
    )
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--input", default=None, help="insurance CSV file")
    parser.add_argument("--output", default=None, help="directory for plots and tables")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.input:
        config = replace(config, input_path=Path(args.input))
    if args.output:
        config = replace(config, output_dir=Path(args.output))

    try:
        run_analysis(config)
    except Exception:
        logger.exception("Analysis failed")
        raise


if __name__ == "__main__":
    main()
