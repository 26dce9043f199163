import numpy as np
import pytest

from interaction_effects.evaluate import (
    compare_models,
    comparison_table,
    interaction_test,
    interpret_comparison,
    regression_metrics,
)
from interaction_effects.models import ADDITIVE, INTERACTION, fit_model
from interaction_effects.preprocessing import normalize_types


def _fit_both(df):
    df = normalize_types(df)
    return fit_model(df, ADDITIVE), fit_model(df, INTERACTION)


def test_f_test_not_significant_without_interaction(null_interaction_df):
    additive, interaction = _fit_both(null_interaction_df)

    result = compare_models(additive, interaction)

    assert result.p_value > 0.05
    assert result.df_num == 1
    assert result.df_denom == len(null_interaction_df) - 4
    assert result.f_statistic > 0
    assert result.delta_r_squared > 0
    # adjusted R2 rises only when the extra term is worth more than its penalty
    assert (result.delta_adj_r_squared > 0) == (result.f_statistic > 1)


def test_adjusted_r_squared_drops_when_interaction_explains_nothing(no_interaction_df):
    additive, interaction = _fit_both(no_interaction_df)

    result = compare_models(additive, interaction)

    assert result.delta_r_squared == pytest.approx(0, abs=1e-9)
    assert result.delta_adj_r_squared < 0


def test_f_test_significant_with_interaction(interaction_df):
    additive, interaction = _fit_both(interaction_df)

    result = compare_models(additive, interaction)

    assert result.p_value < 0.001
    assert result.f_statistic > 0
    assert result.delta_r_squared > 0
    assert result.delta_adj_r_squared > 0
    assert result.delta_aic < 0
    assert result.delta_bic < 0


def test_f_statistic_matches_rss_formula(interaction_df):
    additive, interaction = _fit_both(interaction_df)

    result = compare_models(additive, interaction)

    rss_r, rss_f = additive.results.ssr, interaction.results.ssr
    df_f = interaction.results.df_resid
    expected = (rss_r - rss_f) / 1 / (rss_f / df_f)
    assert result.f_statistic == pytest.approx(expected)
    assert list(result.anova.index) == ["Additive", "Interaction"]


@pytest.mark.parametrize("fixture", ["no_interaction_df", "null_interaction_df", "interaction_df"])
def test_information_criteria_penalty(fixture, request):
    df = request.getfixturevalue(fixture)
    additive, interaction = _fit_both(df)

    result = compare_models(additive, interaction)

    d_llf = interaction.results.llf - additive.results.llf
    n = len(df)
    assert result.delta_aic == pytest.approx(-2 * d_llf + 2)
    assert result.delta_bic == pytest.approx(-2 * d_llf + np.log(n))
    assert result.aic["Interaction"] == pytest.approx(-2 * interaction.results.llf + 2 * 4)
    assert result.bic["Additive"] == pytest.approx(-2 * additive.results.llf + 3 * np.log(n))


def test_compare_models_requires_nesting(interaction_df):
    additive, interaction = _fit_both(interaction_df)

    with pytest.raises(ValueError, match="not nested"):
        compare_models(interaction, additive)


def test_compare_models_requires_same_rows(interaction_df):
    df = normalize_types(interaction_df)
    additive = fit_model(df.iloc[:200], ADDITIVE)
    interaction = fit_model(df, INTERACTION)

    with pytest.raises(ValueError, match="different data"):
        compare_models(additive, interaction)


def test_comparison_table(interaction_df):
    additive, interaction = _fit_both(interaction_df)
    result = compare_models(additive, interaction)

    table = comparison_table(result, [additive, interaction])

    assert table["model"].tolist() == ["Additive", "Interaction"]
    assert table.loc[1, "r_squared"] == pytest.approx(interaction.results.rsquared)
    assert table.loc[1, "rmse"] < table.loc[0, "rmse"]
    assert "mae" in table.columns


def test_interaction_test(interaction_df):
    additive, interaction = _fit_both(interaction_df)

    row = interaction_test(interaction)
    assert row["p_value"] < 0.001

    with pytest.raises(KeyError):
        interaction_test(additive)


def test_interpret_comparison(interaction_df, null_interaction_df):
    strong = compare_models(*_fit_both(interaction_df))
    weak = compare_models(*_fit_both(null_interaction_df))

    assert "(significant at alpha = 0.05)" in interpret_comparison(strong)
    assert "not significant" in interpret_comparison(weak)


def test_regression_metrics():
    metrics = regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 5.0])

    assert metrics["mae"] == pytest.approx(2 / 3)
    assert metrics["rmse"] == pytest.approx(np.sqrt(4 / 3))
