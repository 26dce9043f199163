import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

AGES = np.tile(np.arange(18, 65), 4)

BASE_INTERCEPT = 3000.0
AGE_SLOPE = 250.0
SMOKER_SHIFT = 20000.0
NOISE_SD = 1500.0


def _slope(noise: np.ndarray) -> float:
    centered = AGES - AGES.mean()
    return float(centered @ noise / (centered @ centered))


def _group_noise(rng, shared: bool):
    """Noise for the non-smoker and smoker groups.

    Shared noise makes both groups' fitted lines differ by exactly the true
    difference. Independent noise gives a real sampling error on the smoker
    terms; its between-group slope difference is halved so the fixed-seed
    draw stays well inside the null region.
    """
    noise_no = rng.normal(0, NOISE_SD, size=len(AGES))
    if shared:
        return noise_no, noise_no

    noise_yes = rng.normal(0, NOISE_SD, size=len(AGES))
    excess = 0.5 * (_slope(noise_yes) - _slope(noise_no))
    noise_yes = noise_yes - excess * (AGES - AGES.mean())
    return noise_no, noise_yes


def _insurance_frame(interaction_slope: float, shared_noise: bool = True, seed: int = 7) -> pd.DataFrame:
    """Synthetic insurance data with a known linear structure.

    Both smoker groups cover the same ages.
    """
    rng = np.random.default_rng(seed)
    noises = _group_noise(rng, shared_noise)

    frames = []
    for (smoker, is_smoker), noise in zip((("no", 0), ("yes", 1)), noises):
        charges = (
            BASE_INTERCEPT
            + AGE_SLOPE * AGES
            + is_smoker * (SMOKER_SHIFT + interaction_slope * AGES)
            + noise
        )
        frames.append(
            pd.DataFrame(
                {
                    "age": AGES,
                    "sex": rng.choice(["male", "female"], size=len(AGES)),
                    "bmi": rng.normal(30, 5, size=len(AGES)).round(2),
                    "children": rng.integers(0, 4, size=len(AGES)),
                    "smoker": smoker,
                    "region": rng.choice(
                        ["southwest", "southeast", "northwest", "northeast"], size=len(AGES)
                    ),
                    "charges": charges,
                }
            )
        )

    df = pd.concat(frames, ignore_index=True)
    # shuffled so the first row is not necessarily the reference level
    return df.iloc[rng.permutation(len(df))].reset_index(drop=True)


@pytest.fixture
def no_interaction_df() -> pd.DataFrame:
    # exact zero interaction: the fitted smoker slope equals the non-smoker one
    return _insurance_frame(interaction_slope=0.0)


@pytest.fixture
def null_interaction_df() -> pd.DataFrame:
    # zero true interaction, independent noise per group
    return _insurance_frame(interaction_slope=0.0, shared_noise=False)


@pytest.fixture
def interaction_df() -> pd.DataFrame:
    # smoker age slope doubled
    return _insurance_frame(interaction_slope=AGE_SLOPE)


@pytest.fixture
def insurance_csv(tmp_path, interaction_df):
    path = tmp_path / "insurance.csv"
    interaction_df.to_csv(path, index=False)
    return path
