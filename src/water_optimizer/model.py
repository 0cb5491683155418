"""
Water usage model.

Synthetic household water-usage data, the closed-form daily usage
estimate, and the simulated training step that backs the dashboard's
"Model Ready" state.
"""

import asyncio
import dataclasses
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from . import config

logger = logging.getLogger(__name__)


class UsagePattern(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class Season(str, Enum):
    SUMMER = "Summer"
    WINTER = "Winter"
    MONSOON = "Monsoon"


class TrainingStatus(str, Enum):
    IDLE = "idle"
    TRAINING = "training"
    READY = "ready"


# Draw order for the categorical features
PATTERNS = (UsagePattern.LOW, UsagePattern.MODERATE, UsagePattern.HIGH)
SEASONS = (Season.SUMMER, Season.WINTER, Season.MONSOON)

RandomSource = Union[np.random.Generator, int, None]


@dataclass(frozen=True)
class WaterSample:
    """One synthetic labelled household-day."""

    id: int
    tank_capacity: int
    household_size: int
    usage_pattern: UsagePattern
    leak_status: int
    temperature: int
    season: Season
    daily_water_usage: int


@dataclass(frozen=True)
class ModelMetrics:
    r_squared: float
    mae: float
    rmse: float
    training_samples: int


@dataclass(frozen=True)
class FeatureImportance:
    feature: str
    importance: float


@dataclass(frozen=True)
class TrainingResult:
    metrics: ModelMetrics
    importance: Tuple[FeatureImportance, ...]


@dataclass(frozen=True)
class UserInputs:
    """
    Dashboard inputs for a single prediction.

    Enum fields accept their string values ("High", "Monsoon") and are
    coerced on construction.
    """

    tank_capacity: int = 2000
    household_size: int = 4
    usage_pattern: UsagePattern = UsagePattern.MODERATE
    leak_status: bool = False
    temperature: float = 30
    season: Season = Season.SUMMER

    def __post_init__(self):
        object.__setattr__(self, "usage_pattern", UsagePattern(self.usage_pattern))
        object.__setattr__(self, "season", Season(self.season))
        object.__setattr__(self, "leak_status", bool(self.leak_status))

    def replace(self, **changes) -> "UserInputs":
        """Return a copy with ``changes`` applied."""
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise TypeError(f"Unknown input field(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class PredictionResult:
    prediction: int
    interval: Tuple[int, int]
    savings: int
    optimal_prediction: int = 0


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves going up."""
    return int(math.floor(value + 0.5))


def _as_rng(rng: RandomSource) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def pattern_multiplier(pattern: Union[UsagePattern, str]) -> float:
    """Scalar applied to baseline per-person usage for a usage pattern."""
    return config.PATTERN_MULTIPLIERS[UsagePattern(pattern).value]


def calculate_daily_usage(household_size: float,
                          pattern: Union[UsagePattern, str],
                          temperature: float,
                          leak: Union[int, bool],
                          noise: float = 0.0) -> float:
    """
    Raw daily usage estimate in litres (not rounded, not floored).

    Parameters
    ----------
    household_size : float
        Number of people in the household
    pattern : UsagePattern or str
        Usage-intensity category
    temperature : float
        Ambient temperature in °C
    leak : int or bool
        1/True when a leak is active
    noise : float
        Additive noise term (synthetic data only)

    Returns
    -------
    float
        household_size * 150 * multiplier + (temperature - 20) * 12
        + leak * 350 + noise
    """
    base_usage = household_size * config.BASE_USAGE_PER_PERSON * pattern_multiplier(pattern)
    temperature_impact = (temperature - config.BASELINE_TEMPERATURE) * config.TEMPERATURE_COEFFICIENT
    leak_impact = int(bool(leak)) * config.LEAK_IMPACT
    return base_usage + temperature_impact + leak_impact + noise


def _draw_sample(rng: np.random.Generator, sample_id: int) -> WaterSample:
    tank_capacity = int(math.floor(rng.uniform(*config.TANK_CAPACITY_RANGE)))
    household_size = int(math.floor(rng.uniform(*config.HOUSEHOLD_SIZE_RANGE)))
    usage_pattern = PATTERNS[rng.integers(len(PATTERNS))]
    leak_status = int(rng.random() < config.LEAK_PROBABILITY)
    season = SEASONS[rng.integers(len(SEASONS))]

    low, high = config.SEASON_TEMPERATURE_RANGES[season.value]
    temperature = rng.uniform(low, high)

    noise = rng.uniform(-config.NOISE_AMPLITUDE, config.NOISE_AMPLITUDE)
    usage = calculate_daily_usage(household_size, usage_pattern, temperature, leak_status, noise)
    usage = max(config.MINIMUM_DAILY_USAGE, usage)

    return WaterSample(
        id=sample_id,
        tank_capacity=tank_capacity,
        household_size=household_size,
        usage_pattern=usage_pattern,
        leak_status=leak_status,
        temperature=_round_half_up(temperature),
        season=season,
        daily_water_usage=_round_half_up(usage),
    )


def iter_synthetic_data(count: int = config.DEFAULT_SAMPLE_COUNT,
                        rng: RandomSource = None) -> Iterator[WaterSample]:
    """Lazily yield ``count`` independently drawn samples with ids 0..count-1."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    generator = _as_rng(rng)
    for sample_id in range(count):
        yield _draw_sample(generator, sample_id)


def generate_synthetic_data(count: int = config.DEFAULT_SAMPLE_COUNT,
                            rng: RandomSource = None) -> List[WaterSample]:
    """
    Generate a synthetic water usage dataset.

    Parameters
    ----------
    count : int
        Number of samples to draw
    rng : numpy.random.Generator, int or None
        Random source or seed; the same seed reproduces the same samples

    Returns
    -------
    List[WaterSample]
        Samples with sequential ids ``0 .. count-1``
    """
    samples = list(iter_synthetic_data(count, rng))
    logger.debug("Generated %d synthetic samples", len(samples))
    return samples


def samples_to_frame(samples: Sequence[WaterSample]) -> pd.DataFrame:
    """Tabulate samples, one column per field, enums as plain strings."""
    columns = [f.name for f in dataclasses.fields(WaterSample)]
    rows = [
        {**dataclasses.asdict(sample),
         "usage_pattern": sample.usage_pattern.value,
         "season": sample.season.value}
        for sample in samples
    ]
    return pd.DataFrame(rows, columns=columns)


def predict_usage(inputs: UserInputs) -> PredictionResult:
    """
    Predict daily water usage for a set of dashboard inputs.

    The optimal counterfactual keeps the temperature impact but assumes
    the frugal pattern and no leak; savings is the gap to it.
    """
    prediction = _round_half_up(calculate_daily_usage(
        inputs.household_size, inputs.usage_pattern, inputs.temperature, inputs.leak_status
    ))

    temperature_impact = (inputs.temperature - config.BASELINE_TEMPERATURE) * config.TEMPERATURE_COEFFICIENT
    optimal_prediction = _round_half_up(
        inputs.household_size * config.BASE_USAGE_PER_PERSON * config.OPTIMAL_PATTERN_MULTIPLIER
        + temperature_impact
    )
    savings = max(0, prediction - optimal_prediction)

    half_width = config.PREDICTION_INTERVAL_HALF_WIDTH
    return PredictionResult(
        prediction=prediction,
        interval=(prediction - half_width, prediction + half_width),
        savings=savings,
        optimal_prediction=optimal_prediction,
    )


def get_feature_importance() -> Tuple[FeatureImportance, ...]:
    """Static importance ranking, sorted by weight descending."""
    ranking = [FeatureImportance(feature, weight)
               for feature, weight in config.FEATURE_IMPORTANCE.items()]
    return tuple(sorted(ranking, key=lambda entry: entry.importance, reverse=True))


async def train_model(samples: Sequence[WaterSample],
                      delay: float = config.TRAINING_DELAY_SECONDS) -> TrainingResult:
    """
    Simulate fitting a regressor on ``samples``.

    Only the number of samples is used; the metrics and the importance
    ranking are fixed.
    """
    logger.info("Training on %d samples", len(samples))
    await asyncio.sleep(delay)

    metrics = ModelMetrics(training_samples=len(samples), **config.TRAINED_METRICS)
    logger.info("Training complete: R² = %.2f", metrics.r_squared)
    return TrainingResult(metrics=metrics, importance=get_feature_importance())
