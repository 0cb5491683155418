"""
Analysis functions for the water usage model: dataset summaries,
scenario comparisons, input sensitivity and the CSV report.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from . import config
from .model import (
    ModelMetrics,
    PredictionResult,
    UserInputs,
    WaterSample,
    predict_usage,
    samples_to_frame,
    _as_rng,
)

logger = logging.getLogger(__name__)

# Report field names, in the order the dashboard exports them
REPORT_FIELDS = [
    ("tankCapacity", "tank_capacity"),
    ("householdSize", "household_size"),
    ("usagePattern", "usage_pattern"),
    ("leakStatus", "leak_status"),
    ("temperature", "temperature"),
    ("season", "season"),
]


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "value"):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_report_frame(inputs: UserInputs, prediction: PredictionResult) -> pd.DataFrame:
    """Two-column Feature/Value table of the inputs followed by the prediction."""
    rows = [(name, _format_value(getattr(inputs, attr))) for name, attr in REPORT_FIELDS]
    rows.append(("Prediction", str(prediction.prediction)))
    return pd.DataFrame(rows, columns=["Feature", "Value"])


def export_report(inputs: UserInputs,
                  prediction: PredictionResult,
                  path: Optional[str] = None) -> str:
    """
    Render the prediction report as CSV text.

    Parameters
    ----------
    inputs : UserInputs
        Inputs the prediction was made for
    prediction : PredictionResult
        The current prediction
    path : str, optional
        When given, the CSV is also written there

    Returns
    -------
    str
        CSV text with a ``Feature,Value`` header
    """
    csv_text = build_report_frame(inputs, prediction).to_csv(index=False, lineterminator="\n")
    if path is not None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(csv_text)
        logger.info("Report written to %s", path)
    return csv_text


def simulate_residuals(samples: Sequence[WaterSample],
                       limit: int = config.RESIDUAL_SAMPLE_LIMIT,
                       rng=None) -> pd.DataFrame:
    """Actual usage of the first ``limit`` samples with simulated residuals."""
    generator = _as_rng(rng)
    subset = list(samples[:limit])
    spread = config.RESIDUAL_SPREAD
    return pd.DataFrame({
        "actual": [s.daily_water_usage for s in subset],
        "residual": generator.uniform(-spread, spread, size=len(subset)),
    })


def compare_to_average(prediction: int,
                       average: float = config.CAMPUS_AVERAGE_USAGE) -> pd.DataFrame:
    return pd.DataFrame({
        "name": ["Your Prediction", "Campus Average"],
        "value": [prediction, average],
    })


def usage_trend_label(inputs: UserInputs) -> str:
    return config.LEAK_TREND_LABEL if inputs.leak_status else "Optimal"


def leak_alert(inputs: UserInputs) -> Optional[Dict]:
    """Alert payload when a leak is flagged, otherwise None."""
    if not inputs.leak_status:
        return None
    wastage = int(config.LEAK_IMPACT)
    return {
        "title": "Critical Alert",
        "daily_wastage_litres": wastage,
        "monthly_savings_inr": config.LEAK_MONTHLY_SAVINGS_INR,
        "message": (
            f"Active leak detected! This accounts for approximately {wastage}L of daily "
            f"wastage. Fix immediately to save ₹{config.LEAK_MONTHLY_SAVINGS_INR:,}/month."
        ),
    }


def summarize_dataset(samples: Sequence[WaterSample]) -> pd.DataFrame:
    """
    Daily usage statistics grouped by season and by usage pattern.

    Returns
    -------
    pd.DataFrame
        Indexed by (grouping, category) with columns count, mean, min,
        max and leak_rate
    """
    frame = samples_to_frame(samples)
    parts = {}
    for column in ("season", "usage_pattern"):
        grouped = frame.groupby(column)
        stats = grouped["daily_water_usage"].agg(["count", "mean", "min", "max"])
        stats["leak_rate"] = grouped["leak_status"].mean()
        parts[column] = stats
    summary = pd.concat(parts, names=["grouping", "category"])
    return summary


def print_dataset_summary(samples: Sequence[WaterSample]) -> None:
    """Print an overview of a synthetic dataset."""
    frame = samples_to_frame(samples)

    print("=== DATASET SUMMARY ===")
    print(f"Total samples: {len(frame)}")
    if frame.empty:
        return
    print(f"Mean daily usage: {frame['daily_water_usage'].mean():.1f} L")
    print(f"Min / max daily usage: {frame['daily_water_usage'].min()} / "
          f"{frame['daily_water_usage'].max()} L")
    print(f"Leak rate: {frame['leak_status'].mean():.3f}")

    print("\n=== BY SEASON / USAGE PATTERN ===")
    print(summarize_dataset(samples).round(1))


def print_prediction_summary(inputs: UserInputs,
                             prediction: PredictionResult,
                             metrics: Optional[ModelMetrics] = None) -> None:
    print("=== PREDICTION ===")
    print(f"Household size: {inputs.household_size} | Pattern: {inputs.usage_pattern.value} | "
          f"Temperature: {inputs.temperature}°C | Season: {inputs.season.value} | "
          f"Leak: {'yes' if inputs.leak_status else 'no'}")
    low, high = prediction.interval
    print(f"Predicted usage: {prediction.prediction} L/day ({low} - {high}) [{usage_trend_label(inputs)}]")
    print(f"Potential savings: {prediction.savings} L/day (optimal {prediction.optimal_prediction} L/day)")

    if metrics is not None:
        print("\n=== MODEL ===")
        print(f"R²: {metrics.r_squared:.2f}  MAE: {metrics.mae}  RMSE: {metrics.rmse}")
        print(f"Training samples: {metrics.training_samples:,}")

    alert = leak_alert(inputs)
    if alert:
        print(f"\n⚠️  {alert['message']}")


def get_scenarios() -> Dict[str, UserInputs]:
    """Predefined household scenarios for comparison."""
    return {
        "default_household": UserInputs(),
        "leaking_household": UserInputs(leak_status=True),
        "frugal_winter": UserInputs(household_size=3, usage_pattern="Low",
                                    temperature=21, season="Winter"),
        "large_summer_household": UserInputs(household_size=8, usage_pattern="High",
                                             temperature=38, season="Summer"),
        "monsoon_couple": UserInputs(tank_capacity=1000, household_size=2,
                                     temperature=27, season="Monsoon"),
    }


def run_scenario_comparison(scenarios: Optional[Dict[str, UserInputs]] = None) -> pd.DataFrame:
    """
    Predict usage for each scenario.

    Returns
    -------
    pd.DataFrame
        Indexed by scenario with prediction, interval_low, interval_high,
        optimal and savings columns
    """
    if scenarios is None:
        scenarios = get_scenarios()

    rows = []
    for name, inputs in scenarios.items():
        result = predict_usage(inputs)
        rows.append({
            "scenario": name,
            "prediction": result.prediction,
            "interval_low": result.interval[0],
            "interval_high": result.interval[1],
            "optimal": result.optimal_prediction,
            "savings": result.savings,
        })
    columns = ["scenario", "prediction", "interval_low", "interval_high", "optimal", "savings"]
    return pd.DataFrame(rows, columns=columns).set_index("scenario")


def analyze_input_sensitivity(base: UserInputs,
                              field: str,
                              values: Iterable) -> pd.DataFrame:
    """
    Sweep one input field while holding the others at ``base``.

    Parameters
    ----------
    base : UserInputs
        Inputs held fixed
    field : str
        Name of the UserInputs field to vary
    values : iterable
        Values to substitute for ``field``

    Returns
    -------
    pd.DataFrame
        One row per value with prediction, savings and interval bounds
    """
    rows = []
    for value in values:
        result = predict_usage(base.replace(**{field: value}))
        rows.append({
            field: value,
            "prediction": result.prediction,
            "savings": result.savings,
            "interval_low": result.interval[0],
            "interval_high": result.interval[1],
        })
    return pd.DataFrame(rows, columns=[field, "prediction", "savings", "interval_low", "interval_high"])


def household_size_range() -> np.ndarray:
    """Household sizes offered by the dashboard slider."""
    return np.arange(1, 11)
