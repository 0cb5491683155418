"""
Configuration constants for the water usage optimizer.

Formula coefficients, synthetic-data ranges, timing and the external
advice service settings live here so that the model, the dashboard and
the tests share one set of numbers.
"""

import os
from typing import Dict, Optional, Tuple

# ---------- Usage formula ----------
BASE_USAGE_PER_PERSON = 150.0       # litres/day per person at a "Moderate" pattern
PATTERN_MULTIPLIERS: Dict[str, float] = {
    "Low": 0.7,
    "Moderate": 1.0,
    "High": 1.5,
}
OPTIMAL_PATTERN_MULTIPLIER = 0.7    # the "Low" (frugal) pattern
BASELINE_TEMPERATURE = 20.0         # °C with no temperature impact
TEMPERATURE_COEFFICIENT = 12.0      # litres/day per °C above baseline
LEAK_IMPACT = 350.0                 # litres/day lost to an active leak
MINIMUM_DAILY_USAGE = 50.0
PREDICTION_INTERVAL_HALF_WIDTH = 45

# ---------- Synthetic data ----------
DEFAULT_SAMPLE_COUNT = 1000
TANK_CAPACITY_RANGE: Tuple[float, float] = (500.0, 5000.0)
HOUSEHOLD_SIZE_RANGE: Tuple[float, float] = (1.0, 10.0)
LEAK_PROBABILITY = 0.15
NOISE_AMPLITUDE = 25.0              # noise ~ U[-25, 25)
SEASON_TEMPERATURE_RANGES: Dict[str, Tuple[float, float]] = {
    "Summer": (32.0, 40.0),
    "Winter": (18.0, 25.0),
    "Monsoon": (24.0, 30.0),
}

# ---------- Simulated training ----------
TRAINING_DELAY_SECONDS = 2.0
TRAINED_METRICS = {
    "r_squared": 0.92,
    "mae": 42.5,
    "rmse": 58.2,
}
FEATURE_IMPORTANCE: Dict[str, float] = {
    "Household Size": 0.55,
    "Leak Status": 0.25,
    "Temperature": 0.12,
    "Usage Pattern": 0.05,
    "Tank Capacity": 0.03,
}

# ---------- Dashboard ----------
ADVICE_DEBOUNCE_SECONDS = 1.5
CAMPUS_AVERAGE_USAGE = 850
RESIDUAL_SAMPLE_LIMIT = 100
RESIDUAL_SPREAD = 30.0              # simulated residuals ~ U[-30, 30)
LEAK_TREND_LABEL = "+25%"
LEAK_MONTHLY_SAVINGS_INR = 1200
REPORT_FILENAME = "thakur_water_prediction.csv"

# ---------- Advice service (Gemini) ----------
GEMINI_MODEL = "gemini-3-flash-preview"
GEMINI_TEMPERATURE = 0.7
ADVICE_EMPTY_TEXT = "No insights generated."
ADVICE_ERROR_TEXT = "Error generating AI insights."
ADVICE_PLACEHOLDER_TEXT = "Adjust settings to generate personalized AI conservation insights."
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


def get_api_key() -> Optional[str]:
    """Return the Gemini API key from the environment, if one is set."""
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None
