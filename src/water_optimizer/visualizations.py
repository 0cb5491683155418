"""
Visualization functions for the water usage dashboard.
"""

from typing import Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from . import config
from .analysis import compare_to_average, simulate_residuals
from .model import FeatureImportance, WaterSample, samples_to_frame

SEASON_PALETTE = {"Summer": "#f97316", "Winter": "#3b82f6", "Monsoon": "#10b981"}


def plot_feature_importance(importance: Sequence[FeatureImportance],
                            ax=None,
                            figsize: Tuple[int, int] = (8, 5)) -> plt.Figure:
    """
    Horizontal bar chart of the feature importance ranking.

    Parameters
    ----------
    importance : sequence of FeatureImportance
        Ranking, highest first
    ax : matplotlib.axes.Axes, optional
        Axes to draw on; a new figure is created when omitted
    figsize : tuple, optional
        Figure size when a new figure is created

    Returns
    -------
    plt.Figure
        The matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    features = [entry.feature for entry in importance]
    weights = [entry.importance for entry in importance]
    colors = sns.color_palette("Blues_r", n_colors=max(len(features), 1))

    y_pos = np.arange(len(features))
    ax.barh(y_pos, weights, color=colors[:len(features)])
    ax.set_yticks(y_pos)
    ax.set_yticklabels(features)
    ax.invert_yaxis()
    ax.set_xlabel("Importance")
    ax.set_title("Feature Importance Ranking", fontweight="bold")
    ax.grid(True, axis="x", alpha=0.3)

    for y, weight in zip(y_pos, weights):
        ax.text(weight, y, f" {weight:.0%}", va="center", fontsize=9)

    fig.tight_layout()
    return fig


def plot_residuals(residuals: pd.DataFrame,
                   ax=None,
                   figsize: Tuple[int, int] = (8, 5)) -> plt.Figure:
    """Scatter of residual against actual usage (``actual``/``residual`` columns)."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    sns.scatterplot(data=residuals, x="actual", y="residual", ax=ax,
                    color="#ef4444", alpha=0.6, edgecolor=None)
    ax.axhline(0, color="gray", linestyle="--", linewidth=1)
    ax.set_xlabel("Actual Usage (L)")
    ax.set_ylabel("Residual (L)")
    ax.set_title("Residual Distribution", fontweight="bold")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_prediction_comparison(prediction: int,
                               average: float = config.CAMPUS_AVERAGE_USAGE,
                               ax=None,
                               figsize: Tuple[int, int] = (6, 5)) -> plt.Figure:
    """Bar chart of the current prediction against the campus average."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    data = compare_to_average(prediction, average)
    ax.bar(data["name"], data["value"], color=["#2563eb", "#94a3b8"])
    ax.set_ylabel("Daily Usage (L)")
    ax.set_title("Prediction Variance", fontweight="bold")
    ax.grid(True, axis="y", alpha=0.3)

    for x, value in enumerate(data["value"]):
        ax.text(x, value, f"{value:,.0f} L", ha="center", va="bottom", fontsize=9)

    fig.tight_layout()
    return fig


def plot_usage_distribution(samples: Sequence[WaterSample],
                            ax=None,
                            figsize: Tuple[int, int] = (10, 6)) -> plt.Figure:
    """Histogram of synthetic daily usage, split by season."""
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    frame = samples_to_frame(samples)
    if frame.empty:
        ax.text(0.5, 0.5, "No samples", transform=ax.transAxes, ha="center", va="center")
    else:
        sns.histplot(data=frame, x="daily_water_usage", hue="season", ax=ax,
                     bins=40, alpha=0.6, palette=SEASON_PALETTE, element="step")
        ax.axvline(frame["daily_water_usage"].median(), color="black", linestyle="--",
                   label=f"Median: {frame['daily_water_usage'].median():.0f} L")
    ax.set_xlabel("Daily Water Usage (L)")
    ax.set_ylabel("Count")
    ax.set_title("Synthetic Usage Distribution", fontweight="bold")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_input_sensitivity(sensitivity: pd.DataFrame,
                           field: str,
                           ax=None,
                           figsize: Tuple[int, int] = (8, 5)) -> plt.Figure:
    """
    Prediction band and savings across a one-field sweep.

    ``sensitivity`` is the output of ``analysis.analyze_input_sensitivity``.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    values = sensitivity[field]
    if pd.api.types.is_numeric_dtype(values):
        x = values.to_numpy(dtype=float)
    else:
        # Categorical sweeps (pattern, season) are drawn at integer positions
        x = np.arange(len(values))
        ax.set_xticks(x)
        ax.set_xticklabels([getattr(v, "value", v) for v in values])
    ax.fill_between(x, sensitivity["interval_low"], sensitivity["interval_high"],
                    alpha=0.2, color="blue", label="Prediction Interval")
    ax.plot(x, sensitivity["prediction"], "o-", color="darkblue", linewidth=2, label="Prediction")
    ax.plot(x, sensitivity["savings"], "s--", color="green", label="Potential Savings")
    ax.set_xlabel(field.replace("_", " ").title())
    ax.set_ylabel("Daily Usage (L)")
    ax.set_title(f"Sensitivity to {field.replace('_', ' ').title()}", fontweight="bold")
    ax.grid(True, alpha=0.3)
    ax.legend()

    fig.tight_layout()
    return fig


def create_dashboard_figure(state, samples: Sequence[WaterSample],
                            rng=None,
                            figsize: Tuple[int, int] = (16, 10)) -> plt.Figure:
    """
    2x2 overview: importance ranking, prediction comparison, residuals and
    usage distribution.

    Parameters
    ----------
    state : DashboardState
        Current dashboard snapshot
    samples : sequence of WaterSample
        The synthetic dataset
    rng : numpy.random.Generator or int, optional
        Random source for the simulated residuals
    """
    fig, axes = plt.subplots(2, 2, figsize=figsize)
    axes = axes.flatten()

    plot_feature_importance(state.importance, ax=axes[0])
    plot_prediction_comparison(state.prediction.prediction, ax=axes[1])
    plot_residuals(simulate_residuals(samples, rng=rng), ax=axes[2])
    plot_usage_distribution(samples, ax=axes[3])

    title = "Optimization Dashboard"
    if state.metrics is not None:
        title += f" | Model Ready: R² = {state.metrics.r_squared}"
    fig.suptitle(title, fontsize=14, fontweight="bold")
    fig.tight_layout()
    return fig
