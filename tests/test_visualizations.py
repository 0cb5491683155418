"""
Tests for the dashboard visualizations.
"""

from unittest.mock import patch

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pytest

from water_optimizer.analysis import analyze_input_sensitivity, simulate_residuals
from water_optimizer.dashboard import DashboardState, initial_state
from water_optimizer.model import (
    ModelMetrics,
    TrainingResult,
    TrainingStatus,
    UserInputs,
    generate_synthetic_data,
    get_feature_importance,
)
from water_optimizer.visualizations import (
    create_dashboard_figure,
    plot_feature_importance,
    plot_input_sensitivity,
    plot_prediction_comparison,
    plot_residuals,
    plot_usage_distribution,
)


@pytest.fixture
def samples():
    return generate_synthetic_data(200, rng=3)


@pytest.fixture
def ready_state():
    metrics = ModelMetrics(r_squared=0.92, mae=42.5, rmse=58.2, training_samples=200)
    state = initial_state()
    return DashboardState(
        inputs=state.inputs,
        prediction=state.prediction,
        status=TrainingStatus.READY,
        training=TrainingResult(metrics=metrics, importance=get_feature_importance()),
    )


class TestVisualizationFunctions:
    """Test individual chart functions."""

    def test_plot_feature_importance(self):
        """Test the importance bar chart."""
        fig = plot_feature_importance(get_feature_importance())

        assert isinstance(fig, plt.Figure)
        assert len(fig.axes) == 1
        ax = fig.axes[0]
        assert len(ax.patches) == 5
        assert [t.get_text() for t in ax.get_yticklabels()][0] == "Household Size"

        plt.close(fig)

    def test_plot_feature_importance_on_axes(self):
        """Test drawing onto a supplied axes."""
        fig, ax = plt.subplots()
        returned = plot_feature_importance(get_feature_importance(), ax=ax)

        assert returned is fig
        plt.close(fig)

    def test_plot_residuals(self, samples):
        """Test the residual scatter."""
        fig = plot_residuals(simulate_residuals(samples, rng=0))

        assert isinstance(fig, plt.Figure)
        assert len(fig.axes) == 1
        plt.close(fig)

    def test_plot_prediction_comparison(self):
        """Test the prediction vs average bars."""
        fig = plot_prediction_comparison(720)

        ax = fig.axes[0]
        heights = [patch.get_height() for patch in ax.patches]
        assert heights == [720, 850]
        plt.close(fig)

    def test_plot_usage_distribution(self, samples):
        """Test the usage histogram."""
        fig = plot_usage_distribution(samples)

        assert isinstance(fig, plt.Figure)
        assert len(fig.axes) == 1
        plt.close(fig)

    def test_plot_usage_distribution_empty(self):
        """Test the histogram with no samples."""
        fig = plot_usage_distribution([])

        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    def test_plot_input_sensitivity_numeric(self):
        """Test a household size sweep plot."""
        sweep = analyze_input_sensitivity(UserInputs(), "household_size", range(1, 11))
        fig = plot_input_sensitivity(sweep, "household_size")

        ax = fig.axes[0]
        assert ax.get_xlabel() == "Household Size"
        assert len(ax.lines) == 2
        plt.close(fig)

    def test_plot_input_sensitivity_categorical(self):
        """Test a usage pattern sweep plot."""
        sweep = analyze_input_sensitivity(UserInputs(), "usage_pattern", ["Low", "Moderate", "High"])
        fig = plot_input_sensitivity(sweep, "usage_pattern")

        ax = fig.axes[0]
        assert [t.get_text() for t in ax.get_xticklabels()] == ["Low", "Moderate", "High"]
        plt.close(fig)


class TestDashboardFigure:
    """Test the combined dashboard figure."""

    def test_create_dashboard_figure(self, ready_state, samples):
        """Test the 2x2 overview."""
        fig = create_dashboard_figure(ready_state, samples, rng=0)

        assert isinstance(fig, plt.Figure)
        assert len(fig.axes) == 4
        assert "R² = 0.92" in fig._suptitle.get_text()
        plt.close(fig)

    def test_create_dashboard_figure_before_training(self, samples):
        """Test the overview before the model is ready."""
        fig = create_dashboard_figure(initial_state(), samples, rng=0)

        assert len(fig.axes) == 4
        assert "Model Ready" not in fig._suptitle.get_text()
        plt.close(fig)

    @patch("matplotlib.pyplot.show")
    def test_visualization_without_display(self, mock_show, ready_state, samples):
        """Test that figures are created without displaying."""
        fig = create_dashboard_figure(ready_state, samples)

        mock_show.assert_not_called()
        plt.close(fig)
