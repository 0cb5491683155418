import asyncio
import dataclasses
import os

import matplotlib.pyplot as plt
import streamlit as st

from water_optimizer import config
from water_optimizer.advice import AdviceUnavailable, request_conservation_advice
from water_optimizer.dashboard import initial_state, update_inputs
from water_optimizer.model import TrainingStatus, UserInputs, generate_synthetic_data, train_model
import water_optimizer.analysis as wo_analysis
import water_optimizer.visualizations as wo_viz

# --- APP CONFIGURATION ---
st.set_page_config(page_title="AI Water Optimizer", layout="wide")

try:
    api_key = st.secrets.get("GEMINI_API_KEY")
except FileNotFoundError:
    api_key = None
if api_key:
    os.environ.setdefault("GEMINI_API_KEY", api_key)


# --- CACHED LOGIC ---
# Failures raise inside the cached call so they are never memoized
@st.cache_data(ttl=3600)
def cached_advice(prediction, inputs: UserInputs):
    return request_conservation_advice(prediction, inputs)


def current_advice(prediction, inputs: UserInputs):
    try:
        return cached_advice(prediction, inputs)
    except AdviceUnavailable:
        return config.ADVICE_ERROR_TEXT


def update_status(state, status, training=None):
    return dataclasses.replace(state, status=status, training=training or state.training)


def run_training():
    st.session_state.dashboard = update_status(st.session_state.dashboard, TrainingStatus.TRAINING)
    with st.spinner("Calibrating ensemble regressors..."):
        result = asyncio.run(train_model(st.session_state.samples))
    st.session_state.dashboard = update_status(st.session_state.dashboard, TrainingStatus.READY, result)


# --- INITIAL LOAD: generate data and "pre-train" ---
if "dashboard" not in st.session_state:
    st.session_state.dashboard = initial_state()
    st.session_state.samples = generate_synthetic_data(config.DEFAULT_SAMPLE_COUNT)
    run_training()

state = st.session_state.dashboard

# --- SIDEBAR & INPUTS ---
with st.sidebar:
    st.title("💧 AI Water Optimizer")
    st.caption("THAKUR COLLEGE")

    tank_capacity = st.slider("Tank Capacity (L)", 500, 5000, state.inputs.tank_capacity, step=100)
    household_size = st.slider("Household Size", 1, 10, state.inputs.household_size)
    temperature = st.slider("Temperature (°C)", 20, 45, int(state.inputs.temperature))
    season = st.selectbox("Season", ["Summer", "Winter", "Monsoon"],
                          index=["Summer", "Winter", "Monsoon"].index(state.inputs.season.value))
    usage_pattern = st.selectbox(
        "Usage Pattern", ["Low", "Moderate", "High"],
        index=["Low", "Moderate", "High"].index(state.inputs.usage_pattern.value),
        format_func=lambda p: {"Low": "Low Usage (Frugal)", "Moderate": "Moderate Usage",
                               "High": "High Usage (Intensive)"}[p],
    )
    leak_status = st.toggle("Leak Detected?", value=state.inputs.leak_status)

    if st.button("Train ML Model", disabled=state.is_training, use_container_width=True):
        run_training()

    st.caption("Powered by Gemini & Scikit-Learn (Sim)")

state = update_inputs(
    st.session_state.dashboard,
    tank_capacity=tank_capacity,
    household_size=household_size,
    temperature=temperature,
    season=season,
    usage_pattern=usage_pattern,
    leak_status=leak_status,
)
st.session_state.dashboard = state
prediction = state.prediction

# --- HEADER ---
header, actions = st.columns([3, 1])
with header:
    st.header("Optimization Dashboard")
    st.write("Real-time predictive analytics for Thakur College water infrastructure.")
with actions:
    if state.metrics:
        st.success(f"Model Ready: R² = {state.metrics.r_squared}")
    st.download_button(
        "Export Report",
        wo_analysis.export_report(state.inputs, prediction),
        file_name=config.REPORT_FILENAME,
        mime="text/csv",
    )

# --- METRIC CARDS ---
col1, col2, col3, col4 = st.columns(4)
col1.metric("Predicted Usage", f"{prediction.prediction} L",
            wo_analysis.usage_trend_label(state.inputs),
            delta_color="inverse" if state.inputs.leak_status else "off")
col2.metric("Potential Savings", f"{prediction.savings} L", "If Optimized", delta_color="off")
r_squared = state.metrics.r_squared if state.metrics else 0
col3.metric("Model Confidence", f"{r_squared * 100:.0f}%", "R-Squared Score", delta_color="off")
samples_trained = state.metrics.training_samples if state.metrics else 0
col4.metric("Training Samples", f"{samples_trained:,}", "Synthetic History", delta_color="off")

# --- CHARTS & INSIGHTS ---
left, right = st.columns([2, 1])
with left:
    fig = wo_viz.plot_feature_importance(state.importance)
    st.pyplot(fig)
    plt.close(fig)
    st.info("**Interpretation:** Household size and Leak Status are the primary drivers of usage. "
            "Mitigation efforts should focus on sensor-based leak detection.")

    chart_a, chart_b = st.columns(2)
    with chart_a:
        fig = wo_viz.plot_prediction_comparison(prediction.prediction)
        st.pyplot(fig)
        plt.close(fig)
    with chart_b:
        fig = wo_viz.plot_residuals(wo_analysis.simulate_residuals(st.session_state.samples))
        st.pyplot(fig)
        plt.close(fig)

with right:
    st.subheader("✨ Gemini AI Insights")
    if st.button("Refresh AI Scan", use_container_width=True):
        cached_advice.clear()
    with st.spinner("Generating insights..."):
        st.markdown(current_advice(prediction.prediction, state.inputs) or config.ADVICE_PLACEHOLDER_TEXT)

    alert = wo_analysis.leak_alert(state.inputs)
    if alert:
        st.error(f"**{alert['title']}**\n\n{alert['message']}")

    st.subheader("Model Status")
    st.table({
        "Retraining Mode": ["On-the-fly"],
        "Batch Size": [f"{config.DEFAULT_SAMPLE_COUNT} Samples"],
        "Latency": ["2.0ms (Pred)"],
        "Algorithm": ["Random Forest"],
    })
