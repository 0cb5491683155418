import argparse
import asyncio
import logging
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from water_optimizer import config
from water_optimizer.dashboard import DashboardSession
import water_optimizer.analysis as wo_analysis
import water_optimizer.visualizations as wo_viz


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="AI Water Optimizer - Thakur College")
    parser.add_argument("--samples", type=int, default=config.DEFAULT_SAMPLE_COUNT,
                        help="number of synthetic samples to generate")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--household-size", type=int, default=4)
    parser.add_argument("--pattern", default="Moderate", choices=["Low", "Moderate", "High"])
    parser.add_argument("--temperature", type=float, default=30)
    parser.add_argument("--season", default="Summer", choices=["Summer", "Winter", "Monsoon"])
    parser.add_argument("--leak", action="store_true", help="flag an active leak")
    parser.add_argument("--no-advice", action="store_true", help="skip the Gemini advice request")
    parser.add_argument("--output-dir", default=None, help="directory for the report and figures")
    parser.add_argument("--training-delay", type=float, default=config.TRAINING_DELAY_SECONDS)
    return parser.parse_args(argv)


async def run(args):
    """Generate data, train, predict for the requested inputs and report."""
    session = DashboardSession(training_delay=args.training_delay, auto_advice=False)

    print("Generating synthetic data and training...")
    await session.load(count=args.samples, rng=args.seed)
    wo_analysis.print_dataset_summary(session.samples)

    session.set_inputs(
        household_size=args.household_size,
        usage_pattern=args.pattern,
        temperature=args.temperature,
        season=args.season,
        leak_status=args.leak,
    )
    if not args.no_advice:
        print("\nRequesting conservation advice...")
        await session.refresh_advice()

    state = session.state
    print()
    wo_analysis.print_prediction_summary(state.inputs, state.prediction, state.metrics)

    print("\n=== FEATURE IMPORTANCE ===")
    for entry in state.importance:
        print(f"  {entry.feature}: {entry.importance:.2f}")

    if not args.no_advice:
        print("\n=== AI INSIGHTS ===")
        print(state.advice.strip() or config.ADVICE_PLACEHOLDER_TEXT)

    print("\n=== SCENARIOS ===")
    print(wo_analysis.run_scenario_comparison())

    if args.output_dir:
        os.makedirs(args.output_dir, exist_ok=True)
        report_path = os.path.join(args.output_dir, config.REPORT_FILENAME)
        wo_analysis.export_report(state.inputs, state.prediction, path=report_path)
        print(f"\nReport saved to {report_path}")

        fig = wo_viz.create_dashboard_figure(state, session.samples, rng=args.seed)
        fig.savefig(os.path.join(args.output_dir, "dashboard.png"), dpi=150, bbox_inches="tight")
        plt.close(fig)

        sweep = wo_analysis.analyze_input_sensitivity(
            state.inputs, "household_size", wo_analysis.household_size_range()
        )
        fig = wo_viz.plot_input_sensitivity(sweep, "household_size")
        fig.savefig(os.path.join(args.output_dir, "household_size_sensitivity.png"), dpi=150)
        plt.close(fig)
        print(f"Figures saved to {args.output_dir}")

    return state


def main(argv=None):
    """Run the water usage optimizer pipeline."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    print("AI Water Optimizer - Thakur College")
    print("=" * 70)

    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
