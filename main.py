#!/usr/bin/env python3
"""
Main script to run the Award Insights Pipeline
"""

import sys
import os
import logging
import argparse
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

SUBGRAPH_DESCRIPTIONS = {
    "eda": "Parse award records, compute descriptive statistics and derived views",
    "population": "Estimate the population size with the Chapman capture-recapture model",
    "classification": "Assess classification quality for every pipeline run",
    "comparison": "Compare two or more pipeline runs side by side",
    "report": "Assemble every analysis into a single JSON report",
}


def print_subgraph_info():
    """Print information about available subgraphs."""
    print("Available Award Insights Pipeline Subgraphs:")
    print("=" * 50)

    for subgraph_id, description in SUBGRAPH_DESCRIPTIONS.items():
        print(f"\n{subgraph_id.upper()}:")
        print(f"  {description}")

    print(f"\nUsage examples:")
    print(f"  python main.py --config config/default.yaml --subgraphs eda population")
    print(f"  python main.py --records data/awards.csv --runs-dir outputs/runs --subgraphs report")
    print(f"  python main.py --subgraphs comparison --output outputs/report.json")
    print(f"")


def resolve_cache_settings(disable_cache_flag, no_cache, config_disable_cache):
    """
    Combine the cache flags into (disable_cache, recompute).

    --disable-cache takes precedence, then --no-cache, then config. ``--no-cache``
    alone (or ``--no-cache all``) disables caching; a comma-separated list of
    function names keeps the cache but recomputes those nodes.
    """
    if disable_cache_flag:
        return True, None
    if no_cache:
        if no_cache == "all":
            return True, None
        return False, [name.strip() for name in no_cache.split(",") if name.strip()]
    return config_disable_cache, None


def main():
    """Main function to run the Award Insights Pipeline."""
    parser = argparse.ArgumentParser(description="Award Insights Pipeline")

    # Config file argument
    parser.add_argument("--config", type=str, default="config/default.yaml",
                       help="Path to YAML config file (default: config/default.yaml)")

    # Data path overrides
    parser.add_argument("--records", type=str,
                       help="Override config: award records CSV path")
    parser.add_argument("--runs-dir", type=str,
                       help="Override config: directory of pipeline run folders")
    parser.add_argument("--output", type=str,
                       help="Write the assembled report as JSON to this path")

    # Execution arguments (override config)
    parser.add_argument("--disable-cache", action="store_true",
                       help="Override config: Disable Hamilton caching")
    parser.add_argument("--no-cache", type=str, nargs="?", const="all",
                       help="Override config: Skip cache for specific functions (comma-separated) or all")

    # Subgraph selection arguments
    parser.add_argument("--subgraphs", nargs="+",
                       choices=sorted(SUBGRAPH_DESCRIPTIONS),
                       help=f"Select one or more subgraphs to run: {', '.join(sorted(SUBGRAPH_DESCRIPTIONS))}")
    parser.add_argument("--list-subgraphs", action="store_true",
                       help="List available subgraphs and exit")

    args = parser.parse_args()

    if args.list_subgraphs:
        print_subgraph_info()
        return 0

    # Load configuration
    try:
        from award_insights.config import load_config
        config = load_config(Path(args.config))
        print(f"Loaded configuration from: {args.config}")
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}")
        print("Available configs: config/default.yaml, config/test.yaml")
        return 1
    except Exception as e:
        print(f"Error loading config: {e}")
        return 1

    # Convert config to Hamilton inputs and apply CLI overrides
    config_dict = config.to_hamilton_inputs()
    if args.records:
        config_dict['records_file_path'] = args.records
    if args.runs_dir:
        config_dict['runs_dir'] = args.runs_dir

    subgraphs = args.subgraphs
    if args.output and subgraphs and "report" not in subgraphs:
        subgraphs = subgraphs + ["report"]

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler('award_insights.log')
        ]
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting Award Insights Pipeline...")

    try:
        from award_insights.hamilton_pipeline import HamiltonAwardInsightsPipeline

        disable_cache, recompute = resolve_cache_settings(
            args.disable_cache, args.no_cache, config.execution.disable_cache
        )

        pipeline = HamiltonAwardInsightsPipeline(
            config_dict=config_dict,
            selected_subgraphs=subgraphs,
            disable_cache=disable_cache,
            recompute=recompute,
        )

        results = pipeline.run()

        if results is None:
            logger.error("Hamilton pipeline failed to produce results")
            return 1

        if args.output:
            report = results.get("award_report")
            if report is None:
                logger.error("No report was produced; nothing to write")
                return 1
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
            logger.info(f"Report written to {output_path}")

        logger.info("Hamilton pipeline completed successfully!")
        print("\n" + "=" * 60)
        print("HAMILTON PIPELINE COMPLETED SUCCESSFULLY!")
        print("=" * 60)
        print(f"Generated outputs: {len(results)}")
        print(f"\nCheck the '{config.data_paths.output_dir}' directory for generated files.")

    except Exception as e:
        logger.error(f"Pipeline execution failed: {str(e)}")
        print(f"\nError: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
