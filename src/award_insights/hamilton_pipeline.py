"""
Hamilton-based Award Insights Pipeline

This module implements the pipeline that orchestrates record loading,
descriptive statistics, population estimation and classification quality
analysis using Hamilton's function-based approach.
"""

from hamilton import driver
from typing import Dict, Any, Optional, List
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class HamiltonAwardInsightsPipeline:
    """
    Hamilton-based Award Insights Pipeline.

    This class orchestrates the complete pipeline using Hamilton's
    function-based approach with automatic dependency resolution.
    """

    def __init__(
        self,
        *,
        config_dict: Dict[str, Any],
        selected_subgraphs: Optional[List[str]] = None,
        disable_cache: bool = False,
        recompute: Optional[List[str]] = None,
    ):
        """
        Initialize the Hamilton pipeline.

        Args:
            config_dict: Flat configuration parameters (see PipelineConfig.to_hamilton_inputs)
            selected_subgraphs: List of subgraphs to run (None means run all available)
            disable_cache: Whether to disable caching entirely for this run (default: False)
            recompute: List of function names to force recomputation (default: None)
        """
        self.config_dict = config_dict
        self.output_dir = config_dict.get('output_dir') or 'outputs'
        self.selected_subgraphs = selected_subgraphs
        self.disable_cache = disable_cache
        self.recompute = recompute

        # Create output directory if it doesn't exist
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)

        # Import modules containing Hamilton functions
        from . import hamilton_dataloaders
        from . import hamilton_processors

        try:
            # Static config - output paths expanded with output_dir
            from .hamilton_dataloaders import OUTPUT_DATA_CONFIG

            static_config = {}
            for output_key, relative_path in OUTPUT_DATA_CONFIG.items():
                static_config[output_key] = str(Path(self.output_dir) / relative_path)

            driver_builder = (
                driver.Builder()
                .with_modules(hamilton_dataloaders, hamilton_processors)
                .with_config(static_config)
            )

            if not disable_cache:
                cache_dir = Path(self.output_dir) / ".hamilton_cache"
                cache_dir.mkdir(exist_ok=True)

                if recompute:
                    driver_builder = driver_builder.with_cache(path=str(cache_dir), recompute=recompute)
                    logger.info(f"Initialized Hamilton driver with caching enabled at {cache_dir}, recomputing: {', '.join(recompute)}")
                else:
                    driver_builder = driver_builder.with_cache(path=str(cache_dir))
                    logger.info(f"Initialized Hamilton driver with caching enabled at {cache_dir}")
            else:
                logger.info("Initialized Hamilton driver with caching disabled")

            self.dr = driver_builder.build()
        except Exception as e:
            logger.error(f"Failed to initialize Hamilton driver: {str(e)}")
            raise

        # Define subgraph mappings
        self.subgraph_mappings = {
            "eda": {
                "outputs": [
                    "award_records",
                    "statistics_report",
                    "derived_views",
                    "interaction_pairs",
                    "recipient_title_frequencies",
                    "nominator_title_frequencies",
                    # Auto-generated save.* outputs from @save_to decorators
                    "save.interaction_pairs",
                    "save.recipient_title_frequencies",
                    "save.nominator_title_frequencies",
                ],
                "required_inputs": ["records_file_path"],
            },
            "population": {
                "outputs": [
                    "population_estimate",
                ],
                "required_inputs": ["records_file_path"],
            },
            "classification": {
                "outputs": [
                    "pipeline_runs",
                    "classification_analyses",
                    "category_distribution",
                    "subcategory_formats",
                    # Auto-generated save.* outputs from @save_to decorators
                    "save.category_distribution",
                    "save.subcategory_formats",
                ],
                "required_inputs": ["runs_dir"],
            },
            "comparison": {
                "outputs": [
                    "pipeline_comparison",
                    "pipeline_scores",
                    # Auto-generated save.* outputs from @save_to decorators
                    "save.pipeline_scores",
                ],
                "required_inputs": ["runs_dir"],
            },
            "report": {
                "outputs": [
                    "award_report",
                    # Auto-generated save.* outputs from @save_to decorators
                    "save.award_report_document",
                ],
                "required_inputs": ["records_file_path", "runs_dir"],
            },
        }

        logger.info("Hamilton Award Insights Pipeline initialized")
        if selected_subgraphs:
            logger.info(f"Selected subgraphs: {selected_subgraphs}")
        else:
            logger.info("Running all available subgraphs")

    def run(self, outputs: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Run pipeline with specified outputs or all available subgraphs.

        Args:
            outputs: List of specific outputs to compute. If None, runs the selected subgraphs.

        Returns:
            Dictionary containing pipeline results
        """
        logger.info("Running Hamilton pipeline")

        try:
            # Unset optional inputs fall back to the node defaults
            inputs = {k: v for k, v in self.config_dict.items() if v is not None}
            inputs.pop('output_dir', None)  # Removed - paths already expanded

            if outputs is None:
                outputs = self._get_default_outputs()

            if not outputs:
                logger.warning("No outputs specified for execution")
                return {}

            logger.info(f"Executing Hamilton pipeline with outputs: {outputs}")
            logger.info(f"Using inputs: {inputs}")

            result = self.dr.execute(outputs, inputs=inputs)

            logger.info("Pipeline completed successfully")
            return result

        except Exception as e:
            logger.error(f"Pipeline failed: {str(e)}")
            raise

    def _get_default_outputs(self) -> List[str]:
        """Get default outputs based on selected subgraphs or all available."""
        outputs = []

        if self.selected_subgraphs:
            for subgraph in self.selected_subgraphs:
                if subgraph in self.subgraph_mappings:
                    subgraph_outputs = self.subgraph_mappings[subgraph]["outputs"]
                    outputs.extend(o for o in subgraph_outputs if o not in outputs)
                    logger.info(f"Added subgraph '{subgraph}' outputs: {subgraph_outputs}")
                else:
                    logger.warning(f"Unknown subgraph: {subgraph}")
        else:
            for subgraph_info in self.subgraph_mappings.values():
                outputs.extend(o for o in subgraph_info["outputs"] if o not in outputs)
            logger.info("Running all available subgraphs")

        return outputs

    def get_available_functions(self) -> List[str]:
        """
        Get list of available Hamilton functions.

        Returns:
            List of available function names
        """
        return list(self.dr.graph.nodes.keys())
