"""
Pipeline Orchestrator.

The central entry point that wires together every layer:

    Workbook  →  sheet routing  →  MetadataDetector  →  SheetExtractor
              →  DatasetMerger  →  Validator (→ reference dataset)
              →  AnomalyDetector / ScoreEngine / RecommendationEngine
              →  InsightGenerator

Usage
-----
>>> from financial_ingest.pipeline import FinancialIngestPipeline
>>> from financial_ingest.config import PipelineConfig
>>>
>>> pipe = FinancialIngestPipeline(PipelineConfig())
>>> result = pipe.process_file("statements.xlsx")
>>> print(result.to_dict())
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from financial_ingest.anomaly import AnomalyDetector
from financial_ingest.catalog import DEFAULT_CATALOG, MetricCatalog
from financial_ingest.config import PipelineConfig
from financial_ingest.errors import ValidationFailure
from financial_ingest.extractor import SheetExtractor
from financial_ingest.insights import InsightGenerator
from financial_ingest.logging_setup import configure_logging, get_logger
from financial_ingest.merger import DatasetMerger
from financial_ingest.metadata import MetadataDetector
from financial_ingest.recommendations import RecommendationEngine
from financial_ingest.schema import (
    AnalysisContext,
    FinancialSeries,
    PipelineOutput,
    Sheet,
    SheetProcessingResult,
    Workbook,
)
from financial_ingest.scoring import ScoreEngine
from financial_ingest.validator import Validator, reference_dataset
from financial_ingest.workbook import WorkbookReader, WorkbookSource, route_sheets

logger = get_logger("pipeline")


class FinancialIngestPipeline:
    """Orchestrates the full workbook-to-metrics pipeline.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults are sane for most statement workbooks.
    catalog:
        Metric registry; the process-wide default when omitted.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        catalog: Optional[MetricCatalog] = None,
    ) -> None:
        self._config = config or PipelineConfig()

        # Bootstrap logging before anything else
        configure_logging(level=self._config.log_level)

        # Construct layers
        self._catalog = catalog or DEFAULT_CATALOG
        self._reader = WorkbookReader()
        self._detector = MetadataDetector(self._config.extraction, self._catalog)
        self._extractor = SheetExtractor(self._catalog, self._config.extraction)
        self._merger = DatasetMerger()
        self._validator = Validator(self._config.validation)
        self._anomalies = AnomalyDetector(self._config.analysis)
        self._scores = ScoreEngine(self._config.analysis)
        self._recommendations = RecommendationEngine(self._config.analysis)
        self._insights = InsightGenerator(self._config.analysis)

        logger.info(
            "Pipeline initialised — metrics=%d, header_window=%d, workers=%d, strict=%s",
            self._catalog.size,
            self._config.extraction.header_search_rows,
            self._config.extraction.max_workers,
            self._config.strict_mode,
        )

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def process_file(
        self, source: WorkbookSource, context: Optional[AnalysisContext] = None
    ) -> PipelineOutput:
        """Read and process a workbook.  ``FatalIOError`` propagates."""
        workbook = self._reader.read(source)
        return self.process_workbook(workbook, context)

    def process_workbook(
        self, workbook: Workbook, context: Optional[AnalysisContext] = None
    ) -> PipelineOutput:
        context = context or AnalysisContext()
        results, skipped = self.extract_sheets(workbook)
        merged = self._merger.combine(results)

        report = self._validator.validate(merged)
        output = PipelineOutput(
            sheet_results=results,
            skipped_sheets=skipped,
            validation_errors=list(report.errors),
            validation_warnings=list(report.warnings),
        )

        if report.is_valid:
            output.series = merged
        else:
            if self._config.strict_mode:
                raise ValidationFailure(report.errors)
            output.series = reference_dataset()
            output.used_fallback = True
            output.fallback_reason = "; ".join(report.errors)
            logger.warning(
                "Merged dataset invalid (%s); substituting reference dataset",
                output.fallback_reason,
            )

        self._analyze_into(output, context)

        logger.info(
            "Pipeline complete — sheets=%d (skipped=%d, failed=%d), metrics=%d, "
            "periods=%d, anomalies=%d, fallback=%s",
            len(results),
            len(skipped),
            sum(not r.success for r in results),
            len(output.series),
            output.period_count,
            sum(a.is_anomaly for a in output.anomalies),
            output.used_fallback,
        )
        return output

    def extract_sheets(
        self, workbook: Workbook
    ) -> Tuple[List[SheetProcessingResult], List[str]]:
        """Route and extract every sheet; results keep workbook order."""
        routed, skipped = route_sheets(workbook, self._config.extraction.sheet_allow_list)

        workers = self._config.extraction.max_workers
        if workers > 1 and len(routed) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                # ``map`` yields in submission order, which fixes merge order
                results = list(executor.map(self._process_sheet, routed))
        else:
            results = [self._process_sheet(sheet) for sheet in routed]
        return results, skipped

    def analyze(
        self, series: FinancialSeries, context: Optional[AnalysisContext] = None
    ) -> PipelineOutput:
        """Run only the analysis engines over an existing dataset."""
        output = PipelineOutput(series=series)
        self._analyze_into(output, context or AnalysisContext())
        return output

    # ------------------------------------------------------------------ #
    # Core pipeline logic
    # ------------------------------------------------------------------ #

    def _process_sheet(self, sheet: Sheet) -> SheetProcessingResult:
        metadata = self._detector.detect(sheet)
        return self._extractor.process(sheet, metadata)

    def _analyze_into(self, output: PipelineOutput, context: AnalysisContext) -> None:
        series = output.series
        output.anomalies = self._anomalies.detect(series)
        output.ratios = self._scores.compute_ratios(series)
        output.score = self._scores.compute_competitive_position(series, context.market)
        output.recommendations = self._recommendations.recommend(series)
        output.insights = self._insights.generate_all(series, context)

    # ------------------------------------------------------------------ #
    # Utility
    # ------------------------------------------------------------------ #

    @property
    def catalog(self) -> MetricCatalog:
        return self._catalog

    @property
    def config(self) -> PipelineConfig:
        return self._config
