#!/usr/bin/env python3
"""
Example: Financial Ingest Pipeline Demo.

Builds a small two-sheet workbook with openpyxl, runs it through the
pipeline and prints the full auditable output.  A second run shows the
reference-dataset fallback for a workbook without year columns.

Run from the project root:
    python -m financial_ingest.examples.run_example
"""

from __future__ import annotations

import io
import json
import logging

import openpyxl

from financial_ingest.config import PipelineConfig
from financial_ingest.pipeline import FinancialIngestPipeline
from financial_ingest.schema import AnalysisContext, MarketContext


# ======================================================================
# Helpers
# ======================================================================

def print_section(title: str) -> None:
    width = 72
    print("\n" + "=" * width)
    print(f"  {title}")
    print("=" * width)


def print_output(output) -> None:  # noqa: ANN001
    """Pretty-print a PipelineOutput."""
    print(json.dumps(output.to_dict(), indent=2, ensure_ascii=False))
    print(f"\n  Metrics        : {len(output.series)}")
    print(f"  Periods        : {output.period_count}")
    print(f"  Anomalies      : {sum(a.is_anomaly for a in output.anomalies)}")
    print(f"  Fallback used  : {output.used_fallback}")
    print(f"  Recommendation : {output.recommendation}")


def build_workbook(with_years: bool = True) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Income Statement"
    ws.append(["Acme Corp", None, None, None])
    ws.append(["(USD in millions)", None, None, None])
    ws.append(["Particulars", 2021, 2022, 2023] if with_years else ["Particulars", "A", "B", "C"])
    ws.append(["Net sales", 100, 120, 140])
    ws.append(["Cost of sales", "(40)", "45", "$50"])
    ws.append(["Net profit", 12, 14, 11])
    ws.append(["net income", 12, 14, 11])

    bs = wb.create_sheet("Balance Sheet")
    bs.append(["Particulars", 2021, 2022, 2023])
    bs.append(["Total debt", 80, 90, 260])
    bs.append(["Total equity", 100, 100, 100])
    bs.append(["Current assets", 50, 55, 40])
    bs.append(["Current liabilities", 40, 45, 50])

    notes = wb.create_sheet("Notes")
    notes.append(["Not a statement; skipped"])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ======================================================================
# Main
# ======================================================================

def main() -> None:
    pipeline = FinancialIngestPipeline(PipelineConfig(log_level=logging.WARNING))
    context = AnalysisContext(
        company_name="Acme Corp",
        market=MarketContext(total_market_size=2_000, innovation=0.7, brand_strength=0.6),
        competitors=("Globex", "Initech", "Umbrella"),
    )

    print_section("DEMO 1 — Two-sheet workbook")
    output = pipeline.process_file(build_workbook(), context)
    print_output(output)

    print_section("DEMO 1 — Insight cards")
    for name, card in output.insights.items():
        print(f"  [{name}] {card.summary}")

    print_section("DEMO 2 — No year columns (reference dataset fallback)")
    print_output(pipeline.process_file(build_workbook(with_years=False), context))


if __name__ == "__main__":
    main()
