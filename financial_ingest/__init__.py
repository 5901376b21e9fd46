"""
Financial Ingest — Workbook-to-Metrics Normalisation Engine.

Reads uploaded financial statement workbooks of unknown layout, locates
the period columns, maps row labels onto a closed set of canonical
metrics, merges the sheets into one aligned multi-period dataset, and
derives anomalies, ratios, a competitive-position score and
recommendations from it.

Every sheet is processed in isolation and every malformed cell degrades to
a default; only an unreadable file or an unusable merged dataset is
surfaced to the caller.
"""

__version__ = "1.0.0"
__author__ = "Financial Ingest Team"

from financial_ingest.pipeline import FinancialIngestPipeline  # noqa: F401
