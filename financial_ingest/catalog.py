"""
Metric Catalog.

A closed registry holding one ``MetricDefinition`` per ``CanonicalMetric``:
the exact header aliases accepted for it, the sheet-type tags that make a
sheet eligible to supply it, and an optional derivation rule.

Design decisions
----------------
* Alias matching is **exact, case-sensitive, trimmed-string equality**.
  "Net Sales" and "Net sales" are listed separately because a casing
  variant that is not listed will not match.  Labels that narrowly miss an
  alias are reported by the extractor but never mapped.
* Aliases are tried in declared order; the first alias present on a sheet
  wins.
* A derivation rule prefers a directly reported row and only then
  computes the metric from other rows on the same sheet.
* The catalog is built once at import (``DEFAULT_CATALOG``) and never
  mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from financial_ingest.config import ExtractionConfig
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import CanonicalMetric

logger = get_logger("catalog")

# label -> per-period values for the relevant rows of one sheet
RawSeries = Mapping[str, List[float]]

DeriveFn = Callable[[RawSeries, ExtractionConfig], Optional[List[float]]]


# ---------------------------------------------------------------------------
# Alias tables
# ---------------------------------------------------------------------------

_REVENUE = (
    "Revenue", "Net sales", "Net Sales", "Total revenue", "Total Revenue",
    "Revenue from operations", "Revenue from Operations", "Sales",
    "Turnover", "Net revenue", "Net Revenue",
)
_EXPENSES = (
    "Total expenses", "Total Expenses", "Expenses", "Operating expenses",
    "Operating Expenses", "Cost of sales", "Cost of Sales",
    "Cost of goods sold", "Cost of Goods Sold",
)
_NET_PROFIT = (
    "Net profit", "Net Profit", "Net income", "Net Income",
    "Profit for the year", "Profit for the period",
)
_PAT = ("PAT", "Profit after tax", "Profit After Tax")
_CASH_FLOW = (
    "Cash Flow", "Cash flow", "Net cash from operating activities",
    "Net cash provided by operating activities", "Cash flow from operations",
    "Operating cash flow", "Net cash flow",
)
_EBITDA = ("EBITDA", "Ebitda")
_DEBT_EQUITY = (
    "Debt/Equity Ratio", "Debt to equity", "Debt to Equity",
    "Debt-equity ratio", "D/E",
)
_NPM = ("NPM", "Net profit margin", "Net Profit Margin")
_CURRENT_RATIO = ("Current Ratio", "Current ratio")
_ROE = ("ROE", "Return on equity", "Return on Equity")
_ROCE = ("ROCE", "Return on capital employed", "Return on Capital Employed")
_GROSS_MARGIN = ("Gross margin", "Gross Margin", "Gross profit margin")
_OPERATING_MARGIN = ("Operating margin", "Operating Margin", "EBIT margin")

# Inputs used only by derivations
_GROSS_PROFIT = ("Gross profit", "Gross Profit")
_COST_OF_SALES = ("Cost of sales", "Cost of Sales", "Cost of goods sold", "Cost of Goods Sold")
_OPERATING_PROFIT = ("Operating profit", "Operating Profit", "Operating income", "Operating Income", "EBIT")
_TOTAL_DEBT = ("Total debt", "Total Debt", "Total borrowings", "Total Borrowings", "Borrowings")
_TOTAL_EQUITY = ("Total equity", "Total Equity", "Shareholders' equity", "Shareholders equity", "Net worth", "Net Worth")
_CURRENT_ASSETS = ("Total current assets", "Total Current Assets", "Current assets", "Current Assets")
_CURRENT_LIABILITIES = ("Total current liabilities", "Total Current Liabilities", "Current liabilities", "Current Liabilities")
_TOTAL_ASSETS = ("Total assets", "Total Assets")

# Sheet-type tags (case-insensitive substrings of the sheet name)
_INCOME_TAGS = ("income", "profit", "summary", "consolidated statements")
_BALANCE_TAGS = ("balance", "summary", "consolidated statements")
_CASH_TAGS = ("cash flow", "summary", "consolidated statements")


# ---------------------------------------------------------------------------
# Derivation helpers
# ---------------------------------------------------------------------------

def first_present(raw: RawSeries, aliases: Iterable[str]) -> Optional[List[float]]:
    """Return the series of the first alias found in *raw*, in alias order."""
    for alias in aliases:
        if alias in raw:
            return list(raw[alias])
    return None


def _safe_div(num: float, den: float) -> float:
    return num / den if den else 0.0


def _ratio(num: Optional[List[float]], den: Optional[List[float]]) -> Optional[List[float]]:
    if num is None or den is None:
        return None
    return [_safe_div(n, d) for n, d in zip(num, den)]


def _direct_or(aliases: Sequence[str], compute: DeriveFn) -> DeriveFn:
    """Prefer a directly reported row; otherwise run *compute*."""

    def derive(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
        direct = first_present(raw, aliases)
        if direct is not None:
            return direct
        return compute(raw, config)

    return derive


def _ebitda_from_revenue(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    revenue = first_present(raw, _REVENUE)
    if revenue is None:
        return None
    logger.debug(
        "No EBITDA row; approximating as %.0f%% of revenue",
        config.ebitda_fallback_ratio * 100,
    )
    return [v * config.ebitda_fallback_ratio for v in revenue]


def _npm(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    return _ratio(first_present(raw, _NET_PROFIT), first_present(raw, _REVENUE))


def _gross_margin(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    revenue = first_present(raw, _REVENUE)
    gross = first_present(raw, _GROSS_PROFIT)
    if gross is None:
        cost = first_present(raw, _COST_OF_SALES)
        if revenue is None or cost is None:
            return None
        gross = [r - c for r, c in zip(revenue, cost)]
    return _ratio(gross, revenue)


def _operating_margin(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    return _ratio(first_present(raw, _OPERATING_PROFIT), first_present(raw, _REVENUE))


def _debt_equity(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    return _ratio(first_present(raw, _TOTAL_DEBT), first_present(raw, _TOTAL_EQUITY))


def _current_ratio(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    return _ratio(first_present(raw, _CURRENT_ASSETS), first_present(raw, _CURRENT_LIABILITIES))


def _roe(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    return _ratio(first_present(raw, _NET_PROFIT), first_present(raw, _TOTAL_EQUITY))


def _roce(raw: RawSeries, config: ExtractionConfig) -> Optional[List[float]]:
    ebit = first_present(raw, _OPERATING_PROFIT)
    assets = first_present(raw, _TOTAL_ASSETS)
    liabilities = first_present(raw, _CURRENT_LIABILITIES)
    if assets is None or liabilities is None:
        return None
    employed = [a - cl for a, cl in zip(assets, liabilities)]
    return _ratio(ebit, employed)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricDefinition:
    """Everything the extractor needs to know about one canonical metric."""

    metric: CanonicalMetric
    aliases: Tuple[str, ...]
    sheet_tags: Tuple[str, ...]
    input_aliases: Tuple[str, ...] = ()
    derive: Optional[DeriveFn] = None

    @property
    def labels(self) -> Tuple[str, ...]:
        """Every row label this metric reads, aliases first."""
        return self.aliases + tuple(a for a in self.input_aliases if a not in self.aliases)


def _definitions() -> List[MetricDefinition]:
    M = CanonicalMetric
    return [
        MetricDefinition(M.REVENUE, _REVENUE, _INCOME_TAGS),
        MetricDefinition(M.EXPENSES, _EXPENSES, _INCOME_TAGS),
        MetricDefinition(M.NET_PROFIT, _NET_PROFIT, _INCOME_TAGS),
        MetricDefinition(M.CASH_FLOW, _CASH_FLOW, _CASH_TAGS),
        MetricDefinition(
            M.EBITDA, _EBITDA, _INCOME_TAGS,
            input_aliases=_REVENUE,
            derive=_direct_or(_EBITDA, _ebitda_from_revenue),
        ),
        MetricDefinition(M.PAT, _PAT, _INCOME_TAGS),
        MetricDefinition(
            M.DEBT_EQUITY_RATIO, _DEBT_EQUITY, _BALANCE_TAGS,
            input_aliases=_TOTAL_DEBT + _TOTAL_EQUITY,
            derive=_direct_or(_DEBT_EQUITY, _debt_equity),
        ),
        MetricDefinition(
            M.NPM, _NPM, _INCOME_TAGS,
            input_aliases=_NET_PROFIT + _REVENUE,
            derive=_direct_or(_NPM, _npm),
        ),
        MetricDefinition(
            M.CURRENT_RATIO, _CURRENT_RATIO, _BALANCE_TAGS,
            input_aliases=_CURRENT_ASSETS + _CURRENT_LIABILITIES,
            derive=_direct_or(_CURRENT_RATIO, _current_ratio),
        ),
        MetricDefinition(
            M.ROE, _ROE, _BALANCE_TAGS,
            input_aliases=_NET_PROFIT + _TOTAL_EQUITY,
            derive=_direct_or(_ROE, _roe),
        ),
        MetricDefinition(
            M.ROCE, _ROCE, _BALANCE_TAGS,
            input_aliases=_OPERATING_PROFIT + _TOTAL_ASSETS + _CURRENT_LIABILITIES,
            derive=_direct_or(_ROCE, _roce),
        ),
        MetricDefinition(
            M.GROSS_MARGIN, _GROSS_MARGIN, _INCOME_TAGS,
            input_aliases=_REVENUE + _GROSS_PROFIT + _COST_OF_SALES,
            derive=_direct_or(_GROSS_MARGIN, _gross_margin),
        ),
        MetricDefinition(
            M.OPERATING_MARGIN, _OPERATING_MARGIN, _INCOME_TAGS,
            input_aliases=_REVENUE + _OPERATING_PROFIT,
            derive=_direct_or(_OPERATING_MARGIN, _operating_margin),
        ),
    ]


class MetricCatalog:
    """Immutable alias / eligibility / derivation registry.

    Parameters
    ----------
    definitions:
        One definition per ``CanonicalMetric``.  Construction fails if any
        metric is missing or defined twice.
    """

    def __init__(self, definitions: Iterable[MetricDefinition]) -> None:
        table: Dict[CanonicalMetric, MetricDefinition] = {}
        for d in definitions:
            if d.metric in table:
                raise ValueError(f"Metric {d.metric.value!r} defined twice")
            table[d.metric] = d

        missing = [m.value for m in CanonicalMetric if m not in table]
        if missing:
            raise ValueError(f"Catalog has no definition for: {', '.join(missing)}")

        # Declaration order follows the enum, not the input order
        self._table: Mapping[CanonicalMetric, MetricDefinition] = MappingProxyType(
            {m: table[m] for m in CanonicalMetric}
        )

        index: Dict[str, List[CanonicalMetric]] = {}
        for d in self._table.values():
            for alias in d.aliases:
                index.setdefault(alias, []).append(d.metric)
        self._alias_index: Mapping[str, Tuple[CanonicalMetric, ...]] = MappingProxyType(
            {k: tuple(v) for k, v in index.items()}
        )

        logger.debug(
            "Catalog built — metrics=%d, aliases=%d",
            len(self._table), len(self._alias_index),
        )

    @classmethod
    def default(cls) -> "MetricCatalog":
        return cls(_definitions())

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    @property
    def metrics(self) -> Tuple[CanonicalMetric, ...]:
        return tuple(self._table)

    def definition(self, metric: CanonicalMetric) -> MetricDefinition:
        return self._table[metric]

    def aliases_for(self, metric: CanonicalMetric) -> Tuple[str, ...]:
        return self._table[metric].aliases

    def match_label(self, label: str) -> Tuple[CanonicalMetric, ...]:
        """Metrics whose alias equals the trimmed *label* exactly."""
        return self._alias_index.get(label.strip(), ())

    def all_aliases(self) -> List[str]:
        return list(self._alias_index)

    def all_labels(self) -> set[str]:
        """Every row label any metric reads, derivation inputs included."""
        labels: set[str] = set()
        for d in self._table.values():
            labels.update(d.labels)
        return labels

    # ------------------------------------------------------------------ #
    # Sheet eligibility
    # ------------------------------------------------------------------ #

    def is_eligible(self, metric: CanonicalMetric, sheet_name: str) -> bool:
        name = sheet_name.lower()
        return any(tag.lower() in name for tag in self._table[metric].sheet_tags)

    def eligible_metrics(self, sheet_name: str) -> List[CanonicalMetric]:
        return [m for m in self._table if self.is_eligible(m, sheet_name)]

    def relevant_labels(self, sheet_name: str) -> set[str]:
        """Row labels worth reading on *sheet_name*."""
        labels: set[str] = set()
        for m in self.eligible_metrics(sheet_name):
            labels.update(self._table[m].labels)
        return labels

    @property
    def size(self) -> int:
        return len(self._table)


DEFAULT_CATALOG = MetricCatalog.default()
