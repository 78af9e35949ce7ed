# core/aggregates.py
"""
Client-side statistics for dashboards and reports.

Inputs are whatever the list calls returned: a list of records, a list of
dicts, or None while a query is still loading. Every function degrades to
0 / empty output instead of raising, and ratios never produce NaN or inf.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd


def _as_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, "model_dump"):
        return item.model_dump()
    return dict(item)


def to_frame(records: Optional[Iterable[Any]], columns: Sequence[str] = ()) -> pd.DataFrame:
    rows = [_as_dict(r) for r in (records or [])]
    df = pd.DataFrame(rows)
    for col in columns:
        if col not in df.columns:
            df[col] = pd.Series(dtype="object")
    return df


def ratio(numerator: Any, denominator: Any) -> float:
    try:
        num = float(numerator or 0)
        den = float(denominator or 0)
    except (TypeError, ValueError):
        return 0.0
    if den == 0 or math.isnan(den) or math.isnan(num):
        return 0.0
    value = num / den
    return value if math.isfinite(value) else 0.0


def percentage(part: Any, whole: Any, digits: int = 1) -> float:
    return round(ratio(part, whole) * 100, digits)


def count_where(records: Optional[Iterable[Any]], predicate: Callable[[Dict[str, Any]], bool]) -> int:
    return sum(1 for r in (records or []) if predicate(_as_dict(r)))


def total(records: Optional[Iterable[Any]], column: str) -> float:
    df = to_frame(records, [column])
    if df.empty:
        return 0.0
    return float(pd.to_numeric(df[column], errors="coerce").fillna(0).sum())


def grouped_sum(records: Optional[Iterable[Any]], by: str, value: str) -> Dict[Any, float]:
    df = to_frame(records, [by, value])
    if df.empty:
        return {}
    df[value] = pd.to_numeric(df[value], errors="coerce").fillna(0)
    grouped = df.groupby(df[by].fillna("Unassigned"), sort=False)[value].sum()
    return {k: float(v) for k, v in grouped.items()}


def grouped_count(records: Optional[Iterable[Any]], by: str) -> Dict[Any, int]:
    df = to_frame(records, [by])
    if df.empty:
        return {}
    counts = df[by].fillna("Unassigned").value_counts(sort=False)
    return {k: int(v) for k, v in counts.items()}


def series(mapping: Dict[Any, Any], index_name: str, value_name: str) -> pd.DataFrame:
    """Chart-ready frame (index = category) from a grouped mapping."""
    df = pd.DataFrame({index_name: list(mapping.keys()), value_name: list(mapping.values())})
    return df.set_index(index_name)


def top(mapping: Dict[Any, float], n: int = 1) -> List[Any]:
    return [k for k, _ in sorted(mapping.items(), key=lambda kv: kv[1], reverse=True)[:n]]
