"""Range query parsing and evaluation over cached hourly buckets."""

from fillcache.query.evaluator import (
    FillAggregate,
    QueryCounters,
    QueryEvaluator,
    aggregate_fills,
)
from fillcache.query.parser import format_result, parse_query

__all__ = [
    "FillAggregate",
    "QueryCounters",
    "QueryEvaluator",
    "aggregate_fills",
    "format_result",
    "parse_query",
]
