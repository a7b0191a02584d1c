"""Query line parsing and result rendering.

Query format: ``TYPE START_TIME END_TIME`` separated by whitespace, where
TYPE is one of B (buys), S (sells), C (total count) or V (volume) and the
times are integer Unix seconds.
"""

import re
from decimal import Decimal

from fillcache.exceptions import MalformedQuery, UnknownQueryType
from fillcache.models import Query, QueryType

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _parse_timestamp(token: str, component: str) -> int:
    # int() alone would also accept "1_000" and non-ASCII digits
    if not _INTEGER_RE.fullmatch(token):
        raise MalformedQuery(f"Invalid {component}: {token!r}", component=component)
    return int(token)


def parse_query(raw: str) -> Query:
    """Parse a raw query line into a Query.

    Raises:
        MalformedQuery: Wrong token count or a non-integer timestamp.
        UnknownQueryType: Type token not in {B, S, C, V}.
    """
    parts = raw.split()
    if len(parts) != 3:
        raise MalformedQuery(f"Invalid query format: {raw.strip()!r}", component="query")

    type_token, start_token, end_token = parts
    start_time = _parse_timestamp(start_token, "start_time")
    end_time = _parse_timestamp(end_token, "end_time")

    try:
        query_type = QueryType(type_token)
    except ValueError:
        raise UnknownQueryType(type_token) from None

    return Query(query_type=query_type, start_time=start_time, end_time=end_time)


def format_result(value: int | Decimal) -> str:
    """Render a query result as a stable string.

    Counts render as plain integers. Volumes render in fixed-point
    notation, preserving the Decimal's scale and never using an exponent.
    """
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)
