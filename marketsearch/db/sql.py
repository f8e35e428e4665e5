"""
SQL Rendering
Render planner value objects into parameterized PostgreSQL statements.

Every statement uses named bind parameters, so the base predicate renders to
the same text and the same parameters wherever it is embedded.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from ..search.badges import (
    TRIM_CHARS,
    VERIFIED_AT_FIELDS,
    VERIFIED_FALSE_WORDS,
    VERIFIED_FIELDS,
    VERIFIED_TRUE_WORDS,
)
from ..search.config import TableNames
from ..search.models import (
    BaseFilterPredicate,
    FacetDimension,
    FilterOperator,
    MatchMode,
    OrderTerm,
    RankedQuery,
)
from ..search.ranking import order_terms, substring_pattern

LISTING_ALIAS = "l"

# Columns returned for each result row
LISTING_COLUMNS: Tuple[str, ...] = (
    "id",
    "title",
    "price",
    "image",
    "town",
    "category",
    "brand",
    "condition",
    "featured",
    "createdAt",
    "sellerId",
)


@dataclass(frozen=True)
class RenderedStatement:
    """SQL text plus its bind parameters."""

    sql: str
    params: Dict[str, Any]

    def to_text(self) -> TextClause:
        return text(self.sql)


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _literal_list(words: Sequence[str]) -> str:
    return ", ".join(sql_literal(w) for w in words)


# Escape-string literal of TRIM_CHARS; PostgreSQL has no \v escape, so hex is used
TRIM_CHARS_SQL = "E'" + "".join(f"\\x{ord(c):02x}" for c in TRIM_CHARS) + "'"


def trimmed(expression: str) -> str:
    return f"btrim({expression}, {TRIM_CHARS_SQL})"


def _flag_case(record: str, field: str) -> str:
    key = sql_literal(field)
    word = f"lower({trimmed(f'{record}->>{key}')})"
    return (
        f"CASE jsonb_typeof({record}->{key}) "
        f"WHEN 'boolean' THEN ({record}->>{key})::boolean "
        f"WHEN 'number' THEN ({record}->>{key})::numeric <> 0 "
        f"WHEN 'string' THEN CASE "
        f"WHEN {word} IN ({_literal_list(VERIFIED_TRUE_WORDS)}) THEN TRUE "
        f"WHEN {word} IN ({_literal_list(VERIFIED_FALSE_WORDS)}) THEN FALSE END "
        f"END"
    )


def seller_verified_sql(record: str) -> str:
    """
    SQL boolean equivalent of badges.resolve_verified over a jsonb record.

    COALESCE walks the same probes in the same priority order: the first
    interpretable flag field, then any verification timestamp, else FALSE.
    """
    probes = [_flag_case(record, field) for field in VERIFIED_FIELDS]
    presence = " OR ".join(
        f"NULLIF({trimmed(f'{record}->>{sql_literal(field)}')}, '') IS NOT NULL"
        for field in VERIFIED_AT_FIELDS
    )
    probes.append(f"CASE WHEN {presence} THEN TRUE END")
    probes.append("FALSE")
    return "COALESCE(" + ", ".join(probes) + ")"


def render_predicate(
    predicate: BaseFilterPredicate,
    tables: TableNames,
    alias: str = LISTING_ALIAS,
) -> Tuple[str, Dict[str, Any]]:
    """
    Render the base filter predicate.

    Args:
        predicate: Structured filters
        tables: Table identifiers
        alias: Alias of the listing table in the enclosing statement

    Returns:
        Tuple of (condition_sql, params); condition_sql is "" when there are
        no filters
    """
    if predicate.is_empty:
        return "", {}

    conditions: List[str] = []
    params: Dict[str, Any] = {}

    for index, clause in enumerate(predicate.clauses):
        name = f"f{index}"
        column = f"{alias}.{quote_ident(clause.column)}"
        operator = clause.operator

        if operator is FilterOperator.SELLER_VERIFIED:
            exists = (
                f"EXISTS (SELECT 1 FROM {tables.user} u "
                f"WHERE u.id = {column} AND {seller_verified_sql('to_jsonb(u)')})"
            )
            conditions.append(exists if clause.value else f"NOT {exists}")
            continue

        if operator is FilterOperator.IEQ:
            conditions.append(f"LOWER({column}) = LOWER(CAST(:{name} AS text))")
        elif operator in (FilterOperator.GTE, FilterOperator.LTE):
            conditions.append(f"{column} {operator.value} CAST(:{name} AS numeric)")
        else:
            conditions.append(f"{column} {operator.value} CAST(:{name} AS text)")
        params[name] = clause.value

    return " AND ".join(conditions), params


def _where(condition: str) -> str:
    return f"WHERE {condition}" if condition else ""


def render_order_by(terms: Sequence[OrderTerm]) -> str:
    return ", ".join(
        f"{quote_ident(t.column)} {'DESC' if t.descending else 'ASC'} NULLS LAST" for t in terms
    )


def _filtered_source(
    query: RankedQuery, mode: MatchMode, tables: TableNames
) -> Tuple[str, Dict[str, Any]]:
    """WITH-clause ending in a ``filtered`` CTE of matching rows."""
    condition, params = render_predicate(query.predicate, tables)
    columns = ", ".join(f"{LISTING_ALIAS}.{quote_ident(c)}" for c in LISTING_COLUMNS)
    listing = f"{tables.listing} {LISTING_ALIAS}"
    title = f"{LISTING_ALIAS}.{quote_ident('title')}"
    description = f"{LISTING_ALIAS}.{quote_ident('description')}"

    relevance = ""
    if not query.expanded.is_empty:
        params["qlike"] = substring_pattern(query.query_text)
        substring = '"title" ILIKE :qlike OR "description" ILIKE :qlike'
        if mode is MatchMode.CAPABLE:
            params["threshold"] = query.similarity_threshold
            relevance = f"WHERE (sim > :threshold OR {substring})"
        else:
            relevance = f"WHERE ({substring})"

    if mode is MatchMode.CAPABLE:
        values = []
        for index, term in enumerate(query.expanded.terms):
            params[f"t{index}"] = term
            values.append(f"(CAST(:t{index} AS text))")
        sql = (
            f"WITH expanded(term) AS (VALUES {', '.join(values)}),\n"
            f"scored AS (\n"
            f"  SELECT {columns}, {description},\n"
            f"    (SELECT MAX(GREATEST(\n"
            f"       similarity(LOWER(COALESCE({title}, '')), e.term),\n"
            f"       similarity(LOWER(COALESCE({description}, '')), e.term)))\n"
            f"     FROM expanded e) AS sim\n"
            f"  FROM {listing}\n"
            f"  {_where(condition)}\n"
            f"),\n"
            f"filtered AS (SELECT * FROM scored {relevance})\n"
        )
    else:
        sql = (
            f"WITH base AS (\n"
            f"  SELECT {columns}, {description}, CAST(NULL AS real) AS sim\n"
            f"  FROM {listing}\n"
            f"  {_where(condition)}\n"
            f"),\n"
            f"filtered AS (SELECT * FROM base {relevance})\n"
        )
    return sql, params


def render_ranked_query(
    query: RankedQuery, mode: MatchMode, tables: TableNames
) -> RenderedStatement:
    """
    Render one page of ranked results.

    The total match count rides along on every row as ``_total`` via
    ``COUNT(*) OVER()``, so no separate count query is needed.
    """
    source, params = _filtered_source(query, mode, tables)
    columns = ", ".join(quote_ident(c) for c in LISTING_COLUMNS)
    params["limit"] = query.limit
    params["offset"] = query.offset
    sql = (
        f"{source}"
        f'SELECT {columns}, "sim", COUNT(*) OVER()::int AS "_total"\n'
        f"FROM filtered\n"
        f"ORDER BY {render_order_by(order_terms(query.sort, mode))}\n"
        f"LIMIT :limit OFFSET :offset"
    )
    return RenderedStatement(sql=sql, params=params)


def render_count_query(query: RankedQuery, mode: MatchMode, tables: TableNames) -> RenderedStatement:
    source, params = _filtered_source(query, mode, tables)
    return RenderedStatement(sql=f'{source}SELECT COUNT(*)::int AS "total" FROM filtered', params=params)


def render_facet_query(
    dimension: FacetDimension,
    predicate: BaseFilterPredicate,
    limit: int,
    tables: TableNames,
) -> RenderedStatement:
    """Grouped count for one facet dimension over the base predicate only."""
    condition, params = render_predicate(predicate, tables)
    column = f"{LISTING_ALIAS}.{quote_ident(dimension.value)}"
    params["limit"] = limit
    sql = (
        f'SELECT {column} AS "value", COUNT(*)::int AS "count"\n'
        f"FROM {tables.listing} {LISTING_ALIAS}\n"
        f"{_where(condition)}\n"
        f"GROUP BY {column}\n"
        f'ORDER BY "count" DESC, "value" ASC NULLS LAST\n'
        f"LIMIT :limit"
    )
    return RenderedStatement(sql=sql, params=params)


def render_synonym_query(term: str, tables: TableNames) -> RenderedStatement:
    sql = (
        f'SELECT unnest("expands_to") AS "word"\n'
        f"FROM {tables.synonym}\n"
        f'WHERE "term" = CAST(:term AS text)'
    )
    return RenderedStatement(sql=sql, params={"term": term})


def render_seller_query(seller_ids: Sequence[str], tables: TableNames) -> RenderedStatement:
    sql = (
        f'SELECT u.id::text AS "id", to_jsonb(u) AS "record"\n'
        f"FROM {tables.user} u\n"
        f"WHERE u.id::text = ANY(CAST(:ids AS text[]))"
    )
    return RenderedStatement(sql=sql, params={"ids": list(seller_ids)})
