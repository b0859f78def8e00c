# =============================================================================
# HELPDESK API - PAGINATION & FILTER ENGINE
# =============================================================================
# Bounded list queries: exact filters, case-insensitive text search,
# COUNT + LIMIT/OFFSET, and expansion of user references.
# =============================================================================

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import config

# Fields of a user reference embedded in list/detail payloads
REF_FIELDS = ("id", "name", "email", "avatar")


# =============================================================================
# PAGE PARAMETERS
# =============================================================================

def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_page(page: Any = None, limit: Any = None,
                   default_limit: Optional[int] = None) -> Tuple[int, int]:
    """
    Coerce page/limit to integers within bounds.

    page >= 1, 1 <= limit <= MAX_PAGE_LIMIT. Missing or non-numeric values
    fall back to page 1 and default_limit (DEFAULT_PAGE_LIMIT when omitted).

    Returns:
        Tuple (page, limit)
    """
    if default_limit is None:
        default_limit = config.DEFAULT_PAGE_LIMIT

    page = max(1, _to_int(page, 1))
    limit = _to_int(limit, default_limit)
    limit = min(max(1, limit), config.MAX_PAGE_LIMIT)
    return page, limit


def build_pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit),
    }


# =============================================================================
# QUERY
# =============================================================================

def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Query:
    """
    A SELECT over a fixed source with accumulated WHERE clauses.

    Usage:
        query = Query("SELECT t.*", "tickets t")
        query.exact("t.status", status).search(["t.title"], search)
        items, pagination = paginate(db, query, page, limit, "t.created_at DESC")
    """

    def __init__(self, select: str, source: str):
        self.select = select
        self.source = source
        self._clauses: List[str] = []
        self.params: List[Any] = []

    def where(self, clause: str, *params) -> "Query":
        """Add a raw clause with its ? parameters."""
        self._clauses.append(clause)
        self.params.extend(params)
        return self

    def exact(self, column: str, value: Any) -> "Query":
        """Equality filter, applied only when value is present and non-empty."""
        if value is None or value == "":
            return self
        return self.where(f"{column} = ?", value)

    def search(self, columns: Sequence[str], term: Optional[str]) -> "Query":
        """Case-insensitive substring match across columns (OR)."""
        if term is None or not term.strip():
            return self
        pattern = f"%{_escape_like(term.strip().lower())}%"
        clause = " OR ".join(f"LOWER({column}) LIKE ? ESCAPE '\\'" for column in columns)
        return self.where(f"({clause})", *([pattern] * len(columns)))

    @property
    def where_sql(self) -> str:
        if not self._clauses:
            return "1=1"
        return " AND ".join(self._clauses)


def paginate(db, query: Query, page: Any = None, limit: Any = None,
             order_by: str = "id DESC",
             default_limit: Optional[int] = None) -> Tuple[List[Dict], Dict[str, int]]:
    """
    Run a bounded query.

    Args:
        db: Database connection
        query: Query with filters
        page: Requested page (1-based)
        limit: Requested page size
        order_by: ORDER BY expression (trusted, never user input)
        default_limit: Page size used when limit is missing

    Returns:
        Tuple (rows, pagination) with pagination = {page, limit, total, pages}
    """
    page, limit = normalize_page(page, limit, default_limit)
    skip = (page - 1) * limit

    total_row = db.execute(
        f"SELECT COUNT(*) AS total FROM {query.source} WHERE {query.where_sql}",
        query.params
    ).fetchone()
    total = int(total_row["total"]) if total_row else 0

    rows = db.execute(
        f"{query.select} FROM {query.source} WHERE {query.where_sql} "
        f"ORDER BY {order_by} LIMIT ? OFFSET ?",
        [*query.params, limit, skip]
    ).fetchall()

    return [dict(row) for row in rows], build_pagination(page, limit, total)


# =============================================================================
# REFERENCE EXPANSION
# =============================================================================

def ref_columns(alias: str, prefix: str) -> str:
    """SELECT fragment for a joined user, e.g. `c.id AS customer__id, ...`."""
    return ", ".join(f"{alias}.{field} AS {prefix}__{field}" for field in REF_FIELDS)


def expand_ref(row: Dict[str, Any], prefix: str) -> Optional[Dict[str, Any]]:
    """Build {id, name, email, avatar} from the columns of ref_columns()."""
    if row.get(f"{prefix}__id") is None:
        return None
    return {field: row.get(f"{prefix}__{field}") for field in REF_FIELDS}
