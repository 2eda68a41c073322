"""SOQL statement builder.

QueryBuilder collects select fields, filters, ordering and limit through a
fluent API and freezes them into a QueryState, which renders the statement:

    SELECT <f1>[,<f2>...] FROM <object>
    [WHERE <field>=<value>[,<field>=<value>...]]
    [ORDER BY <field> <ASC|DESC> <NULL FIRST|NULL LAST>]
    [LIMIT <n>]

Builders are mutated in place and are not meant to be shared between
concurrent tasks.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class NullPriority(str, Enum):
    """Where null values of the order column are placed."""

    UNSPECIFIED = ""
    NULL_FIRST = "NULL FIRST"
    NULL_LAST = "NULL LAST"


@dataclass(frozen=True)
class WhereClause:
    """A single `<field>=<condition>` filter."""

    field: str
    condition: Any

    def is_valid(self) -> bool:
        """Only numbers, booleans and strings can be used as SOQL conditions."""
        return isinstance(self.condition, (bool, int, float, str))

    def render_condition(self) -> str:
        if isinstance(self.condition, bool):
            return "true" if self.condition else "false"
        return str(self.condition)


@dataclass(frozen=True)
class QueryState:
    """Immutable snapshot of a configured query."""

    object_name: str = ""
    select_fields: Tuple[str, ...] = ()
    where_clauses: Tuple[WhereClause, ...] = ()
    order: str = ""
    null_priority: NullPriority = NullPriority.UNSPECIFIED
    limit: int = 0

    def render(self, log: Optional[logging.Logger] = None) -> str:
        log = log or logger
        clauses = [
            f"SELECT {self._select_statement(log)} FROM {self.object_name}",
            self._where_statement(log),
            self._order_statement(),
            self._limit_statement(),
        ]
        return " ".join(clause for clause in clauses if clause)

    def _select_statement(self, log: logging.Logger) -> str:
        if not self.select_fields:
            log.warning(f"Query on {self.object_name!r} has no select fields")
        return ",".join(self.select_fields)

    def _where_statement(self, log: logging.Logger) -> str:
        # Keyed by field: a repeated field keeps only its last condition
        filters: Dict[str, str] = {}
        for clause in self.where_clauses:
            if not clause.is_valid():
                log.warning(
                    "Dropping invalid where-clause, condition must be a number, "
                    f"boolean or string: object={self.object_name}, "
                    f"field={clause.field}, "
                    f"condition_type={type(clause.condition).__name__}"
                )
                continue
            filters[clause.field] = clause.render_condition()

        if not filters:
            return ""
        return "WHERE " + ",".join(
            f"{name}={value}" for name, value in filters.items()
        )

    def _order_statement(self) -> str:
        if not self.order:
            return ""
        null_priority = self.null_priority.value or NullPriority.NULL_FIRST.value
        return f"ORDER BY {self.order} {null_priority}"

    def _limit_statement(self) -> str:
        if self.limit > 0:
            return f"LIMIT {self.limit}"
        return ""


@dataclass
class QueryBuilder:
    """Fluent builder for SOQL queries.

    Example:
        QueryBuilder("Account").select("Id", "Name").where("Active__c", True)
            .order_desc("CreatedDate").order_null_last().limit(10)
    """

    object_name: str = ""
    select_fields: List[str] = field(default_factory=list)
    where_clauses: List[WhereClause] = field(default_factory=list)
    order: str = ""
    null_priority: NullPriority = NullPriority.UNSPECIFIED
    limit_value: int = 0
    logger: Optional[logging.Logger] = field(default=None, repr=False, compare=False)

    def select(self, *fields: str) -> "QueryBuilder":
        """Append columns to return; order is kept and duplicates are allowed."""
        self.select_fields.extend(fields)
        return self

    def from_(self, object_name: str) -> "QueryBuilder":
        """Set which object is queried."""
        self.object_name = object_name
        return self

    def where(self, field_name: str, condition: Any) -> "QueryBuilder":
        """Add a `<field>=<condition>` filter.

        Conditions are not checked here; unsupported types are dropped when
        the statement is rendered.
        """
        self.where_clauses.append(WhereClause(field_name, condition))
        return self

    def order_asc(self, field_name: str) -> "QueryBuilder":
        self.order = f"{field_name} ASC"
        return self

    def order_desc(self, field_name: str) -> "QueryBuilder":
        self.order = f"{field_name} DESC"
        return self

    def order_reset(self) -> "QueryBuilder":
        """Remove ordering, including any null priority."""
        self.order = ""
        self.null_priority = NullPriority.UNSPECIFIED
        return self

    def order_null_first(self) -> "QueryBuilder":
        self.null_priority = NullPriority.NULL_FIRST
        return self

    def order_null_last(self) -> "QueryBuilder":
        self.null_priority = NullPriority.NULL_LAST
        return self

    def limit(self, n: int) -> "QueryBuilder":
        """Cap the number of records; n <= 0 resets to unlimited."""
        self.limit_value = n
        return self

    def build(self) -> QueryState:
        return QueryState(
            object_name=self.object_name,
            select_fields=tuple(self.select_fields),
            where_clauses=tuple(self.where_clauses),
            order=self.order,
            null_priority=self.null_priority,
            limit=self.limit_value,
        )

    def to_soql(self) -> str:
        return self.build().render(self.logger)
