"""Parser for the ITQ (Indexed Tables Query) language."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from indexed_tables.parsing.query_lexer import QueryLexer
from indexed_tables.types import OR_PREFIX, Direction, SortKey


@dataclass
class Condition:
    """A WHERE condition, already in filter operator form."""

    field: str  # Field name or dotted path like "address.state"
    operator: str  # ==, ===, !=, !==, <, <=, >, >=, in, notIn, contains, likei, ...
    value: Any
    is_or: bool = False


@dataclass
class Retrieval:
    """How a statement reads from the collection's indexes."""

    kind: str = "scan"  # scan, get, get_all, between
    keys: list[Any] = field(default_factory=list)
    index: str | None = None
    inclusive: bool | None = None  # None keeps the engine's boundary defaults

    def options(self) -> dict[str, Any]:
        """Return the retrieval options mapping for the query builder."""
        opts: dict[str, Any] = {}
        if self.index:
            opts["index"] = self.index
        if self.inclusive is not None:
            opts["left_inclusive"] = self.inclusive
            opts["right_inclusive"] = self.inclusive
        return opts


@dataclass
class SelectStatement:
    """A parsed ITQ statement."""

    retrieval: Retrieval = field(default_factory=Retrieval)
    conditions: list[Condition] = field(default_factory=list)
    sort_by: list[SortKey] = field(default_factory=list)
    offset: int = 0
    limit: int | None = None

    def filter_query(self) -> dict[str, Any]:
        """Build the structured filter mapping for Query.filter()."""
        where: dict[str, dict[str, Any]] = {}
        for cond in self.conditions:
            op = f"{OR_PREFIX}{cond.operator}" if cond.is_or else cond.operator
            where.setdefault(cond.field, {})[op] = cond.value

        query: dict[str, Any] = {}
        if where:
            query["where"] = where
        if self.sort_by:
            query["orderBy"] = [[key.field, key.direction.value] for key in self.sort_by]
        if self.offset:
            query["skip"] = self.offset
        if self.limit is not None:
            query["limit"] = self.limit
        return query


# Comparison tokens to filter operator names
_COMPARISON_OPS = {
    "=": "==",
    "==": "==",
    "===": "===",
    "!=": "!=",
    "!==": "!==",
    "<": "<",
    "<=": "<=",
    ">": ">",
    ">=": ">=",
}

# Keyword operators to (positive, negated) filter operator names
_KEYWORD_OPS = {
    "in": ("in", "notIn"),
    "contains": ("contains", "notContains"),
    "like": ("like", "notLike"),
    "ilike": ("likei", "notLikei"),
    "intersects": ("isectNotEmpty", "isectEmpty"),
}


class QueryParser:
    """Parser for ITQ queries."""

    tokens = QueryLexer.tokens

    def __init__(self) -> None:
        self.lexer = QueryLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : query SEMICOLON
                     | query"""
        p[0] = p[1]

    def p_query(self, p: yacc.YaccProduction) -> None:
        """query : retrieval where_clause sort_clause offset_clause limit_clause"""
        p[0] = SelectStatement(
            retrieval=p[1],
            conditions=p[2],
            sort_by=p[3],
            offset=p[4],
            limit=p[5],
        )

    def p_retrieval_scan(self, p: yacc.YaccProduction) -> None:
        """retrieval : """
        p[0] = Retrieval()

    def p_retrieval_get(self, p: yacc.YaccProduction) -> None:
        """retrieval : GET value_list using_clause"""
        keys = p[2]
        kind = "get" if len(keys) == 1 else "get_all"
        p[0] = Retrieval(kind=kind, keys=keys, index=p[3])

    def p_retrieval_between(self, p: yacc.YaccProduction) -> None:
        """retrieval : BETWEEN value AND value using_clause range_clause"""
        p[0] = Retrieval(kind="between", keys=[p[2], p[4]], index=p[5], inclusive=p[6])

    def p_using_clause_empty(self, p: yacc.YaccProduction) -> None:
        """using_clause : """
        p[0] = None

    def p_using_clause(self, p: yacc.YaccProduction) -> None:
        """using_clause : USING IDENTIFIER"""
        p[0] = p[2]

    def p_range_clause_empty(self, p: yacc.YaccProduction) -> None:
        """range_clause : """
        p[0] = None

    def p_range_clause(self, p: yacc.YaccProduction) -> None:
        """range_clause : INCLUSIVE
                        | EXCLUSIVE"""
        p[0] = p[1].lower() == "inclusive"

    def p_where_clause_empty(self, p: yacc.YaccProduction) -> None:
        """where_clause : """
        p[0] = []

    def p_where_clause(self, p: yacc.YaccProduction) -> None:
        """where_clause : WHERE condition_list"""
        p[0] = p[2]

    def p_condition_list_single(self, p: yacc.YaccProduction) -> None:
        """condition_list : condition"""
        p[0] = [p[1]]

    def p_condition_list_and(self, p: yacc.YaccProduction) -> None:
        """condition_list : condition_list AND condition"""
        p[0] = p[1] + [p[3]]

    def p_condition_list_or(self, p: yacc.YaccProduction) -> None:
        """condition_list : condition_list OR condition"""
        cond = p[3]
        cond.is_or = True
        p[0] = p[1] + [cond]

    def p_condition_comparison(self, p: yacc.YaccProduction) -> None:
        """condition : field_path EQ value
                     | field_path EQEQ value
                     | field_path STRICT_EQ value
                     | field_path NEQ value
                     | field_path STRICT_NEQ value
                     | field_path LT value
                     | field_path LTE value
                     | field_path GT value
                     | field_path GTE value"""
        p[0] = Condition(field=p[1], operator=_COMPARISON_OPS[p[2]], value=p[3])

    def p_condition_membership(self, p: yacc.YaccProduction) -> None:
        """condition : field_path IN list_literal
                     | field_path INTERSECTS list_literal
                     | field_path CONTAINS value
                     | field_path LIKE STRING
                     | field_path ILIKE STRING"""
        positive, _ = _KEYWORD_OPS[p[2].lower()]
        p[0] = Condition(field=p[1], operator=positive, value=p[3])

    def p_condition_negated(self, p: yacc.YaccProduction) -> None:
        """condition : field_path NOT IN list_literal
                     | field_path NOT INTERSECTS list_literal
                     | field_path NOT CONTAINS value
                     | field_path NOT LIKE STRING
                     | field_path NOT ILIKE STRING"""
        _, negated = _KEYWORD_OPS[p[3].lower()]
        p[0] = Condition(field=p[1], operator=negated, value=p[4])

    def p_field_path_single(self, p: yacc.YaccProduction) -> None:
        """field_path : IDENTIFIER"""
        p[0] = p[1]

    def p_field_path_dotted(self, p: yacc.YaccProduction) -> None:
        """field_path : field_path DOT IDENTIFIER"""
        p[0] = f"{p[1]}.{p[3]}"

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING
                 | list_literal"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_value_null(self, p: yacc.YaccProduction) -> None:
        """value : NULL"""
        p[0] = None

    def p_list_literal_empty(self, p: yacc.YaccProduction) -> None:
        """list_literal : LBRACKET RBRACKET"""
        p[0] = []

    def p_list_literal(self, p: yacc.YaccProduction) -> None:
        """list_literal : LBRACKET value_list RBRACKET"""
        p[0] = p[2]

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    def p_sort_clause_empty(self, p: yacc.YaccProduction) -> None:
        """sort_clause : """
        p[0] = []

    def p_sort_clause(self, p: yacc.YaccProduction) -> None:
        """sort_clause : SORT BY sort_list"""
        p[0] = p[3]

    def p_sort_list_single(self, p: yacc.YaccProduction) -> None:
        """sort_list : sort_item"""
        p[0] = [p[1]]

    def p_sort_list_multiple(self, p: yacc.YaccProduction) -> None:
        """sort_list : sort_list COMMA sort_item"""
        p[0] = p[1] + [p[3]]

    def p_sort_item(self, p: yacc.YaccProduction) -> None:
        """sort_item : field_path"""
        p[0] = SortKey(p[1])

    def p_sort_item_direction(self, p: yacc.YaccProduction) -> None:
        """sort_item : field_path ASC
                     | field_path DESC"""
        p[0] = SortKey(p[1], Direction.parse(p[2]))

    def p_offset_clause_empty(self, p: yacc.YaccProduction) -> None:
        """offset_clause : """
        p[0] = 0

    def p_offset_clause(self, p: yacc.YaccProduction) -> None:
        """offset_clause : OFFSET INTEGER"""
        p[0] = p[2]

    def p_limit_clause_empty(self, p: yacc.YaccProduction) -> None:
        """limit_clause : """
        p[0] = None

    def p_limit_clause(self, p: yacc.YaccProduction) -> None:
        """limit_clause : LIMIT INTEGER"""
        p[0] = p[2]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    @staticmethod
    def _check_conditions(conditions: list[Condition]) -> None:
        """Reject condition lists that cannot be kept in written order.

        Conditions are grouped by field for filtering, so all conditions on
        one field must be adjacent and use distinct operators.
        """
        finished: set[str] = set()
        current: str | None = None
        seen_ops: set[str] = set()
        for cond in conditions:
            if cond.field != current:
                if cond.field in finished:
                    raise SyntaxError(f"Conditions on '{cond.field}' must be adjacent")
                if current is not None:
                    finished.add(current)
                current = cond.field
                seen_ops = set()
            op = f"{OR_PREFIX}{cond.operator}" if cond.is_or else cond.operator
            if op in seen_ops:
                raise SyntaxError(f"Duplicate condition '{cond.field} {cond.operator}'")
            seen_ops.add(op)

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="statement", **kwargs)

    def parse(self, data: str) -> SelectStatement:
        """Parse a query string."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        statement = self.parser.parse(data, lexer=self.lexer.lexer)
        # Raised here, since PLY turns SyntaxError inside a rule into error recovery
        self._check_conditions(statement.conditions)
        return statement
