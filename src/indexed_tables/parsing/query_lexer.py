"""Lexer for the ITQ (Indexed Tables Query) language."""

import ply.lex as lex


class QueryLexer:
    """Lexer for tokenizing ITQ queries."""

    # Reserved keywords
    reserved = {
        "get": "GET",
        "between": "BETWEEN",
        "using": "USING",
        "inclusive": "INCLUSIVE",
        "exclusive": "EXCLUSIVE",
        "where": "WHERE",
        "and": "AND",
        "or": "OR",
        "not": "NOT",
        "in": "IN",
        "contains": "CONTAINS",
        "like": "LIKE",
        "ilike": "ILIKE",
        "intersects": "INTERSECTS",
        "sort": "SORT",
        "by": "BY",
        "asc": "ASC",
        "desc": "DESC",
        "offset": "OFFSET",
        "limit": "LIMIT",
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "INTEGER",
        "FLOAT",
        "STRING",
        "COMMA",
        "DOT",
        "LBRACKET",
        "RBRACKET",
        "EQ",
        "EQEQ",
        "STRICT_EQ",
        "NEQ",
        "STRICT_NEQ",
        "LT",
        "LTE",
        "GT",
        "GTE",
        "SEMICOLON",
    ] + list(reserved.values())

    # Simple tokens; PLY sorts string-defined tokens longest-first
    t_COMMA = r","
    t_DOT = r"\."
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_STRICT_EQ = r"==="
    t_EQEQ = r"=="
    t_EQ = r"="
    t_STRICT_NEQ = r"!=="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_LT = r"<"
    t_GTE = r">="
    t_GT = r">"
    t_SEMICOLON = r";"

    # Ignored characters
    t_ignore = " \t"

    def __init__(self) -> None:
        self.lexer: lex.LexToken = None  # type: ignore

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+\.\d+"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+"
        t.value = int(t.value)
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"([^"\\]|\\.)*"'
        # Remove quotes and handle escapes; non-Latin-1 text survives as \u escapes
        t.value = t.value[1:-1].encode("latin-1", "backslashreplace").decode("unicode_escape")
        return t

    def t_BACKTICK_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"`[^`]+`"
        # Strip backticks; always an IDENTIFIER, bypassing keyword lookup
        t.value = t.value[1:-1]
        t.type = "IDENTIFIER"
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        # Check if it's a reserved word (case-insensitive)
        t.type = self.reserved.get(t.value.lower(), "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_COMMENT(self, t: lex.LexToken) -> None:
        r"--[^\n]*"
        pass  # Ignore comments

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
