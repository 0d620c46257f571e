"""Lexer for the shape declaration DSL."""

import codecs

import ply.lex as lex


class ShapeLexer:
    """Lexer for tokenizing shape declarations."""

    # Reserved keywords
    reserved = {
        "interface": "INTERFACE",
        "type": "TYPE",
        "extends": "EXTENDS",
        "true": "TRUE",
        "false": "FALSE",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "STRING",
        "NUMBER",
        "LBRACE",
        "RBRACE",
        "LPAREN",
        "RPAREN",
        "COLON",
        "COMMA",
        "SEMI",
        "EQUALS",
        "PIPE",
        "AMP",
    ] + list(reserved.values())

    # Simple tokens
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_COLON = r":"
    t_COMMA = r","
    t_SEMI = r";"
    t_EQUALS = r"="
    t_PIPE = r"\|"
    t_AMP = r"&"

    t_ignore = " \t\r"

    # Comments: '# ...' and '// ...'
    t_ignore_COMMENT = r"(?:\#|//)[^\n]*"

    def __init__(self) -> None:
        self.lexer: lex.LexToken = None  # type: ignore

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'"
        body = t.value[1:-1]
        if "\\" in body:
            body = codecs.decode(body.encode("latin-1", "backslashreplace"), "unicode_escape")
        t.value = body
        return t

    def t_NUMBER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+(?:\.\d+)?"
        t.value = float(t.value) if "." in t.value else int(t.value)
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lineno}")

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
