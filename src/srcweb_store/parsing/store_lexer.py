"""Lexer for compact store declarations such as ``"[scenarioId+slotId], timestamp"``."""

import ply.lex as lex


class StoreLexer:
    """Lexer for tokenizing store declaration strings."""

    # Token list
    tokens = [
        "IDENTIFIER",
        "LBRACKET",
        "RBRACKET",
        "PLUS",
        "COMMA",
        "AMPERSAND",
    ]

    # Simple tokens
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_PLUS = r"\+"
    t_COMMA = r","
    t_AMPERSAND = r"&"

    # Ignored characters (spaces, tabs, and newlines)
    t_ignore = " \t\n"

    def __init__(self) -> None:
        self.lexer: lex.LexToken = None  # type: ignore

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_$][a-zA-Z0-9_$]*(\.[a-zA-Z_$][a-zA-Z0-9_$]*)*"
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

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
