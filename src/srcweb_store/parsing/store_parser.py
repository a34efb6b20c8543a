"""Parser for compact store declarations.

A declaration lists the primary key path first, then the secondary
indexes, separated by commas::

    "[scenarioId+url], scenarioId, status, [scenarioId+type]"

``[a+b]`` is a compound key path and a leading ``&`` marks an index as
unique. Dotted identifiers address nested fields.
"""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from srcweb_store.parsing.store_lexer import StoreLexer
from srcweb_store.types import IndexDefinition, KeyPath, StoreDefinition, key_path_name


class StoreParser:
    """Parser for store declaration strings."""

    tokens = StoreLexer.tokens

    def __init__(self) -> None:
        self.lexer = StoreLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_declaration_key_only(self, p: yacc.YaccProduction) -> None:
        """declaration : key_path"""
        p[0] = (p[1], [])

    def p_declaration_with_indexes(self, p: yacc.YaccProduction) -> None:
        """declaration : key_path COMMA index_list"""
        p[0] = (p[1], p[3])

    def p_index_list_single(self, p: yacc.YaccProduction) -> None:
        """index_list : index"""
        p[0] = [p[1]]

    def p_index_list_multiple(self, p: yacc.YaccProduction) -> None:
        """index_list : index_list COMMA index"""
        p[0] = p[1] + [p[3]]

    def p_index(self, p: yacc.YaccProduction) -> None:
        """index : key_path"""
        p[0] = IndexDefinition(name=key_path_name(p[1]), key_path=p[1])

    def p_index_unique(self, p: yacc.YaccProduction) -> None:
        """index : AMPERSAND key_path"""
        p[0] = IndexDefinition(name=key_path_name(p[2]), key_path=p[2], unique=True)

    def p_key_path_simple(self, p: yacc.YaccProduction) -> None:
        """key_path : IDENTIFIER"""
        p[0] = p[1]

    def p_key_path_compound(self, p: yacc.YaccProduction) -> None:
        """key_path : LBRACKET field_list RBRACKET"""
        fields = p[2]
        p[0] = fields[0] if len(fields) == 1 else tuple(fields)

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list PLUS IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, store_name: str, data: str) -> StoreDefinition:
        """Parse one store declaration into a StoreDefinition."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        primary_key: KeyPath
        primary_key, indexes = self.parser.parse(data, lexer=self.lexer.lexer)
        return StoreDefinition(name=store_name, primary_key=primary_key, indexes=tuple(indexes))

    def parse_all(self, declarations: dict[str, str]) -> list[StoreDefinition]:
        """Parse a mapping of store name to declaration, keeping its order."""
        return [self.parse(name, text) for name, text in declarations.items()]
