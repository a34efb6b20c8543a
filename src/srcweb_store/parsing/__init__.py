"""Parsing module for compact store declarations."""

from srcweb_store.parsing.store_lexer import StoreLexer
from srcweb_store.parsing.store_parser import StoreParser

__all__ = [
    "StoreLexer",
    "StoreParser",
]
