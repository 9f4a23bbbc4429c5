"""Statement layout rules and the router that applies them."""
from .router import StatementParserRouter, parse_statement_text, remove_duplicates

__all__ = ["StatementParserRouter", "parse_statement_text", "remove_duplicates"]
