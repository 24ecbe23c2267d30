from slotsat.cnf.cnf_types import CnfDocument, ClauseLits, negate_clause, max_var
from slotsat.cnf.cnf_io import (
    comment_lines, format_clause, parse_literals, read_dimacs, read_dimacs_from_string,
    to_dimacs_string, write_dimacs
)

__all__ = [
    "CnfDocument", "ClauseLits", "negate_clause", "max_var",
    "comment_lines", "format_clause", "parse_literals", "read_dimacs", "read_dimacs_from_string",
    "to_dimacs_string", "write_dimacs"
]
