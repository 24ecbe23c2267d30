from pathlib import Path
from typing import Iterable, List, Union

from slotsat.cnf.cnf_types import CnfDocument, max_var
from slotsat.core.errors import MalformedCnfError

def format_clause(literals: Iterable[int]) -> str:
    """Formats literals as one DIMACS clause line, e.g. '1 -2 0'."""
    return " ".join([str(lit) for lit in literals] + ["0"])

def comment_lines(text: str, indent: str = "") -> List[str]:
    """Prefixes every line of `text` with "c", so multi-line text stays a comment."""
    return [f"c {indent}{line}".rstrip() for line in str(text).splitlines() or [""]]

def parse_literals(text: str) -> List[int]:
    """
    Parses a whitespace separated literal line such as '1 -2 3 0'.
    The trailing 0 is optional; literals after a 0 are rejected.
    """
    lits = []
    tokens = text.split()
    for i, tok in enumerate(tokens):
        try:
            lit = int(tok)
        except ValueError:
            raise MalformedCnfError(f"Invalid literal token {tok!r}")
        if lit == 0:
            if i != len(tokens) - 1:
                raise MalformedCnfError(f"Literal 0 before end of clause: {text!r}")
            break
        lits.append(lit)
    return lits

def read_dimacs_from_string(text: str) -> CnfDocument:
    """
    Parses DIMACS text.
    Comment lines start with 'c'. The 'p cnf' header is optional and may
    under-report the variable count; the larger of header and observed wins.
    Clauses may span lines and several clauses may share a line.
    """
    header_vars = 0
    clauses: List[List[int]] = []
    comments: List[str] = []
    current: List[int] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("c"):
            comments.append(line[1:].strip())
            continue
        if line.startswith("p"):
            parts = line.split()
            if len(parts) < 4 or parts[1] != "cnf":
                raise MalformedCnfError(f"Invalid header line: {line!r}")
            try:
                header_vars = int(parts[2])
            except ValueError:
                raise MalformedCnfError(f"Invalid header line: {line!r}")
            continue
        if line.startswith("%"):
            # SATLIB end marker
            break

        for tok in line.split():
            try:
                lit = int(tok)
            except ValueError:
                raise MalformedCnfError(f"Invalid literal token {tok!r}")
            if lit == 0:
                if not current:
                    raise MalformedCnfError("Empty clause")
                clauses.append(current)
                current = []
            else:
                current.append(lit)

    if current:
        raise MalformedCnfError("Missing terminating 0 on last clause")

    return CnfDocument(
        num_vars=max(header_vars, max_var(clauses)),
        clauses=clauses,
        comments=comments,
    )

def to_dimacs_string(doc: CnfDocument) -> str:
    """Renders a CnfDocument with an accurate 'p cnf' header."""
    lines = [f"c {comment}" for comment in doc.comments]
    lines.append(f"p cnf {doc.num_vars} {len(doc.clauses)}")
    lines.extend(format_clause(clause) for clause in doc.clauses)
    return "\n".join(lines) + "\n"

def read_dimacs(path: Union[str, Path]) -> CnfDocument:
    with open(path, "r", encoding="utf-8") as f:
        return read_dimacs_from_string(f.read())

def write_dimacs(doc: CnfDocument, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_dimacs_string(doc))
