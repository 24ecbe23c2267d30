"""
Solver backends used by SolutionEnumerator.

Both backends take a CnfDocument and return a SatResult whose model holds
one literal per variable 1..num_vars. The process backend follows the
MiniSat file contract: the solver is called with an input and an output
path and writes 'SAT' or 'UNSAT' on the first output line, followed by
the literal line terminated by 0 when satisfiable.
"""
import abc
import random
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import List, Optional

from pysat.solvers import Solver

from slotsat.cnf.cnf_io import parse_literals, write_dimacs
from slotsat.cnf.cnf_types import CnfDocument
from slotsat.core.config import SolverConfig
from slotsat.core.errors import MalformedCnfError, SolverInvocationError
from slotsat.core.logging import get_logger
from slotsat.solve.types import SatResult, SatStatus

logger = get_logger(__name__)

# MiniSat exit codes for a completed run
EXIT_SAT = 10
EXIT_UNSAT = 20

def complete_model(model: List[int], num_vars: int) -> List[int]:
    """
    Pads a model so that it covers every variable 1..num_vars.
    Variables the solver never saw are reported false.
    """
    seen = {abs(lit) for lit in model}
    padded = list(model)
    padded.extend(-v for v in range(1, num_vars + 1) if v not in seen)
    return sorted(padded, key=abs)

def parse_solver_output(text: str) -> SatResult:
    """Parses the output file of a MiniSat-style solver."""
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if not lines:
        raise SolverInvocationError("Solver produced empty output")

    status_line = lines[0]
    if status_line.startswith("UNSAT"):
        return SatResult(status=SatStatus.UNSAT)
    if not status_line.startswith("SAT"):
        raise SolverInvocationError(f"Unrecognized solver status line: {status_line!r}")

    # The literal line may follow on the status line or on the next one
    rest = status_line[len("SAT"):].strip()
    literal_text = rest if rest else " ".join(lines[1:])
    try:
        model = parse_literals(literal_text)
    except MalformedCnfError as e:
        raise SolverInvocationError(f"Unparsable solver model: {e}")
    if not literal_text.split() or literal_text.split()[-1] != "0":
        raise SolverInvocationError("Solver model line is missing its terminating 0")
    return SatResult(status=SatStatus.SAT, model=model)

class SolverBackend(abc.ABC):
    def __init__(self, config: SolverConfig):
        self.config = config

    @property
    @abc.abstractmethod
    def name(self) -> str:
        pass

    @abc.abstractmethod
    def solve(self, doc: CnfDocument, seed: int) -> SatResult:
        """Solve once. Raise SolverInvocationError when no verdict is obtained."""
        pass

class PySatBackend(SolverBackend):
    """In-process solving through python-sat. The seed randomises initial phases."""

    @property
    def name(self) -> str:
        return f"pysat:{self.config.solver_name}"

    def solve(self, doc: CnfDocument, seed: int) -> SatResult:
        start_time = time.time()
        rng = random.Random(seed)
        try:
            with Solver(name=self.config.solver_name, bootstrap_with=doc.clauses) as solver:
                phases = [v if rng.random() < 0.5 else -v for v in range(1, solver.nof_vars() + 1)]
                if phases:
                    try:
                        solver.set_phases(phases)
                    except NotImplementedError:
                        logger.debug(f"{self.name} does not support phase seeding")

                if self.config.timeout is None:
                    is_sat = solver.solve()
                else:
                    timer = threading.Timer(self.config.timeout, solver.interrupt)
                    timer.start()
                    try:
                        is_sat = solver.solve_limited(expect_interrupt=True)
                    finally:
                        timer.cancel()
                    if is_sat is None:
                        raise SolverInvocationError(
                            f"{self.name} timed out after {self.config.timeout}s"
                        )

                model = solver.get_model() if is_sat else None
        except SolverInvocationError:
            raise
        except Exception as e:
            raise SolverInvocationError(f"{self.name} failed: {e}")

        elapsed = time.time() - start_time
        if not is_sat:
            return SatResult(status=SatStatus.UNSAT, seed=seed, time_taken=elapsed)
        return SatResult(
            status=SatStatus.SAT,
            model=complete_model(model or [], doc.num_vars),
            seed=seed,
            time_taken=elapsed,
        )

class ProcessBackend(SolverBackend):
    """
    Runs an external MiniSat-compatible executable:
    `<executable> -rnd-init -rnd-seed=<seed> [extra_args] <in> <out>`.
    """

    @property
    def name(self) -> str:
        return f"process:{self.config.executable}"

    def _command(self, infile: Path, outfile: Path, seed: int) -> List[str]:
        return (
            [self.config.executable, "-rnd-init", f"-rnd-seed={seed}"]
            + list(self.config.extra_args)
            + [str(infile), str(outfile)]
        )

    def solve(self, doc: CnfDocument, seed: int) -> SatResult:
        if self.config.workdir is not None:
            Path(self.config.workdir).mkdir(parents=True, exist_ok=True)
            return self._solve_in(Path(self.config.workdir), doc, seed)
        with tempfile.TemporaryDirectory(prefix="slotsat-") as tmp:
            return self._solve_in(Path(tmp), doc, seed)

    def _solve_in(self, workdir: Path, doc: CnfDocument, seed: int) -> SatResult:
        infile = workdir / "in.cnf"
        outfile = workdir / "out.txt"
        write_dimacs(doc, infile)
        if outfile.exists():
            outfile.unlink()

        cmd = self._command(infile, outfile, seed)
        logger.debug(f"Running: {' '.join(cmd)}")
        start_time = time.time()
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.config.timeout)
        except FileNotFoundError:
            raise SolverInvocationError(f"Solver executable not found: {self.config.executable}")
        except subprocess.TimeoutExpired:
            raise SolverInvocationError(f"{self.name} timed out after {self.config.timeout}s")

        if proc.returncode not in (0, EXIT_SAT, EXIT_UNSAT):
            raise SolverInvocationError(
                f"{self.name} exited with code {proc.returncode}: {proc.stderr.strip()}"
            )
        if not outfile.exists():
            raise SolverInvocationError(f"{self.name} did not write {outfile}")

        result = parse_solver_output(outfile.read_text(encoding="utf-8"))
        result.seed = seed
        result.time_taken = time.time() - start_time
        if result.is_sat:
            result.model = complete_model(result.model, doc.num_vars)
        return result

def make_backend(config: Optional[SolverConfig] = None) -> SolverBackend:
    config = config or SolverConfig()
    if config.backend == "process":
        return ProcessBackend(config)
    if config.backend == "pysat":
        return PySatBackend(config)
    raise SolverInvocationError(f"Unknown solver backend: {config.backend}")

