import json
import os
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from slotsat.core.errors import SlotSatError

class SolverConfig(BaseModel):
    """Configuration for the solver used by SolutionEnumerator."""
    backend: Literal["pysat", "process"] = "pysat"
    solver_name: str = "m22"  # Minisat22 through python-sat
    executable: str = "minisat"
    extra_args: List[str] = Field(default_factory=list)
    timeout: Optional[float] = Field(default=None, gt=0)
    max_solutions: Optional[int] = Field(default=None, ge=0)
    seed: Optional[int] = None
    workdir: Optional[Path] = None

    @staticmethod
    def from_env_or_file() -> "SolverConfig":
        # 1. Try Config Path
        config_path = os.environ.get("SLOTSAT_CONFIG_PATH")
        if config_path:
            if not os.path.exists(config_path):
                raise SlotSatError(f"SLOTSAT_CONFIG_PATH points to missing file: {config_path}")
            with open(config_path, "r", encoding="utf-8") as f:
                return SolverConfig.model_validate(json.load(f))

        # 2. Try Env Vars
        values = {}
        if os.environ.get("SLOTSAT_SOLVER_BACKEND"):
            values["backend"] = os.environ["SLOTSAT_SOLVER_BACKEND"]
        if os.environ.get("SLOTSAT_SOLVER_EXE"):
            values["executable"] = os.environ["SLOTSAT_SOLVER_EXE"]
        if os.environ.get("SLOTSAT_SOLVER_TIMEOUT"):
            values["timeout"] = os.environ["SLOTSAT_SOLVER_TIMEOUT"]
        if os.environ.get("SLOTSAT_SEED"):
            values["seed"] = os.environ["SLOTSAT_SEED"]

        return SolverConfig.model_validate(values)
