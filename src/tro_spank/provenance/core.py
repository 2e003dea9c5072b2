"""TRO construction through the tro-utils command line tool.

One ProvenanceCoordinator drives one TRO declaration through the protocol:

| Phase     | Subcommand        | Creates / effect                           |
|-----------|-------------------|--------------------------------------------|
| Open      | arrangement add   | arrangement/0, at job start                |
| Close     | arrangement add   | arrangement/1, at job exit                 |
| Correlate | performance add   | performance from arrangement/0 to /1       |
| Seal      | sign              | signs the declaration, no changes after    |

Each phase is one blocking tro-utils run. A failing run raises
ToolInvocationError; nothing is retried. The performance record references the
arrangements by index, so Close is refused unless Open completed, and exactly
one Open and one Close must precede the performance.
"""

import logging
import os
from pathlib import Path
import subprocess
from typing import Callable, Dict, List, Optional, Set

from ..domain import PluginConfig
from ..environ import GPG_HOME_VARS
from ..exceptions import ConfigError, ProvenanceOrderError, ToolInvocationError
from ..trace import ExecutionTrace
from ..utils import format_timestamp, redact_argv
from .models import ProvenancePhase, ToolInvocation

logger = logging.getLogger(__name__)

INITIAL_ARRANGEMENT_MESSAGE = "Initial arrangement"
FINAL_ARRANGEMENT_MESSAGE = "Final arrangement"
ARRANGEMENT_EXCLUDE = ".git"
START_ARRANGEMENT_REF = "arrangement/0"
END_ARRANGEMENT_REF = "arrangement/1"

Runner = Callable[..., subprocess.CompletedProcess]


def performance_message(trace: ExecutionTrace) -> str:
    """Describe a traced run for the performance record."""
    if trace.command_line:
        return f"Job {trace.job_id}: {' '.join(trace.command_line)}"
    return f"Job {trace.job_id}"


class ProvenanceCoordinator:
    """Builds and signs the TRO declaration of one job.

    Args:
        config: Resolved plugin configuration (tro_utils and trs_caps required)
        document_path: TRO declaration file
        workdir: Directory captured by the arrangements
        runner: subprocess.run compatible callable
        timeout: Per-invocation timeout in seconds, None blocks until exit

    Raises:
        ConfigError: If tro_utils or trs_caps is not configured
    """

    def __init__(
        self,
        config: PluginConfig,
        document_path: Path,
        workdir: Path,
        runner: Runner = subprocess.run,
        timeout: Optional[float] = None,
    ):
        if config.tro_utils is None:
            raise ConfigError("tro_utils is not configured")
        if config.trs_caps is None:
            raise ConfigError("trs_caps is not configured")

        self.config = config
        self.document_path = Path(document_path)
        self.workdir = Path(workdir)
        self.runner = runner
        self.timeout = timeout
        self.invocations: List[ToolInvocation] = []
        self._attempted: Set[ProvenancePhase] = set()
        self._completed: Set[ProvenancePhase] = set()

    # ------------------------------------------------------------------
    # Argument builders
    # ------------------------------------------------------------------

    def _signing_args(self) -> List[str]:
        return [
            "--gpg-fingerprint",
            self.config.gpg_fingerprint,
            "--gpg-passphrase",
            self.config.gpg_passphrase,
        ]

    def _common_args(self) -> List[str]:
        return [
            str(self.config.tro_utils),
            "--declaration",
            str(self.document_path),
            "--profile",
            str(self.config.trs_caps),
            *self._signing_args(),
        ]

    def arrangement_args(self, message: str) -> List[str]:
        """Command line for ``arrangement add`` over the working directory."""
        return [*self._common_args(), "arrangement", "add", "-m", message, "-i", ARRANGEMENT_EXCLUDE, str(self.workdir)]

    def performance_args(self, trace: ExecutionTrace) -> List[str]:
        """Command line for ``performance add`` spanning the traced window."""
        return [
            *self._common_args(),
            "performance",
            "add",
            "-m",
            performance_message(trace),
            "-s",
            format_timestamp(trace.start_time),
            "-e",
            format_timestamp(trace.end_time),
            "-a",
            START_ARRANGEMENT_REF,
            "-M",
            END_ARRANGEMENT_REF,
        ]

    def sign_args(self) -> List[str]:
        """Command line for ``sign``."""
        return [str(self.config.tro_utils), "--declaration", str(self.document_path), *self._signing_args(), "sign"]

    # ------------------------------------------------------------------
    # Protocol phases
    # ------------------------------------------------------------------

    @property
    def sealed(self) -> bool:
        return ProvenancePhase.SEAL in self._attempted

    def open_arrangement(self) -> ToolInvocation:
        """Record the initial arrangement (arrangement/0)."""
        self._begin(ProvenancePhase.OPEN)
        return self._invoke(ProvenancePhase.OPEN, self.arrangement_args(INITIAL_ARRANGEMENT_MESSAGE))

    def close_arrangement(self) -> ToolInvocation:
        """Record the final arrangement (arrangement/1)."""
        self._begin(ProvenancePhase.CLOSE, requires=(ProvenancePhase.OPEN,))
        return self._invoke(ProvenancePhase.CLOSE, self.arrangement_args(FINAL_ARRANGEMENT_MESSAGE))

    def record_performance(self, trace: ExecutionTrace) -> ToolInvocation:
        """Record the traced execution between the two arrangements."""
        self._begin(ProvenancePhase.CORRELATE, requires=(ProvenancePhase.CLOSE,))
        return self._invoke(ProvenancePhase.CORRELATE, self.performance_args(trace))

    def sign(self) -> ToolInvocation:
        """Sign the declaration. No phase may run afterwards."""
        self._begin(ProvenancePhase.SEAL, requires=(ProvenancePhase.OPEN, ProvenancePhase.CLOSE, ProvenancePhase.CORRELATE))
        return self._invoke(ProvenancePhase.SEAL, self.sign_args())

    def _begin(self, phase: ProvenancePhase, requires: tuple = ()) -> None:
        if self.sealed:
            raise ProvenanceOrderError(f"Declaration already signed, cannot run {phase.value}", context={"document": str(self.document_path)})
        if phase in self._attempted:
            raise ProvenanceOrderError(f"Phase {phase.value} already ran for this declaration", context={"document": str(self.document_path)})
        missing = [required.value for required in requires if required not in self._completed]
        if missing:
            raise ProvenanceOrderError(f"Phase {phase.value} requires {', '.join(missing)}", context={"document": str(self.document_path)})
        self._attempted.add(phase)

    # ------------------------------------------------------------------
    # Subprocess execution
    # ------------------------------------------------------------------

    def _child_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self.config.gpg_home is not None:
            for name in GPG_HOME_VARS:
                env[name] = str(self.config.gpg_home)
        return env

    def _invoke(self, phase: ProvenancePhase, argv: List[str]) -> ToolInvocation:
        safe_argv = redact_argv(argv)
        logger.info(f"Running tro-utils ({phase.value}): {' '.join(safe_argv)}")

        try:
            result = self.runner(argv, capture_output=True, text=True, check=False, env=self._child_env(), timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ToolInvocationError(f"tro-utils timed out after {e.timeout}s", phase=phase.value) from e
        except OSError as e:
            raise ToolInvocationError(f"Cannot run {argv[0]}: {e}", phase=phase.value) from e

        invocation = ToolInvocation(
            phase=phase,
            argv=safe_argv,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
        self.invocations.append(invocation)

        if invocation.returncode != 0:
            raise ToolInvocationError(
                f"tro-utils failed with exit status {invocation.returncode}: {invocation.stderr.strip()}",
                phase=phase.value,
                returncode=invocation.returncode,
                stderr=invocation.stderr,
            )

        logger.debug(f"tro-utils output ({phase.value}): {invocation.stdout.strip()}")
        self._completed.add(phase)
        return invocation
