"""SPANK lifecycle hooks for TRO capture.

TroPlugin receives the scheduler callbacks of one job on one node and drives
TRO capture through them:

| Callback       | Transition                 | Work (capture enabled, remote context)  |
|----------------|----------------------------|-----------------------------------------|
| init           | CREATED -> CONFIGURED      | register --generate-tro, resolve config |
| init_post_opt  | -> OPTION_RESOLVED         | freeze the --generate-tro decision      |
| user_init      | -> ACTIVE                  | inject XALT environment, open the TRO   |
| exit           | -> FINALIZED               | close, correlate with trace, sign       |

Provenance failures are logged and end the provenance work of the current
callback. A failure in user_init is fatal to capture: exit then records nothing.
Failures are never raised to the host, so a job is not failed because its TRO
could not be built.

Example:
--------
>>> from tro_spank.hooks import create_plugin
>>> plugin = create_plugin()
>>> plugin.init(spank)
>>> plugin.init_post_opt(spank)
>>> plugin.user_init(spank)
>>> plugin.exit(spank)
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, List, Optional, Protocol, Tuple

from ..config import HookSettings, load_settings, parse_plugin_args
from ..domain import ExecutionContext, HookState, JobContext, PluginConfig
from ..environ import apply_mutations, compute_mutations, resolve_job_user
from ..exceptions import ConfigError, TroError
from ..provenance import ProvenanceCoordinator
from ..trace import ExecutionTrace, locate_trace
from ..utils import configure_logging

__all__ = [
    "SpankHandle",
    "TroPlugin",
    "create_plugin",
    "OPTION_USAGE",
    "REGISTER_CONTEXTS",
]

logger = logging.getLogger(__name__)

OPTION_USAGE = "Generate a TRO for a running job"

REGISTER_CONTEXTS = (ExecutionContext.SUBMISSION, ExecutionContext.ALLOCATION, ExecutionContext.EXECUTION)


class SpankHandle(Protocol):
    """Capabilities the host exposes to each callback."""

    def context(self) -> str: ...

    def job_id(self) -> int: ...

    def job_uid(self) -> int: ...

    def plugin_argv(self) -> List[str]: ...

    def getenv(self, name: str) -> Optional[str]: ...

    def setenv(self, name: str, value: str, overwrite: bool) -> None: ...

    def register_option(self, name: str, usage: str) -> None: ...

    def is_option_set(self, name: str) -> bool: ...


class TroPlugin:
    """TRO capture state machine for one job on one node.

    Args:
        settings: Operator settings (default: loaded from TRO_SPANK_* variables)
        runner: subprocess.run compatible callable used for tro-utils
        user_resolver: Maps the job uid to a user name
        trace_locator: Finds the XALT trace of a job
    """

    def __init__(
        self,
        settings: Optional[HookSettings] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        user_resolver: Callable[[int], str] = resolve_job_user,
        trace_locator: Callable[..., Optional[ExecutionTrace]] = locate_trace,
    ):
        self.settings = settings if settings is not None else load_settings()
        self.runner = runner
        self.user_resolver = user_resolver
        self.trace_locator = trace_locator

        self.config: Optional[PluginConfig] = None
        self.job: Optional[JobContext] = None
        self.coordinator: Optional[ProvenanceCoordinator] = None
        self._state = HookState.CREATED
        self._generate_enabled = False
        self._capture_failed = False

    @property
    def state(self) -> HookState:
        return self._state

    @property
    def generate_enabled(self) -> bool:
        """Whether --generate-tro was given; decided once in init_post_opt."""
        return self._generate_enabled

    @property
    def capture_failed(self) -> bool:
        """Whether job-start capture failed; exit then skips finalization."""
        return self._capture_failed

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def init(self, spank: SpankHandle) -> None:
        """Register the opt-in option and, in the remote context, resolve the plugin config."""
        if self._advance((HookState.CREATED,), HookState.CONFIGURED, "init") is None:
            return

        context = ExecutionContext.from_host(spank.context())
        if context in REGISTER_CONTEXTS:
            spank.register_option(self.settings.option_name, OPTION_USAGE)

        if context is ExecutionContext.EXECUTION:
            try:
                self.config = parse_plugin_args(spank.plugin_argv())
            except ConfigError as e:
                logger.error(f"Invalid plugin configuration, TRO capture disabled: {e}")

    def init_post_opt(self, spank: SpankHandle) -> None:
        """Freeze whether TRO capture was requested for this job."""
        if self._advance((HookState.CONFIGURED,), HookState.OPTION_RESOLVED, "init_post_opt") is None:
            return

        self._generate_enabled = bool(spank.is_option_set(self.settings.option_name))
        if self.config is not None:
            self.config = self.config.model_copy(update={"generate_enabled": self._generate_enabled})

        if self._generate_enabled:
            logger.info(f"TRO generation requested (--{self.settings.option_name})")

    def user_init(self, spank: SpankHandle) -> None:
        """Inject the XALT environment and record the initial arrangement."""
        if self._advance((HookState.OPTION_RESOLVED,), HookState.ACTIVE, "user_init") is None:
            return
        if not self._capturing(spank):
            return

        try:
            job = self._job_context(spank)
            self._inject_environment(spank)
        except TroError as e:
            self._capture_failed = True
            logger.error(f"Cannot prepare tracing environment, TRO capture disabled for this job: {e}")
            return

        try:
            self._coordinator(job).open_arrangement()
        except TroError as e:
            self._capture_failed = True
            logger.error(f"Failed to record initial arrangement for job {job.job_id}, TRO capture disabled: {e}")

    def exit(self, spank: SpankHandle) -> None:
        """Record the final arrangement, correlate with the XALT trace, and sign."""
        previous = self._advance((HookState.OPTION_RESOLVED, HookState.ACTIVE), HookState.FINALIZED, "exit")
        if previous is None or not self._capturing(spank):
            return
        if previous is not HookState.ACTIVE:
            logger.warning("exit called without user_init, skipping TRO finalization")
            return
        if self._capture_failed:
            logger.error(f"TRO capture failed at job start, not finalizing job {spank.job_id()}")
            return

        try:
            job = self._job_context(spank)
            coordinator = self._coordinator(job)
            coordinator.close_arrangement()

            trace = self.trace_locator(job.job_id, job.job_user, dir_name=self.settings.trace_dir_name)
            if trace is None:
                logger.error(f"No XALT trace found for job {job.job_id}, TRO left unsigned without performance")
                return

            coordinator.record_performance(trace)
            coordinator.sign()
        except TroError as e:
            logger.error(f"TRO finalization aborted: {e}")
            return

        logger.info(f"Signed TRO {job.document_path}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _advance(self, allowed: Tuple[HookState, ...], target: HookState, hook: str) -> Optional[HookState]:
        """Move to target if the current state allows it; returns the previous state or None."""
        previous = self._state
        if previous not in allowed:
            logger.warning(f"Ignoring {hook} in state {previous.value}")
            return None
        self._state = target
        return previous

    def _capturing(self, spank: SpankHandle) -> bool:
        if not self._generate_enabled:
            return False
        if ExecutionContext.from_host(spank.context()) is not ExecutionContext.EXECUTION:
            return False
        if self.config is None:
            logger.warning("TRO generation requested but plugin configuration is unavailable")
            return False
        return True

    def _job_context(self, spank: SpankHandle) -> JobContext:
        if self.job is None:
            submit_dir = spank.getenv("SLURM_SUBMIT_DIR")
            if not submit_dir:
                raise ConfigError("SLURM_SUBMIT_DIR is not set")
            job_user = spank.getenv("SLURM_JOB_USER") or self.user_resolver(spank.job_uid())
            self.job = JobContext(job_id=spank.job_id(), submit_dir=submit_dir, job_user=job_user)
        return self.job

    def _inject_environment(self, spank: SpankHandle) -> None:
        job_user = self.user_resolver(spank.job_uid())
        mutations = compute_mutations(self.config, spank.getenv, job_user)
        apply_mutations(mutations, spank.setenv)
        logger.info(f"Enabled XALT tracing for user {job_user}: {', '.join(m.name for m in mutations)}")

    def _coordinator(self, job: JobContext) -> ProvenanceCoordinator:
        if self.coordinator is None:
            self.coordinator = ProvenanceCoordinator(
                self.config,
                document_path=job.document_path,
                workdir=job.submit_dir,
                runner=self.runner,
                timeout=self.settings.tool_timeout_s,
            )
        return self.coordinator


def create_plugin(settings: Optional[HookSettings] = None, **kwargs) -> TroPlugin:
    """Build a TroPlugin with package logging configured from settings.

    This is the entry point for host adapters.
    """
    settings = settings if settings is not None else load_settings()
    configure_logging(settings.log_level, settings.log_structured)
    return TroPlugin(settings=settings, **kwargs)
