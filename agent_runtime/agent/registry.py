"""Run handles and the registry of in-flight runs.

Cancellation is cooperative: cancelling a handle only sets a flag, which the
run loop checks between its steps.
"""

import logging
import uuid

from agent_runtime.agent.errors import InvalidConfigurationError, RunCancelledError

logger = logging.getLogger(__name__)


class RunHandle:
    """Cancellation flag for a single run."""

    def __init__(self, run_id: str | None = None) -> None:
        self.run_id = run_id or uuid.uuid4().hex
        self._cancelled = False

    def __repr__(self) -> str:
        return f"RunHandle(run_id={self.run_id!r}, cancelled={self._cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        """Raise RunCancelledError if cancellation was requested."""
        if self._cancelled:
            raise RunCancelledError(self.run_id)


class RunRegistry:
    """Registry of active runs, keyed by run id."""

    def __init__(self) -> None:
        self._handles: dict[str, RunHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, run_id: object) -> bool:
        return run_id in self._handles

    @property
    def active_run_ids(self) -> list[str]:
        return list(self._handles)

    def register(self, handle: RunHandle) -> None:
        """Add a run.

        Raises:
            InvalidConfigurationError: Another active run already uses the id
        """
        current = self._handles.get(handle.run_id)
        if current is not None and current is not handle:
            raise InvalidConfigurationError(f"Run id '{handle.run_id}' is already active")
        self._handles[handle.run_id] = handle

    def unregister(self, run_id: str, handle: RunHandle | None = None) -> RunHandle | None:
        """Remove a run.

        With ``handle`` the entry is only removed while it still belongs to that
        handle, so a finished run never drops a newer run registered under the
        same id.
        """
        current = self._handles.get(run_id)
        if current is None or (handle is not None and current is not handle):
            return None
        return self._handles.pop(run_id)

    def get(self, run_id: str) -> RunHandle | None:
        return self._handles.get(run_id)

    def cancel(self, run_id: str) -> bool:
        """Cancel one run.

        Returns:
            True if the run was registered
        """
        handle = self._handles.get(run_id)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every registered run and clear the registry.

        Returns:
            Number of runs cancelled
        """
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            handle.cancel()
        if handles:
            logger.info("Cancelled %d active run(s)", len(handles))
        return len(handles)
