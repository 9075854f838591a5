"""
Coordinated process shutdown.

The ShutdownCoordinator owns the process-wide shutdown state. Termination
signals (SIGTERM, SIGINT) and fatal faults (uncaught exceptions in any
thread, exceptions nobody retrieved from asyncio tasks) all route through
one idempotent ``trigger``. The first trigger runs the registered cleanup
resources one at a time, in registration order, racing a deadline timer:

- every resource completes first   -> timer cancelled, exit 0
- a resource fails                 -> logged, remaining skipped, exit 1
- the deadline fires first         -> cleanup cancelled, exit 1
"""

import asyncio
import inspect
import logging
import os
import signal
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_SECONDS = 20.0
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownPhase(Enum):
    """Phases of the shutdown process."""

    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class ShutdownResource(Protocol):
    """Anything exposing a no-argument ``shutdown`` (sync or async)."""

    def shutdown(self) -> Union[None, Awaitable[None]]:
        ...


@dataclass
class CallbackResource:
    """Adapt a plain callable into a shutdown resource."""

    name: str
    callback: Callable[[], Union[None, Awaitable[None]]]

    def shutdown(self) -> Union[None, Awaitable[None]]:
        return self.callback()


def _resource_name(resource: Any) -> str:
    name = getattr(resource, "name", None)
    return name if isinstance(name, str) and name else type(resource).__name__


def terminate_process(code: int) -> None:
    """Flush log handlers and exit immediately with ``code``."""
    logging.shutdown()
    os._exit(code)


class ShutdownCoordinator:
    """Drive an ordered, deadline-bounded cleanup before process exit.

    Args:
        deadline: Seconds after the first trigger before exit is forced.
        exit_func: Called exactly once with the exit code.
    """

    def __init__(
        self,
        deadline: float = DEFAULT_DEADLINE_SECONDS,
        exit_func: Callable[[int], Any] = terminate_process,
    ) -> None:
        self.deadline = deadline
        self._exit_func = exit_func
        self._phase = ShutdownPhase.RUNNING
        self._resources: list[Any] = []
        self._phase_lock = threading.Lock()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._terminated = asyncio.Event()
        self.exit_code: Optional[int] = None

        self._installed_signals: list[signal.Signals] = []
        self._previous_excepthook: Optional[Callable[..., Any]] = None
        self._previous_threading_excepthook: Optional[Callable[..., Any]] = None
        self._previous_loop_handler: Optional[Callable[..., Any]] = None

    @property
    def phase(self) -> ShutdownPhase:
        return self._phase

    @property
    def is_draining(self) -> bool:
        return self._phase is ShutdownPhase.DRAINING

    @property
    def resources(self) -> tuple[Any, ...]:
        return tuple(self._resources)

    def register(self, resource: ShutdownResource) -> None:
        """Register a resource to be shut down, after those already registered.

        Raises:
            TypeError: ``resource`` has no callable ``shutdown``.
            RuntimeError: shutdown has already been triggered.
        """
        if not callable(getattr(resource, "shutdown", None)):
            raise TypeError(f"{resource!r} does not expose a shutdown() method")
        if self._phase is not ShutdownPhase.RUNNING:
            raise RuntimeError("Cannot register resources after shutdown started")
        self._resources.append(resource)
        logger.debug("Registered shutdown resource: %s", _resource_name(resource))

    # ── Hooks ────────────────────────────────────────────────────────

    def install(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        signals: tuple[signal.Signals, ...] = SHUTDOWN_SIGNALS,
        fault_hooks: bool = True,
    ) -> None:
        """Bind to ``loop`` and route signals and fatal faults to ``trigger``."""
        self._loop = loop or asyncio.get_running_loop()

        for sig in signals:
            try:
                self._loop.add_signal_handler(sig, self.trigger, sig.name)
                self._installed_signals.append(sig)
            except (ValueError, RuntimeError, NotImplementedError) as exc:
                logger.warning("Could not register handler for %s: %s", sig.name, exc)

        if fault_hooks:
            self._previous_excepthook = sys.excepthook
            sys.excepthook = self._on_uncaught_exception
            self._previous_threading_excepthook = threading.excepthook
            threading.excepthook = self._on_thread_exception
            self._previous_loop_handler = self._loop.get_exception_handler()
            self._loop.set_exception_handler(self._on_loop_exception)

    def uninstall(self) -> None:
        """Remove signal handlers and restore the previous fault hooks."""
        fault_hooks = self._previous_excepthook is not None
        if self._loop is not None and not self._loop.is_closed():
            for sig in self._installed_signals:
                self._loop.remove_signal_handler(sig)
            if fault_hooks:
                self._loop.set_exception_handler(self._previous_loop_handler)
        self._installed_signals.clear()

        if fault_hooks:
            sys.excepthook = self._previous_excepthook
            threading.excepthook = self._previous_threading_excepthook
            self._previous_excepthook = None
            self._previous_threading_excepthook = None
            self._previous_loop_handler = None

    def _on_uncaught_exception(self, exc_type, exc_value, exc_tb) -> None:
        logger.error(
            "[uncaughtException] %r", exc_value, exc_info=(exc_type, exc_value, exc_tb)
        )
        self.trigger("uncaughtException")

    def _on_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        logger.error(
            "[uncaughtException] %r in thread %s",
            args.exc_value,
            args.thread.name if args.thread else "?",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        self.trigger("uncaughtException")

    def _on_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exc = context.get("exception")
        if exc is None:
            loop.default_exception_handler(context)
            return
        logger.error(
            "[unhandledRejection] %r", exc, exc_info=exc
        )
        self.trigger("unhandledRejection")

    # ── Shutdown sequence ────────────────────────────────────────────

    def trigger(self, reason: str) -> None:
        """Start shutdown. Calls after the first are ignored.

        Safe to call from signal handlers, fault hooks and other threads.
        """
        with self._phase_lock:
            if self._phase is not ShutdownPhase.RUNNING:
                logger.debug("Shutdown already in progress, ignoring %s", reason)
                return
            self._phase = ShutdownPhase.DRAINING

        logger.info("Received %s, shutting down...", reason)

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.error("No event loop bound, exiting without cleanup")
            self._finish(1)
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._begin_drain()
        else:
            loop.call_soon_threadsafe(self._begin_drain)

    def _begin_drain(self) -> None:
        assert self._loop is not None
        self._timer = self._loop.call_later(self.deadline, self._force_exit)
        self._task = self._loop.create_task(self._drain())

    async def _drain(self) -> None:
        for resource in self._resources:
            name = _resource_name(resource)
            logger.info("Shutting down %s", name)
            try:
                if inspect.iscoroutinefunction(resource.shutdown):
                    await resource.shutdown()
                else:
                    # blocking cleanups run off-loop so the deadline can still fire
                    result = await asyncio.to_thread(resource.shutdown)
                    if inspect.isawaitable(result):
                        await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Shutdown error in %s", name)
                self._cancel_timer()
                self._finish(1)
                return
            logger.info("%s shutdown completed", name)

        self._cancel_timer()
        logger.info("Graceful shutdown completed")
        self._finish(0)

    def _force_exit(self) -> None:
        self._timer = None
        if self._phase is ShutdownPhase.TERMINATED:
            return
        logger.error("Force exit: shutdown timeout after %.1fs", self.deadline)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._finish(1)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _finish(self, code: int) -> None:
        with self._phase_lock:
            if self._phase is ShutdownPhase.TERMINATED:
                return
            self._phase = ShutdownPhase.TERMINATED
        self.exit_code = code
        self._terminated.set()
        self._exit_func(code)

    async def wait_terminated(self) -> int:
        """Wait until the coordinator has reached TERMINATED; return the exit code."""
        await self._terminated.wait()
        assert self.exit_code is not None
        return self.exit_code
