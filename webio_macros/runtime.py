"""
Bridge between a synchronous program start and an async driver.

Generated bootstraps call :func:`launch`; it is the only place where the
synchronous and asynchronous execution models meet. The driver itself
(``asyncio.run`` by default) is an external collaborator: any callable that
takes a coroutine and runs it to completion on the calling thread works.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from webio_macros.errors import MalformedEntrySignatureError, RuntimeDriverInitFailure

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "asyncio"

Driver = Callable[[Awaitable[Any]], Any]
EntryTarget = Union[Callable[[], Awaitable[Any]], Awaitable[Any]]


def _asyncio_driver() -> Driver:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run
    raise RuntimeError("an event loop is already running on this thread")


def resolve_driver(spec: str) -> Driver:
    """
    Resolve a driver specification.

    ``"asyncio"`` selects :func:`asyncio.run`; ``"package.module:attribute"``
    imports any other driver callable.

    Raises:
        RuntimeError, ImportError, AttributeError, TypeError: If the driver
            cannot be resolved. :func:`launch` turns these into an abort.
    """
    if spec == DEFAULT_DRIVER:
        return _asyncio_driver()
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"driver must be 'asyncio' or 'module:attribute', got {spec!r}")
    target: Any = importlib.import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise TypeError(f"{spec} is not callable")
    return target


def _abort(driver: str, exc: BaseException) -> RuntimeDriverInitFailure:
    failure = RuntimeDriverInitFailure(driver, f"{exc.__class__.__name__}: {exc}")
    logger.critical("%s", failure)
    return failure


def launch(entry: EntryTarget, *, driver: str = DEFAULT_DRIVER) -> Any:
    """
    Drive *entry* to completion on the calling thread and return its result.

    Args:
        entry: A zero-argument coroutine function or an already created coroutine.
        driver: Driver specification, see :func:`resolve_driver`.

    Raises:
        RuntimeDriverInitFailure: If the driver cannot be initialized, either
            while resolving it or inside the driver before the entry body
            starts. This is a ``SystemExit`` and aborts the program.
        MalformedEntrySignatureError: If *entry* does not produce an awaitable.
    """
    try:
        run = resolve_driver(driver)
    except Exception as exc:
        if inspect.iscoroutine(entry):
            entry.close()
        raise _abort(driver, exc) from exc

    awaitable = entry() if callable(entry) else entry
    if not inspect.isawaitable(awaitable):
        raise MalformedEntrySignatureError(
            f"Entry point returned {type(awaitable).__name__}, expected an awaitable",
            hint="Declare the entry point with 'async def'.",
        )

    started = False

    async def body() -> Any:
        nonlocal started
        started = True
        return await awaitable

    logger.debug("Launching entry point with driver %s", driver)
    main = body()
    try:
        return run(main)
    except Exception as exc:
        if started:
            raise
        # The driver failed before running anything.
        main.close()
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise _abort(driver, exc) from exc


__all__ = ["DEFAULT_DRIVER", "launch", "resolve_driver"]
