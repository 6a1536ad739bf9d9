"""
Test suite for the async driver bridge.

Tests cover:
- Running coroutine functions and coroutine objects to completion
- Custom driver specifications
- Driver initialization failures aborting the program
"""

import asyncio
import logging
import sys
import types

import pytest

from webio_macros.errors import MalformedEntrySignatureError, RuntimeDriverInitFailure
from webio_macros.runtime import launch, resolve_driver


async def answer():
    await asyncio.sleep(0)
    return 42


class TestLaunch:
    """Test launch() on a thread without a running loop."""

    def test_coroutine_function(self):
        assert launch(answer) == 42

    def test_coroutine_object(self):
        assert launch(answer()) == 42

    def test_custom_driver(self):
        assert launch(answer, driver="asyncio:run") == 42

    def test_entry_without_awaitable(self):
        with pytest.raises(MalformedEntrySignatureError):
            launch(lambda: 1)

    def test_exceptions_propagate(self):
        async def failing():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            launch(failing)


class TestResolveDriver:
    def test_asyncio(self):
        assert resolve_driver("asyncio") is asyncio.run

    def test_dotted_attribute(self):
        assert resolve_driver("asyncio:run") is asyncio.run

    def test_missing_separator(self):
        with pytest.raises(ValueError):
            resolve_driver("nonsense")


class TestDriverInitFailure:
    """A driver that cannot start aborts with RuntimeDriverInitFailure."""

    @pytest.mark.parametrize(
        "driver",
        [
            "webio_macros_no_such_module:run",
            "asyncio:does_not_exist",
            "asyncio:__name__",
            "nonsense",
        ],
    )
    def test_unusable_driver(self, driver):
        with pytest.raises(RuntimeDriverInitFailure) as exc_info:
            launch(answer, driver=driver)
        assert exc_info.value.code == 70
        assert exc_info.value.driver == driver

    def test_is_not_an_ordinary_error(self):
        assert issubclass(RuntimeDriverInitFailure, SystemExit)
        assert not issubclass(RuntimeDriverInitFailure, Exception)

    def test_loop_already_running(self):
        """The bootstrap cannot start a second loop on a thread that already runs one."""

        async def outer():
            try:
                launch(answer)
            except RuntimeDriverInitFailure as exc:
                return exc
            return None

        failure = asyncio.run(outer())
        assert isinstance(failure, RuntimeDriverInitFailure)
        assert "already running" in str(failure)

    def test_failure_is_logged(self, caplog):
        with caplog.at_level(logging.CRITICAL, logger="webio_macros"):
            with pytest.raises(RuntimeDriverInitFailure):
                launch(answer, driver="nonsense")
        assert any(record.levelno == logging.CRITICAL for record in caplog.records)
        assert "Failed to initialize async driver 'nonsense'" in caplog.text

    def test_pending_coroutine_is_closed(self):
        coroutine = answer()
        with pytest.raises(RuntimeDriverInitFailure):
            launch(coroutine, driver="nonsense")
        assert coroutine.cr_frame is None


class TestDriverStartup:
    """A custom driver failing before it runs the entry aborts like a failed import."""

    @pytest.fixture
    def drivers(self, monkeypatch):
        module = types.ModuleType("webio_test_drivers")

        def broken(awaitable):
            raise RuntimeError("no reactor available")

        module.broken = broken
        module.plain = asyncio.run
        monkeypatch.setitem(sys.modules, "webio_test_drivers", module)
        return module

    def test_setup_failure_aborts(self, drivers):
        coroutine = answer()
        with pytest.raises(RuntimeDriverInitFailure) as exc_info:
            launch(coroutine, driver="webio_test_drivers:broken")
        assert "no reactor available" in str(exc_info.value)
        assert coroutine.cr_frame is None

    def test_body_failure_is_not_an_abort(self, drivers):
        async def failing():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            launch(failing, driver="webio_test_drivers:plain")
