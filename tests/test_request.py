"""
Unit tests for stl_analysis.analysis.request module.

Tests:
- Non-blocking poll before and after completion
- Exactly-once execution
- Error propagation from workers
- Shared thread pool
"""

import threading

import pytest

from stl_analysis.analysis.request import AnalysisRequest, shared_executor


class TestPoll:
    """Tests for poll and wait."""

    def test_pending_then_ready(self, executor):
        """None while the worker runs, then the value."""
        gate = threading.Event()
        request = AnalysisRequest.submit(lambda: gate.wait() and 42, executor=executor)

        assert request.poll() is None
        assert not request.done()
        gate.set()
        assert request.wait(timeout=5) == 42
        assert request.done()

    def test_value_is_stable(self, executor):
        """Every poll after completion returns the same object."""
        request = AnalysisRequest.submit(lambda: [1, 2, 3], executor=executor)
        first = request.wait(timeout=5)
        assert request.poll() is first
        assert request.poll() is first

    def test_wait_timeout_returns_none(self, executor):
        """A bounded wait on unfinished work gives None."""
        gate = threading.Event()
        request = AnalysisRequest.submit(gate.wait, executor=executor)
        try:
            assert request.wait(timeout=0.05) is None
        finally:
            gate.set()

    def test_work_runs_once(self, executor):
        """Polling never re-runs the computation."""
        calls = []

        def work():
            calls.append(1)
            return len(calls)

        request = AnalysisRequest.submit(work, executor=executor)
        request.wait(timeout=5)
        for _ in range(5):
            assert request.poll() == 1
        assert len(calls) == 1

    def test_visible_across_threads(self, executor):
        """Readers on other threads see the same result."""
        request = AnalysisRequest.submit(lambda: "mesh", executor=executor)
        request.wait(timeout=5)
        seen = []
        readers = [threading.Thread(target=lambda: seen.append(request.poll()))
                   for _ in range(4)]
        for thread in readers:
            thread.start()
        for thread in readers:
            thread.join()
        assert seen == ["mesh"] * 4


class TestErrors:
    """Tests for failing work."""

    def test_exception_reraised(self, executor):
        """A failing worker surfaces its error on poll."""
        def work():
            raise RuntimeError("boom")

        request = AnalysisRequest.submit(work, executor=executor)
        with pytest.raises(RuntimeError, match="boom"):
            request.wait(timeout=5)
        with pytest.raises(RuntimeError, match="boom"):
            request.poll()

    def test_failure_logged(self, executor, caplog):
        """The worker logs the failure with the request name."""
        def work():
            raise ValueError("bad soup")

        with caplog.at_level("DEBUG", logger="stl_analysis"):
            request = AnalysisRequest.submit(work, name="volume", executor=executor)
            with pytest.raises(ValueError):
                request.wait(timeout=5)

        assert any(r.getMessage().startswith("volume failed after") for r in caplog.records)


class TestNaming:
    """Tests for request labels."""

    def test_default_name_from_callable(self, executor):
        """Functions are labelled by their __name__."""
        def surface_area():
            return 6.0

        request = AnalysisRequest.submit(surface_area, executor=executor)
        assert request.name == "surface_area"

    def test_lambda_gets_generic_name(self, executor):
        """Lambdas are labelled "analysis" rather than "<lambda>"."""
        request = AnalysisRequest.submit(lambda: 1, executor=executor)
        assert request.name == "analysis"
        assert request.wait(timeout=5) == 1

    def test_repr(self, executor):
        """repr shows name and state."""
        request = AnalysisRequest.submit(lambda: 1, name="volume", executor=executor)
        request.wait(timeout=5)
        assert repr(request) == "<AnalysisRequest 'volume' done>"


class TestSharedExecutor:
    """Tests for the package thread pool."""

    def test_singleton(self):
        """Repeated calls return one pool."""
        assert shared_executor() is shared_executor()

    def test_default_executor_used(self):
        """Requests without an executor run on worker threads."""
        request = AnalysisRequest.submit(lambda: threading.current_thread().name)
        assert request.wait(timeout=5).startswith("stl-analysis")
