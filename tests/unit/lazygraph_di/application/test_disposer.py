"""Unit tests for Disposer."""

import pytest

from lazygraph_di.application import Disposer, Resolver, build_registry
from lazygraph_di.domain import AggregateError, transient


class Resource:
    """Service recording its teardown into a shared list."""

    def __init__(self, name, log, error=None):
        self.name = name
        self.log = log
        self.error = error

    def on_destroy(self):
        self.log.append(self.name)
        if self.error is not None:
            raise self.error


class AsyncResource(Resource):
    async def on_destroy(self):
        super().on_destroy()


def make_disposer(factories):
    resolver = Resolver(build_registry(factories))
    return resolver, Disposer(resolver)


class TestDisposeOrder:
    """Test cases for teardown ordering."""

    @pytest.mark.asyncio
    async def test_reverse_resolution_order(self):
        """Test that the last resolved value is destroyed first."""
        log = []
        resolver, disposer = make_disposer(
            {
                "config": lambda c: Resource("config", log),
                "db": lambda c: (c.config, AsyncResource("db", log))[1],
                "api": lambda c: (c.db, Resource("api", log))[1],
            }
        )
        resolver.resolve("api")

        await disposer.dispose()

        assert log == ["api", "db", "config"]

    @pytest.mark.asyncio
    async def test_only_resolved_values_are_destroyed(self):
        """Test that unresolved keys are never built by dispose."""
        log = []
        resolver, disposer = make_disposer(
            {"db": lambda c: Resource("db", log), "cache": lambda c: Resource("cache", log)}
        )
        resolver.resolve("cache")

        await disposer.dispose()

        assert log == ["cache"]

    @pytest.mark.asyncio
    async def test_transients_are_not_destroyed(self):
        """Test that uncached transient values are not tracked."""
        log = []
        resolver, disposer = make_disposer({"handler": transient(lambda c: Resource("handler", log))})
        resolver.resolve("handler")

        await disposer.dispose()

        assert log == []

    @pytest.mark.asyncio
    async def test_state_is_cleared(self):
        """Test that dispose resets the resolver."""
        resolver, disposer = make_disposer(
            {"t": transient(lambda c: 1), "s": lambda c: c.t + 1, "plain": lambda c: "value"}
        )
        resolver.resolve("s")
        resolver.resolve("plain")

        await disposer.dispose()

        assert resolver.get_cache() == {}
        assert resolver.get_dependency_graph() == {}
        assert resolver.get_warnings() == []

    @pytest.mark.asyncio
    async def test_dispose_twice_is_harmless(self):
        """Test that a second dispose has nothing to do."""
        log = []
        resolver, disposer = make_disposer({"db": lambda c: Resource("db", log)})
        resolver.resolve("db")

        await disposer.dispose()
        await disposer.dispose()

        assert log == ["db"]


class TestDisposeFailures:
    """Test cases for teardown failures."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_teardown(self):
        """Test that values resolved earlier are still destroyed after a failure."""
        log = []
        error = RuntimeError("close failed")
        resolver, disposer = make_disposer(
            {
                "first": lambda c: Resource("first", log),
                "second": lambda c: Resource("second", log, error),
            }
        )
        resolver.resolve("first")
        resolver.resolve("second")

        with pytest.raises(RuntimeError) as exc_info:
            await disposer.dispose()

        assert exc_info.value is error
        assert log == ["second", "first"]
        assert resolver.get_cache() == {}

    @pytest.mark.asyncio
    async def test_first_resolved_failing_still_runs_others(self):
        """Test that a failure of the last teardown is reported after the rest ran."""
        log = []
        resolver, disposer = make_disposer(
            {
                "first": lambda c: AsyncResource("first", log, ValueError("first failed")),
                "second": lambda c: Resource("second", log),
            }
        )
        resolver.resolve("first")
        resolver.resolve("second")

        with pytest.raises(ValueError) as exc_info:
            await disposer.dispose()

        assert log == ["second", "first"]
        assert any("on_destroy() of 'first'" in note for note in exc_info.value.__notes__)

    @pytest.mark.asyncio
    async def test_several_failures_are_aggregated(self):
        """Test that several failures raise one AggregateError."""
        log = []
        resolver, disposer = make_disposer(
            {
                "first": lambda c: Resource("first", log, ValueError("first failed")),
                "second": lambda c: AsyncResource("second", log, RuntimeError("second failed")),
            }
        )
        resolver.resolve("first")
        resolver.resolve("second")

        with pytest.raises(AggregateError) as exc_info:
            await disposer.dispose()

        assert "dispose() encountered 2 errors" in str(exc_info.value)
        assert [str(error) for error in exc_info.value.exceptions] == ["second failed", "first failed"]
        assert exc_info.value.keys == ["second", "first"]
