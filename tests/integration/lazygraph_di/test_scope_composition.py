"""Integration tests for scope() and extend() composition."""

import pytest

from lazygraph_di import Container, DuplicateKeyError, ScopeMismatchWarning, transient


class Counter:
    created = 0

    def __init__(self):
        Counter.created += 1
        self.id = Counter.created


class TestScopes:
    """Test request-style child containers."""

    def test_nested_scopes(self):
        """Test that grandchildren resolve through the whole chain."""
        root = Container({"config": lambda c: {"env": "test"}}, name="root")
        tenant = root.scope({"tenant": lambda c: f"acme-{c.config['env']}"}, name="tenant")
        request = tenant.scope({"request": lambda c: (c.tenant, c.config)}, name="request")

        tenant_name, config = request.request

        assert tenant_name == "acme-test"
        assert config is root.config
        assert request.registered_keys == ["request", "tenant", "config"]

    def test_scope_does_not_modify_parent(self):
        """Test that resolving in a scope leaves parent state unchanged."""
        root = Container({"config": lambda c: Counter()})
        scoped = root.scope({"handler": lambda c: c.config})

        scoped.handler

        assert root.dependency_graph == {"config": []}
        assert "handler" not in root
        assert not root.is_resolved("handler")

    def test_sibling_scopes_are_isolated(self):
        """Test that two scopes never share their own values."""
        root = Container({"config": lambda c: Counter()})
        first = root.scope({"session": lambda c: Counter()})
        second = root.scope({"session": lambda c: Counter()})

        assert first.session is not second.session
        assert first.config is second.config

    def test_shadowing_in_scope(self):
        """Test that a scope can replace a parent provider for its dependents."""
        root = Container({"clock": lambda c: "real-clock", "report": lambda c: f"report@{c.clock}"})
        scoped = root.scope({"clock": lambda c: "fake-clock", "view": lambda c: c.clock})

        assert scoped.view == "fake-clock"
        # report is registered on the root, so it resolves there with the root's clock.
        assert scoped.report == "report@real-clock"

    def test_scope_mismatch_across_scopes(self):
        """Test that a scope singleton capturing a parent transient is reported."""
        root = Container({"request_id": transient(lambda c: Counter())})
        scoped = root.scope({"handler": lambda c: c.request_id})

        scoped.handler

        assert scoped.warnings == [ScopeMismatchWarning(singleton="handler", transient="request_id")]
        assert root.warnings == []


class TestExtend:
    """Test independent container copies."""

    def test_extend_reuses_resolved_singletons(self):
        """Test that extend does not rebuild what was already resolved."""
        base = Container({"db": lambda c: Counter()})
        db = base.db

        extended = base.extend({"repo": lambda c: c.db})

        assert extended.repo is db

    def test_extend_does_not_modify_source(self):
        """Test that neither container sees the other's later resolutions."""
        base = Container({"db": lambda c: Counter(), "cache": lambda c: Counter()})
        extended = base.extend({"repo": lambda c: c.db})

        extended.repo
        base.cache

        assert base.registered_keys == ["db", "cache"]
        assert not base.is_resolved("db")
        assert not extended.is_resolved("cache")
        assert base.db is not extended.db

    def test_extend_overrides(self):
        """Test that later modules win over existing providers."""
        base = Container({"storage": lambda c: "s3", "uploader": lambda c: f"upload->{c.storage}"})

        extended = base.extend({"storage": lambda c: "local"})

        assert extended.uploader == "upload->local"
        assert base.uploader == "upload->s3"

    def test_extend_duplicate_modules(self):
        """Test that two new modules may not define the same key."""
        base = Container({"db": lambda c: 1})

        with pytest.raises(DuplicateKeyError):
            base.extend({"cache": lambda c: 1}, {"cache": lambda c: 2})

    def test_extend_scope(self):
        """Test that extending a scope produces a flat, independent container."""
        root = Container({"config": lambda c: Counter()})
        config = root.config
        scoped = root.scope({"handler": lambda c: c.config})

        extended = scoped.extend({"extra": lambda c: c.handler})

        assert extended.extra is config
        assert extended.registered_keys == ["config", "handler", "extra"]
        assert not scoped.is_resolved("handler")
