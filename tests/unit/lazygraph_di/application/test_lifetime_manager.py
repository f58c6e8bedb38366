"""Unit tests for LifetimeManager."""

from lazygraph_di.application.lifetime_manager import LifetimeManager


class TestLifetimeManagerInitialization:
    """Test cases for LifetimeManager initialization."""

    def test_manager_initialization(self):
        """Test that manager initializes with empty state."""
        manager = LifetimeManager()

        assert manager.get_singleton_cache() == {}
        assert manager.initialized_keys() == set()

    def test_seeded_state_is_copied(self):
        """Test that seed values are copied, never aliased."""
        cache = {"db": "connection"}
        initialized = {"db"}

        manager = LifetimeManager(cache, initialized)
        cache["other"] = 1
        initialized.add("other")

        assert manager.get_singleton_cache() == {"db": "connection"}
        assert manager.initialized_keys() == {"db"}


class TestSingletonCache:
    """Test cases for singleton caching."""

    def test_store_and_get(self):
        """Test that stored values are returned."""
        manager = LifetimeManager()
        instance = object()

        manager.store("db", instance)

        assert manager.has("db")
        assert manager.get("db") is instance

    def test_cache_keeps_resolution_order(self):
        """Test that the cache preserves first-resolution order."""
        manager = LifetimeManager()

        manager.store("config", 1)
        manager.store("db", 2)
        manager.store("api", 3)

        assert manager.resolved_keys() == ["config", "db", "api"]

    def test_restore_moves_key_to_end(self):
        """Test that a re-resolved key moves to the end."""
        manager = LifetimeManager()
        manager.store("config", 1)
        manager.store("db", 2)

        manager.store("config", 3)

        assert manager.resolved_keys() == ["db", "config"]
        assert manager.get("config") == 3

    def test_cache_copy_is_independent(self):
        """Test that get_singleton_cache returns a copy."""
        manager = LifetimeManager()
        manager.store("db", 1)

        manager.get_singleton_cache()["other"] = 2

        assert not manager.has("other")

    def test_evict(self):
        """Test that evict removes only the given keys."""
        manager = LifetimeManager()
        manager.store("db", 1)
        manager.store("cache", 2)

        manager.evict("db", "missing")

        assert manager.resolved_keys() == ["cache"]


class TestInitMarkers:
    """Test cases for init-completed markers."""

    def test_mark_and_clear(self):
        """Test that markers can be set and cleared per key."""
        manager = LifetimeManager()

        manager.mark_initialized("db")
        manager.mark_initialized("cache")
        manager.clear_initialized("db")

        assert not manager.is_initialized("db")
        assert manager.is_initialized("cache")

    def test_clear_cache_resets_markers(self):
        """Test that clear_cache forgets values and markers."""
        manager = LifetimeManager()
        manager.store("db", 1)
        manager.mark_initialized("db")

        manager.clear_cache()

        assert not manager.has("db")
        assert not manager.is_initialized("db")
