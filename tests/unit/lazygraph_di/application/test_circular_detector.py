"""Unit tests for CircularDependencyDetector."""

from lazygraph_di.application.circular_detector import CircularDependencyDetector


class TestCircularDependencyDetector:
    """Test cases for the resolving-set bookkeeping."""

    def test_initially_empty(self):
        """Test that no key is being resolved at first."""
        detector = CircularDependencyDetector()

        assert not detector.is_resolving("db")

    def test_enter_and_leave(self):
        """Test that enter marks a key and leave unmarks it."""
        detector = CircularDependencyDetector()

        detector.enter("db")
        assert detector.is_resolving("db")

        detector.leave("db")
        assert not detector.is_resolving("db")

    def test_leave_unknown_key_is_harmless(self):
        """Test that leaving a key that was never entered does not raise."""
        detector = CircularDependencyDetector()

        detector.leave("db")

        assert not detector.is_resolving("db")

    def test_keys_are_independent(self):
        """Test that several keys can be in flight at once."""
        detector = CircularDependencyDetector()

        detector.enter("api")
        detector.enter("db")
        detector.leave("db")

        assert detector.is_resolving("api")
        assert not detector.is_resolving("db")

    def test_clear(self):
        """Test that clear forgets every key."""
        detector = CircularDependencyDetector()
        detector.enter("a")
        detector.enter("b")

        detector.clear()

        assert not detector.is_resolving("a")
        assert not detector.is_resolving("b")
