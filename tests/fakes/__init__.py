"""Test fakes for tag source testing."""

from tests.fakes.tag_source import FakeTagSource

__all__ = ["FakeTagSource"]
