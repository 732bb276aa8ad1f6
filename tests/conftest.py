"""Shared test fixtures."""

import pytest

from sqlcourier.scratch import ScratchSpace


@pytest.fixture
def scratch(tmp_path):
    """Create a ScratchSpace rooted in a temporary directory."""
    ScratchSpace._reset()
    s = ScratchSpace(root=tmp_path / "scratch")
    ScratchSpace._instance = s
    yield s
    ScratchSpace._reset()
