from __future__ import annotations

from typing import Any, Dict

import pytest

from tests._fixtures.design_builder import DesignBuilder, login_design


@pytest.fixture
def design_builder() -> DesignBuilder:
    """Provide an empty design builder."""
    return DesignBuilder()


@pytest.fixture
def login_payload() -> Dict[str, Any]:
    """Design spec, prototype data and context for a one-button login screen."""
    return login_design()
