from __future__ import annotations

import pytest

from lifelog_fakes import FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
