from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _detach_event_sink():
    """Keep the module-level event sink from leaking between tests."""
    from quotegrid.logging.events import reset_sink

    reset_sink()
    yield
    reset_sink()
