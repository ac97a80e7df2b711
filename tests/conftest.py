"""
Pytest configuration and shared fixtures.

Provides:
- Test environment variables (set before the app is imported)
- AnyIO backend selection for @pytest.mark.anyio tests
- FastAPI TestClient
- Sample SOPs in model form and in the editor's camelCase JSON form

Model builders live in tests/factories.py.
"""

from __future__ import annotations

import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("OBSERVABILITY_STRUCTURED_LOGS", "false")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")
os.environ.pop("S1_STRICT_OPERATORS", None)
os.environ.pop("S1_GRAMMAR", None)

import pytest  # noqa: E402 (import after env setup)
from fastapi.testclient import TestClient  # noqa: E402 (import after env setup)

from sop_script.domain.models import SOP  # noqa: E402 (import after env setup)
from sop_script.main import create_app  # noqa: E402 (import after env setup)
from tests.factories import make_action, make_condition, make_rule  # noqa: E402

FIXED_TIME = datetime(2026, 3, 14, 15, 9, 26, 535000, tzinfo=UTC)


# Per AnyIO testing docs: https://anyio.readthedocs.io/en/stable/testing.html
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def client() -> TestClient:
    """TestClient over a freshly created app."""
    return TestClient(create_app())


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def support_sop() -> SOP:
    """A two-rule SOP resembling what the editor produces."""
    return SOP(
        id="sop-1",
        name="Support Triage",
        version="1.2.0",
        rules=[
            make_rule(
                "Refund requests",
                description="Route refund questions to billing",
                conditions=[
                    make_condition("message.content", "contains", "refund"),
                    make_condition("user.tier", "equals", "gold"),
                ],
                then_actions=[
                    make_action("respond", template="refund_ack"),
                    make_action("escalate", to="billing", priority=2),
                ],
                else_actions=[make_action("log", level="info")],
                order=1,
            ),
            make_rule(
                "Angry customers",
                trigger="event",
                conditions=[make_condition("context.sentiment", "less_than", -0.5)],
                then_actions=[make_action("notify", channel="#support", mention=["@oncall"])],
                order=2,
            ),
        ],
    )


@pytest.fixture
def editor_payload() -> dict[str, Any]:
    """An SOP as the editor sends it: camelCase keys, string condition values."""
    return {
        "id": "sop-42",
        "name": "Greeting",
        "version": "0.1.0",
        "status": "draft",
        "tags": ["onboarding"],
        "rules": [
            {
                "id": "rule-1",
                "name": "Welcome",
                "trigger": {"type": "message", "config": {}},
                "conditions": [
                    {
                        "id": "cond-1",
                        "field": "message.isFirst",
                        "operator": "equals",
                        "value": "true",
                    }
                ],
                "thenActions": [
                    {"id": "action-1", "type": "respond", "config": {"template": "welcome"}}
                ],
                "enabled": True,
                "order": 1,
            }
        ],
    }
