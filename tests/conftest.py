from __future__ import annotations

import copy
from typing import Any

import pytest

_BASE_CONFIG: dict[str, Any] = {
    "passes": [
        {
            "passName": "defaultPass",
            "recordTrace": True,
            "gatherers": ["viewport-dimensions", "accessibility", "chrome-console-messages"],
        },
        {"passName": "redirectPass", "gatherers": ["http-redirect"]},
    ],
    "audits": [
        "metrics/first-contentful-paint",
        "viewport",
        "accessibility/color-contrast",
        "manual/logical-tab-order",
        "errors-in-console",
        "redirects-http",
        "seo/meta-description",
    ],
    "groups": {"a11y": {"title": "Contrast"}},
    "categories": {
        "performance": {
            "title": "Performance",
            "auditRefs": [
                {"id": "first-contentful-paint", "weight": 1},
                {"id": "viewport", "weight": 1},
            ],
        },
        "accessibility": {
            "title": "Accessibility",
            "auditRefs": [
                {"id": "color-contrast", "weight": 1, "group": "a11y"},
                {"id": "logical-tab-order", "weight": 0},
            ],
        },
        "best-practices": {
            "title": "Best Practices",
            "auditRefs": [
                {"id": "errors-in-console", "weight": 1},
                {"id": "redirects-http", "weight": 1},
            ],
        },
    },
}


@pytest.fixture
def base_config() -> dict[str, Any]:
    """Two passes, seven audits and three categories built from builtins."""
    return copy.deepcopy(_BASE_CONFIG)
