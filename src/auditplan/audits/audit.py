from __future__ import annotations

from typing import Any, ClassVar, Mapping


class Audit:
    """Base class for audits.

    Subclasses declare a ``meta`` mapping and override :meth:`audit`.
    ``meta`` keys:

    - ``name``: unique audit id referenced from categories
    - ``description``: short title shown when the audit passes
    - ``failure_description``: title shown when a binary audit fails
    - ``help_text``: longer explanation for reports
    - ``required_artifacts``: artifact names the audit consumes
    - ``score_display_mode``: one of :attr:`SCORING_MODES`
    """

    SCORING_MODES: ClassVar[dict[str, str]] = {
        "NUMERIC": "numeric",
        "BINARY": "binary",
        "MANUAL": "manual",
        "INFORMATIVE": "informative",
        "NOT_APPLICABLE": "not-applicable",
        "ERROR": "error",
    }

    meta: ClassVar[dict[str, Any]] = {}

    @classmethod
    def default_options(cls) -> dict[str, Any]:
        return {}

    @classmethod
    def audit(cls, artifacts: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
        raise NotImplementedError("audit() must be overridden")

    @classmethod
    def binary_result(cls, passed: bool, **details: Any) -> dict[str, Any]:
        return {"score": 1 if passed else 0, **details}
