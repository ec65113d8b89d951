from __future__ import annotations

from auditplan.audits.audit import Audit


class DocumentTitle(Audit):
    meta = {
        "name": "document-title",
        "description": "Document has a `<title>` element",
        "failure_description": "Document doesn't have a `<title>` element",
        "help_text": "The title gives screen reader users an overview of the page.",
        "required_artifacts": ["MetaDescription"],
        "score_display_mode": Audit.SCORING_MODES["BINARY"],
    }

    @classmethod
    def default_options(cls):
        return {"min_length": 1}

    @classmethod
    def audit(cls, artifacts, context):
        options = context.get("options") or cls.default_options()
        title = artifacts["MetaDescription"] or ""
        return cls.binary_result(len(title.strip()) >= int(options["min_length"]))
