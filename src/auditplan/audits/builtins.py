from __future__ import annotations

from typing import Any, Mapping

from auditplan.audits.audit import Audit

_BINARY = Audit.SCORING_MODES["BINARY"]
_MANUAL = Audit.SCORING_MODES["MANUAL"]
_NUMERIC = Audit.SCORING_MODES["NUMERIC"]


class Viewport(Audit):
    meta = {
        "name": "viewport",
        "description": "Has a `<meta name=\"viewport\">` tag with `width` or `initial-scale`",
        "failure_description": "Does not have a `<meta name=\"viewport\">` tag with `width` or `initial-scale`",
        "help_text": "Add a viewport meta tag to optimize the page for mobile screens.",
        "required_artifacts": ["ViewportDimensions"],
        "score_display_mode": _BINARY,
    }

    @classmethod
    def audit(cls, artifacts, context):
        content = (artifacts["ViewportDimensions"] or {}).get("metaViewport") or ""
        return cls.binary_result("width=" in content or "initial-scale" in content)


class ErrorsInConsole(Audit):
    meta = {
        "name": "errors-in-console",
        "description": "No browser errors logged to the console",
        "failure_description": "Browser errors were logged to the console",
        "help_text": "Errors logged to the console indicate unresolved problems.",
        "required_artifacts": ["ChromeConsoleMessages"],
        "score_display_mode": _BINARY,
    }

    @classmethod
    def audit(cls, artifacts, context):
        errors = [
            entry
            for entry in artifacts["ChromeConsoleMessages"] or []
            if entry.get("level") == "error"
        ]
        return cls.binary_result(not errors, details={"items": errors})


class RedirectsHTTP(Audit):
    meta = {
        "name": "redirects-http",
        "description": "Redirects HTTP traffic to HTTPS",
        "failure_description": "Does not redirect HTTP traffic to HTTPS",
        "help_text": "Make sure that you redirect all HTTP traffic to HTTPS.",
        "required_artifacts": ["HTTPRedirect"],
        "score_display_mode": _BINARY,
    }

    @classmethod
    def audit(cls, artifacts, context):
        return cls.binary_result(bool((artifacts["HTTPRedirect"] or {}).get("value")))


class ColorContrast(Audit):
    meta = {
        "name": "color-contrast",
        "description": "Background and foreground colors have a sufficient contrast ratio",
        "failure_description": "Background and foreground colors do not have a sufficient contrast ratio.",
        "help_text": "Low-contrast text is difficult or impossible for many users to read.",
        "required_artifacts": ["Accessibility"],
        "score_display_mode": _BINARY,
    }

    @classmethod
    def audit(cls, artifacts, context):
        violations = (artifacts["Accessibility"] or {}).get("violations", [])
        failing = [item for item in violations if item.get("id") == cls.meta["name"]]
        return cls.binary_result(not failing, details={"items": failing})


class LogicalTabOrder(Audit):
    meta = {
        "name": "logical-tab-order",
        "description": "The page has a logical tab order",
        "help_text": "Tabbing through the page follows the visual layout.",
        "required_artifacts": [],
        "score_display_mode": _MANUAL,
    }

    @classmethod
    def audit(cls, artifacts, context):
        return {"score": 0}


class FirstContentfulPaint(Audit):
    meta = {
        "name": "first-contentful-paint",
        "description": "First Contentful Paint",
        "help_text": "First Contentful Paint marks the time at which the first text or image is painted.",
        "required_artifacts": ["traces"],
        "score_display_mode": _NUMERIC,
    }

    @classmethod
    def default_options(cls) -> dict[str, Any]:
        return {"score_median": 4000, "score_podr": 1600}

    @classmethod
    def audit(cls, artifacts, context):
        trace = artifacts["traces"].get(context.get("pass_name", "defaultPass"), {})
        fcp_ms = trace.get("first_contentful_paint_ms")
        if fcp_ms is None:
            return {"score": None, "error": "no first contentful paint in trace"}
        options: Mapping[str, Any] = context.get("options") or cls.default_options()
        median = float(options.get("score_median", 4000))
        score = max(0.0, min(1.0, 1 - (float(fcp_ms) - median / 2) / median))
        return {"score": round(score, 2), "raw_value": fcp_ms}


class MetaDescription(Audit):
    meta = {
        "name": "meta-description",
        "description": "Document has a meta description",
        "failure_description": "Document does not have a meta description",
        "help_text": "Meta descriptions may be included in search results.",
        "required_artifacts": ["MetaDescription"],
        "score_display_mode": _BINARY,
    }

    @classmethod
    def audit(cls, artifacts, context):
        content = artifacts["MetaDescription"]
        return cls.binary_result(isinstance(content, str) and bool(content.strip()))


class InstallableManifest(Audit):
    meta = {
        "name": "installable-manifest",
        "description": "Web app manifest meets the installability requirements",
        "failure_description": "Web app manifest does not meet the installability requirements",
        "help_text": "Browsers can prompt users to add an installable app to their homescreen.",
        "required_artifacts": ["Manifest"],
        "score_display_mode": _BINARY,
    }

    @classmethod
    def audit(cls, artifacts, context):
        manifest = artifacts["Manifest"] or {}
        missing = [key for key in ("name", "start_url", "icons") if not manifest.get(key)]
        return cls.binary_result(not missing, details={"missing": missing})


class PWACrossBrowser(Audit):
    meta = {
        "name": "pwa-cross-browser",
        "description": "Site works cross-browser",
        "help_text": "Check that the site works in every major browser.",
        "required_artifacts": [],
        "score_display_mode": _MANUAL,
    }

    @classmethod
    def audit(cls, artifacts, context):
        return {"score": 0}


BUILTIN_AUDITS: dict[str, type[Audit]] = {
    "viewport": Viewport,
    "errors-in-console": ErrorsInConsole,
    "redirects-http": RedirectsHTTP,
    "accessibility/color-contrast": ColorContrast,
    "manual/logical-tab-order": LogicalTabOrder,
    "metrics/first-contentful-paint": FirstContentfulPaint,
    "seo/meta-description": MetaDescription,
    "installable-manifest": InstallableManifest,
    "manual/pwa-cross-browser": PWACrossBrowser,
}
