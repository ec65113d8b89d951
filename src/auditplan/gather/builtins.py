from __future__ import annotations

from typing import Any, Mapping

from auditplan.gather.gatherer import Gatherer


def _page(pass_context: Mapping[str, Any]) -> Mapping[str, Any]:
    page = pass_context.get("page") or {}
    return page if isinstance(page, Mapping) else {}


class ViewportDimensions(Gatherer):
    def after_pass(self, pass_context, load_data):
        viewport = _page(pass_context).get("viewport") or {}
        return {
            "innerWidth": viewport.get("innerWidth", 0),
            "outerWidth": viewport.get("outerWidth", 0),
            "devicePixelRatio": viewport.get("devicePixelRatio", 1),
            "metaViewport": _page(pass_context).get("meta_viewport"),
        }


class ChromeConsoleMessages(Gatherer):
    def __init__(self) -> None:
        self._messages: list[dict[str, Any]] = []

    def before_pass(self, pass_context):
        self._messages = []

    def during_pass(self, pass_context):
        for entry in _page(pass_context).get("console", []):
            self._messages.append(dict(entry))

    def after_pass(self, pass_context, load_data):
        return list(self._messages)


class HTTPRedirect(Gatherer):
    def after_pass(self, pass_context, load_data):
        final_url = str(load_data.get("final_url") or _page(pass_context).get("url", ""))
        return {"value": final_url.startswith("https://"), "url": final_url}


class Accessibility(Gatherer):
    def after_pass(self, pass_context, load_data):
        axe = _page(pass_context).get("axe") or {}
        return {"violations": list(axe.get("violations", []))}


class MetaDescription(Gatherer):
    def after_pass(self, pass_context, load_data):
        return _page(pass_context).get("meta_description")


class Manifest(Gatherer):
    def after_pass(self, pass_context, load_data):
        manifest = _page(pass_context).get("manifest")
        return dict(manifest) if isinstance(manifest, Mapping) else None


BUILTIN_GATHERERS: dict[str, type[Gatherer]] = {
    "viewport-dimensions": ViewportDimensions,
    "chrome-console-messages": ChromeConsoleMessages,
    "http-redirect": HTTPRedirect,
    "accessibility": Accessibility,
    "seo/meta-description": MetaDescription,
    "manifest": Manifest,
}
