from __future__ import annotations

from typing import Any, Mapping


class Gatherer:
    """Base class for gatherers.

    A gatherer instance lives for one pass and is called at three points:
    before the page loads, while it loads, and after it has settled. The
    value returned from :meth:`after_pass` becomes the artifact stored under
    :attr:`name`.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def before_pass(self, pass_context: Mapping[str, Any]) -> Any:
        return None

    def during_pass(self, pass_context: Mapping[str, Any]) -> Any:
        return None

    def after_pass(self, pass_context: Mapping[str, Any], load_data: Mapping[str, Any]) -> Any:
        return None
