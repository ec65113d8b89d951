"""auditplan: resolve audit run-plan configs."""

from auditplan.config import Config
from auditplan.models import ConfigError, MergeTypeError, PluginNotFoundError

__all__ = ["Config", "ConfigError", "MergeTypeError", "PluginNotFoundError"]
