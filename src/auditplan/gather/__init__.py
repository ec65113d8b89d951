from auditplan.gather.builtins import BUILTIN_GATHERERS
from auditplan.gather.gatherer import Gatherer

__all__ = ["BUILTIN_GATHERERS", "Gatherer"]
