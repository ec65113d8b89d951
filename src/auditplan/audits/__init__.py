from auditplan.audits.audit import Audit
from auditplan.audits.builtins import BUILTIN_AUDITS

__all__ = ["Audit", "BUILTIN_AUDITS"]
