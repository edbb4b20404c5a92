"""Delta audit and stitch repair."""

from expander.audit.delta import DeltaAuditor
from expander.audit.stitch import StitchRepairer, apply_repairs

__all__ = ["DeltaAuditor", "StitchRepairer", "apply_repairs"]
