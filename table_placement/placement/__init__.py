# ==============================================
# PLACEMENT: PD placement-rule control plane
# ==============================================
#
# Modules:
# --------
# - models.py        → RuleGroup / PlacementRule / GroupBundle data classes
# - client.py        → PlacementRuleClient (HTTP, one request per call)
# - orchestrator.py  → TablePlacement (group-then-rule for one table)
#
# ==============================================

from .models import RuleGroup, LabelConstraint, PlacementRule, GroupBundle, PeerRole
from .client import PlacementRuleClient
from .orchestrator import TablePlacement

__all__ = [
    "RuleGroup",
    "LabelConstraint",
    "PlacementRule",
    "GroupBundle",
    "PeerRole",
    "PlacementRuleClient",
    "TablePlacement",
]
