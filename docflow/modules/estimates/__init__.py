from .schemas import Estimate, EstimateEvent, EstimateStatus
from .workflow import estimate_machine

__all__ = ["Estimate", "EstimateEvent", "EstimateStatus", "estimate_machine"]
