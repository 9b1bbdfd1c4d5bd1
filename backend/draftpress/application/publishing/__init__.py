from .coordinator import PublishCoordinator, PublishDeadlineExceeded
from .plan import PublishNode, PublishPlan, PublishResult

__all__ = [
    "PublishCoordinator",
    "PublishDeadlineExceeded",
    "PublishNode",
    "PublishPlan",
    "PublishResult",
]
