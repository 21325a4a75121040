from src.services.access_control import AccessControlEvaluator, AccessDecision
from src.services.aggregated_view import AggregatedViewBuilder
from src.services.share_analytics import ShareAnalytics
from src.services.share_lifecycle import ShareLifecycleManager
from src.services.share_registry import ShareRegistry
from src.services.shared_mutation_gateway import SharedMutationGateway


__all__ = [
    "AccessControlEvaluator",
    "AccessDecision",
    "AggregatedViewBuilder",
    "ShareAnalytics",
    "ShareLifecycleManager",
    "ShareRegistry",
    "SharedMutationGateway",
]
