from momentum.client.cache import QueryCache, optimistic
from momentum.client.api import MomentumAPIError, MomentumClient, IssueCache

__all__ = [
    "QueryCache",
    "optimistic",
    "MomentumAPIError",
    "MomentumClient",
    "IssueCache",
]
