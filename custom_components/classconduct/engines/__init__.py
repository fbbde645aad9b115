"""Engine modules for the Class Conduct integration.

Contains pure computation engines (no storage, no Home Assistant state):
- behavior_engine: Catalog lookups, point resolution, score recompute, ranks
- conduct_engine: Weekly ledger mutations and week locks
- analytics_engine: Alerts plus semester and week summaries
- gamification_engine: Badge criteria and revocation
- economy_engine: Coin settlement rules, orders, inventory, officer budgets
"""

# Use relative imports within package to avoid mypy module resolution issues
from .analytics_engine import AnalyticsEngine
from .behavior_engine import BehaviorEngine
from .conduct_engine import ConductEngine
from .economy_engine import EconomyEngine, InsufficientFundsError
from .gamification_engine import GamificationEngine

__all__ = [
    "AnalyticsEngine",
    "BehaviorEngine",
    "ConductEngine",
    "EconomyEngine",
    "GamificationEngine",
    "InsufficientFundsError",
]
