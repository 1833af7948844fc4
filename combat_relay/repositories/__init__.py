from .combat_stats import CombatStatsRepository

__all__ = ["CombatStatsRepository"]
