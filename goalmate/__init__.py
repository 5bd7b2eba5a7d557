"""GoalMate progress, leveling and streak-integrity engine"""

__version__ = "0.1.0"
