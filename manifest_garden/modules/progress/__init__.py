"""
Progress Module
===============

Domain: goals that observe garden events and pay rewards once.

Services:
- AchievementService: lifetime achievements
- QuestService: daily quests (3 of 6 templates, reset at reference midnight)
- MilestoneService: tiered level/crafting/harvesting tracks
- ChallengeService: weekly challenges (reset at reference Monday midnight)
"""

from .achievement_service import AchievementService
from .challenge_service import ChallengeService
from .milestone_service import MilestoneService
from .quest_service import QuestService
from .tracker import FixedTracker, ProgressTracker, RotatingTracker

__all__ = [
    "AchievementService",
    "ChallengeService",
    "MilestoneService",
    "QuestService",
    "FixedTracker",
    "ProgressTracker",
    "RotatingTracker",
]
