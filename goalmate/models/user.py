"""User profile and perk models"""
from typing import Optional
from pydantic import BaseModel, Field


class Perk(BaseModel):
    """Feature unlock granted once cumulative XP crosses a threshold"""
    id: str
    display_name: str
    xp_required: int


class UserProfile(BaseModel):
    """
    Session-scoped user profile

    Only the leveling ledger (goalmate.gamification.xp_system) mutates
    experience, level and unlocked_perks.
    """
    name: str = "GoalGetter User"
    avatar: Optional[str] = None
    experience: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    unlocked_perks: list[Perk] = Field(default_factory=list)  # unlock order
    dark_mode_enabled: bool = False

    def has_perk(self, perk_id: str) -> bool:
        return any(perk.id == perk_id for perk in self.unlocked_perks)
