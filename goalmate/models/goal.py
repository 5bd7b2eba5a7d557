"""Goal and module models"""
from enum import Enum
from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field, model_validator


class GoalKind(str, Enum):
    """Goal types"""
    LEARNING = "Learning"
    GENERIC = "Generic"


class ModuleStatus(str, Enum):
    """Module completion status"""
    PENDING = "pending"
    COMPLETED = "completed"


class ModuleSource(str, Enum):
    """Who authored the module"""
    USER = "user"
    GENERATED = "generated"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


class Module(BaseModel):
    """Learning module, owned by exactly one goal"""
    id: str = Field(default_factory=lambda: _new_id("m"))
    name: str
    status: ModuleStatus = ModuleStatus.PENDING
    verified: bool = False
    source: ModuleSource = ModuleSource.USER
    description: Optional[str] = None

    @model_validator(mode="after")
    def verified_implies_completed(self) -> "Module":
        """A verified module must be completed"""
        if self.verified and self.status != ModuleStatus.COMPLETED:
            raise ValueError("A verified module must have status 'completed'")
        return self

    @property
    def is_completed(self) -> bool:
        return self.status == ModuleStatus.COMPLETED


class Goal(BaseModel):
    """
    Milestone goal

    Learning goals own an ordered list of modules and derive their progress
    from it. Generic goals store progress_percent/status_text directly.
    linked_habit_id is a lookup key only; the habit may no longer exist.
    """
    id: str = Field(default_factory=lambda: _new_id("g"))
    title: str
    category: str = "General"
    kind: GoalKind = GoalKind.GENERIC
    emoji: Optional[str] = None
    description: Optional[str] = None
    modules: list[Module] = Field(default_factory=list)
    progress_percent: int = Field(default=0, ge=0, le=100)
    status_text: Optional[str] = None
    linked_habit_id: Optional[str] = None
    finalized: bool = False

    @model_validator(mode="after")
    def modules_only_on_learning_goals(self) -> "Goal":
        if self.kind != GoalKind.LEARNING and self.modules:
            raise ValueError("Only Learning goals can have modules")
        return self

    @property
    def is_learning(self) -> bool:
        return self.kind == GoalKind.LEARNING

    def find_module(self, module_id: str) -> Optional[Module]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None


class ProgressDisplay(BaseModel):
    """Display-ready progress for a goal; always recomputed, never stored"""
    percent: int
    text: str
