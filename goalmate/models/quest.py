"""Weekly quest model"""
from pydantic import BaseModel


class Quest(BaseModel):
    """Goal-linked weekly quest suggestion"""
    title: str
    description: str
    related_goal: str = ""
