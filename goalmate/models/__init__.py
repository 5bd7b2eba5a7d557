"""Pydantic models for goals, habits, the user profile and quests"""
