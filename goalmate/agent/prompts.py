"""Prompt templates for the insight provider"""

from typing import Optional

APP_NAME = "GoalMate"


def module_question_prompt(goal_title: str, module_name: str) -> str:
    return f"""You are an AI assistant for {APP_NAME}, a goal tracking app. A user is trying to verify their understanding of a learning module for their goal.
Goal Title: "{goal_title}"
Module Name: "{module_name}"
Please generate one simple, open-ended conceptual question about the content of "{module_name}" suitable for a beginner. The question should encourage a short text-based answer (1-3 sentences). Do not ask for code. Focus on understanding the core concept.
Example: If module is "Introduction to JSX", a good question might be "In your own words, what is JSX and why is it useful in React?\""""


def acknowledgment_prompt(goal_title: str, module_name: str, question: str, answer: str) -> str:
    return f"""You are an AI assistant for {APP_NAME}, a goal tracking app. A user is verifying a learning module.
Goal: "{goal_title}"
Module: "{module_name}"
They were asked: "{question}"
Their answer: "{answer}"
Please provide a brief, positive, and encouraging acknowledgment of their effort (1-2 sentences). Do NOT grade or confirm the correctness of their answer. Just offer encouragement for taking the step to explain their understanding."""


def weekly_quest_prompt(active_goal_titles: list[str]) -> str:
    goals = ", ".join(active_goal_titles)
    return f"""You are a motivating AI assistant for {APP_NAME}, a goal-setting app focused on coding and language learning.
A user has the following active goals: {goals}.
Pick ONE of these goals. Create a specific, challenging but achievable 'weekly quest' (1-2 sentences) that the user can work on this week. The quest should be encouraging.

Output the quest in the following format EXACTLY:
Quest Title: [A short, catchy title for the quest]
Description: [The 1-2 sentence description of the quest]
Related Goal: [The exact title of the goal you picked from the list]

Example:
If goals are "Learn Python, Master Hiragana", you might output:
Quest Title: Python Function Wizard
Description: Write and test 5 new Python functions that solve small problems. Every function is a step forward!
Related Goal: Learn Python
"""


def chat_reply_prompt(buddy_name: str, message: str) -> str:
    return f"""You are {buddy_name}, a friendly and supportive accountability buddy on the {APP_NAME} app. Your friend just sent you this message. Write a short, casual, and encouraging reply (1-2 sentences). Be brief and natural, like a real text message.
Friend's message: "{message}\""""


def module_suggestions_prompt(goal_title: str, goal_description: Optional[str]) -> str:
    return f"""You are an AI curriculum designer for {APP_NAME}, a goal-setting app for coding and language learning.
A user wants to achieve the following goal:
Goal Title: "{goal_title}"
Goal Description: "{goal_description or 'Not provided.'}"

Based on this goal, please suggest 3-5 learning modules. Each module should have a concise name (3-7 words) and a brief description (1-2 sentences) of what it might cover.
Format your response as a JSON array of objects. Each object should have "name" and "description" properties."""
