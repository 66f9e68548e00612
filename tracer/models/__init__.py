"""SQLModel tables for the entity store."""

from tracer.models.agent import Agent
from tracer.models.planning_session import PlanningSession
from tracer.models.project import Project
from tracer.models.task import Task

__all__ = ["Agent", "PlanningSession", "Project", "Task"]
