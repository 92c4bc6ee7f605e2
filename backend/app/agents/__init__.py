"""Bundled agents, their routes and the workflow catalog"""

from app.agents.content_agent import ContentAgent
from app.agents.growth_agent import GrowthAgent
from app.agents.removal_agent import RemovalAgent
from app.agents.routing_table import DEFAULT_ROUTES
from app.agents.verification_agent import VerificationAgent
from app.agents.workflows import DEFAULT_WORKFLOWS

DEFAULT_AGENT_CLASSES = (
    RemovalAgent,
    VerificationAgent,
    GrowthAgent,
    ContentAgent,
)

__all__ = [
    "RemovalAgent",
    "VerificationAgent",
    "GrowthAgent",
    "ContentAgent",
    "DEFAULT_AGENT_CLASSES",
    "DEFAULT_ROUTES",
    "DEFAULT_WORKFLOWS",
]
