"""
Content Agent - Blog posts, help articles and SEO metadata
"""

import re
from typing import Any, Dict

from core.agent import BaseAgent
from core.hybrid import CapabilityOutput
from core.types import AgentDomain, AgentMode, Capability, ExecutionContext

META_DESCRIPTION_LIMIT = 155


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class ContentAgent(BaseAgent):
    """
    Agent that drafts content. Without an AI provider it produces
    outlines and templated drafts that always go to human review.
    """

    id = "content-agent"
    name = "Content Agent"
    domain = AgentDomain.CONTENT
    mode = AgentMode.AI
    description = "Drafts blog posts and help articles and generates SEO metadata"
    capabilities = (
        Capability(
            id="generate-blog",
            name="Generate Blog Post",
            description="Draft a blog post for a topic",
            requires_ai=True,
            estimated_tokens=2000,
        ),
        Capability(
            id="generate-help",
            name="Generate Help Article",
            description="Draft a help-center article",
            requires_ai=True,
            estimated_tokens=1200,
        ),
        Capability(
            id="generate-meta",
            name="Generate Meta Tags",
            description="Build title, slug and meta description",
        ),
        Capability(
            id="optimize-seo",
            name="Optimize for SEO",
            description="Check a draft against target keywords",
            requires_ai=True,
            estimated_tokens=800,
        ),
    )

    def get_system_prompt(self) -> str:
        return """You write clear, accurate content about personal data removal and online privacy.

<guidelines>
- Plain language, no fear-mongering
- Never promise complete removal from the internet
- Cite the opt-out process, not specific people
</guidelines>

Reply with JSON: {"data": {"title": "...", "body": "..."}, "confidence": 0.0-1.0,
"needs_human_review": bool, "suggested_actions": [...]}"""

    def register_handlers(self) -> None:
        self.register_handler("generate-blog", self.generate_blog)
        self.register_handler("generate-help", self.generate_help)
        self.register_handler("generate-meta", self.generate_meta)
        self.register_handler("optimize-seo", self.optimize_seo)

    async def generate_blog(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        topic = (payload or {}).get("topic", "Protecting your personal data")
        outline = [
            f"Why {topic.lower()} matters",
            "Where your data ends up",
            "How opt-out requests work",
            "What to do next",
        ]
        return CapabilityOutput(
            data={"title": topic, "outline": outline, "body": None},
            # Templated drafts are always reviewed
            needs_human_review=True,
            manager_review_items=["Blog post is a templated outline, not a finished draft"],
            suggested_actions=["Write the body from the outline"],
        )

    async def generate_help(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        question = (payload or {}).get("question", "How do removals work?")
        return CapabilityOutput(
            data={"title": question, "sections": ["Summary", "Steps", "Related articles"]},
            confidence=0.5,
        )

    async def generate_meta(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        payload = payload or {}
        title = payload.get("title") or payload.get("topic")
        if not title:
            return CapabilityOutput.failed("title or topic is required", code="INVALID_INPUT")

        summary = payload.get("summary") or f"{title}: a practical guide to removing your data."
        if len(summary) > META_DESCRIPTION_LIMIT:
            summary = summary[: META_DESCRIPTION_LIMIT - 3].rstrip() + "..."
        return CapabilityOutput(data={"title": title, "slug": _slugify(title), "meta_description": summary})

    async def optimize_seo(self, payload: Dict[str, Any], context: ExecutionContext) -> CapabilityOutput:
        payload = payload or {}
        text = " ".join(str(payload.get(key, "")) for key in ("title", "meta_description", "body")).lower()
        keywords = [k.lower() for k in payload.get("keywords", [])]
        missing = [k for k in keywords if k not in text]
        coverage = 1.0 if not keywords else (len(keywords) - len(missing)) / len(keywords)
        return CapabilityOutput(
            data={"keyword_coverage": round(coverage, 3), "missing_keywords": missing},
            confidence=0.7,
        )
