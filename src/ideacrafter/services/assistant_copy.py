from __future__ import annotations

from typing import List, Optional

from ..domain.profile_models import ConversationStarter


_ENTREPRENEUR_STARTERS: List[ConversationStarter] = [
    ConversationStarter(
        title="Perfect My Pitch",
        description="Get feedback on your pitch deck",
        prompt="I need help improving my startup pitch...",
    ),
    ConversationStarter(
        title="Fundraising Strategy",
        description="Plan funding rounds & outreach",
        prompt="I'm planning to raise funding and need a strategy...",
    ),
    ConversationStarter(
        title="Market Analysis",
        description="Understand market size & competition",
        prompt="Help me analyze my target market and competitors...",
    ),
    ConversationStarter(
        title="Business Model",
        description="Refine revenue streams & value prop",
        prompt="I want to validate and improve my business model...",
    ),
]

_INVESTOR_STARTERS: List[ConversationStarter] = [
    ConversationStarter(
        title="Deal Evaluation",
        description="Analyze opportunities & risks",
        prompt="I'm evaluating a potential investment opportunity...",
    ),
    ConversationStarter(
        title="Market Trends",
        description="Stay updated on industry trends",
        prompt="What are the current market trends in fintech?",
    ),
    ConversationStarter(
        title="Portfolio Strategy",
        description="Optimize portfolio allocation",
        prompt="Help me develop a strategic approach for my portfolio...",
    ),
    ConversationStarter(
        title="Valuation Methods",
        description="Learn startup valuation techniques",
        prompt="Explain different methods for valuing startups...",
    ),
]

QUICK_FOLLOW_UPS: List[str] = [
    "Summarize key takeaways.",
    "Convert to a 2-minute investor pitch.",
    "List 5 risks and mitigations.",
    "Give a concise one-liner.",
]


def _first_name(full_name: Optional[str]) -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else "there"


def welcome_message(user_type: str, full_name: Optional[str]) -> str:
    name = _first_name(full_name)
    if user_type == "entrepreneur":
        return (
            f"Hi {name}! I'm your AI business advisor, here to help with pitch prep, fundraising, "
            "market research, and growth. What would you like to work on today?"
        )
    return (
        f"Hello {name}! I'm your AI investment advisor. I can help with deal evaluation, market insights, "
        "portfolio strategy, and more. What can I do for you today?"
    )


def conversation_starters(user_type: str) -> List[ConversationStarter]:
    if user_type == "entrepreneur":
        return list(_ENTREPRENEUR_STARTERS)
    return list(_INVESTOR_STARTERS)
