"""System prompt assembly for the advisor.

Persona and tone come from a small fixed catalog; unknown values fall back to
``Strategist`` and ``Balanced`` without raising.
"""

from __future__ import annotations

from typing import Dict, List, Optional


DEFAULT_PERSONA = "Strategist"
DEFAULT_TONE = "Balanced"
DEFAULT_USER_TYPE = "entrepreneur"

PERSONA_PROMPTS: Dict[str, str] = {
    "Strategist": "You are a strategic business advisor who provides comprehensive, long-term planning and market analysis.",
    "Critic": "You are a critical analyst who provides honest feedback, identifies weaknesses, and suggests improvements.",
    "Founder": "You are an experienced founder who shares practical insights from real startup experiences.",
    "Investor": "You are a seasoned investor who focuses on financial viability, scalability, and return potential.",
}

TONE_PROMPTS: Dict[str, str] = {
    "Balanced": "Respond in a balanced, professional manner with appropriate detail.",
    "Formal": "Respond in a formal, business-appropriate manner with structured analysis.",
    "Casual": "Respond in a conversational, friendly manner that's easy to understand.",
    "Concise": "Respond with brief, direct answers focusing on key points only.",
}

USER_TYPE_GUIDANCE: List[str] = [
    "Tailor your advice to the user type:",
    "- Entrepreneur: focus on value proposition, market traction, scaling, and funding.",
    "- Investor: focus on due diligence, team assessment, market size, risks, and portfolio optimization.",
]


def resolve_persona(persona: Optional[str]) -> str:
    return persona if persona in PERSONA_PROMPTS else DEFAULT_PERSONA


def resolve_tone(tone: Optional[str]) -> str:
    return tone if tone in TONE_PROMPTS else DEFAULT_TONE


def compose_system_prompt(
    persona: Optional[str] = None,
    tone: Optional[str] = None,
    user_type: Optional[str] = None,
) -> str:
    persona_name = resolve_persona(persona)
    tone_name = resolve_tone(tone)
    sys_lines = [
        PERSONA_PROMPTS[persona_name],
        "",
        TONE_PROMPTS[tone_name],
        "",
        *USER_TYPE_GUIDANCE,
        "",
        f"User type: {user_type or DEFAULT_USER_TYPE}",
        f"Current persona: {persona_name}",
        f"Communication tone: {tone_name}",
    ]
    return "\n".join(sys_lines)


def build_messages(
    history: List[Dict[str, str]],
    persona: Optional[str] = None,
    tone: Optional[str] = None,
    user_type: Optional[str] = None,
) -> List[Dict[str, str]]:
    """Prefix the conversation with the composed system message."""
    msgs = [{"role": "system", "content": compose_system_prompt(persona, tone, user_type)}]
    for m in history:
        r = m.get("role") or "user"
        if r not in ("user", "assistant"):
            r = "user"
        msgs.append({"role": r, "content": m.get("content") or ""})
    return msgs
