from src.ideacrafter.services import prompt_composer as pc


def test_system_prompt_has_persona_tone_and_user_type():
    prompt = pc.compose_system_prompt("Critic", "Concise", "investor")
    lines = prompt.split("\n")
    assert lines[0] == pc.PERSONA_PROMPTS["Critic"]
    assert pc.TONE_PROMPTS["Concise"] in lines
    assert "User type: investor" in lines
    assert "Current persona: Critic" in lines
    assert "Communication tone: Concise" in lines
    assert "- Investor: focus on due diligence, team assessment, market size, risks, and portfolio optimization." in lines


def test_unknown_persona_and_tone_fall_back_to_defaults():
    assert pc.compose_system_prompt("Pirate", "Shouty", "entrepreneur") == pc.compose_system_prompt(
        "Strategist", "Balanced", "entrepreneur"
    )
    assert pc.compose_system_prompt(None, None, None) == pc.compose_system_prompt("Strategist", "Balanced", "entrepreneur")


def test_build_messages_prefixes_system_and_normalizes_roles():
    history = [
        {"role": "user", "content": "How big is the market?"},
        {"role": "assistant", "content": "Depends on the segment."},
        {"role": "tool", "content": "odd"},
    ]
    msgs = pc.build_messages(history, persona="Founder", tone="Casual", user_type="entrepreneur")
    assert msgs[0]["role"] == "system"
    assert msgs[0]["content"].startswith(pc.PERSONA_PROMPTS["Founder"])
    assert [m["role"] for m in msgs[1:]] == ["user", "assistant", "user"]
    assert msgs[1]["content"] == "How big is the market?"
