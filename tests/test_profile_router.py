from fastapi.testclient import TestClient

from src.ideacrafter.infrastructure.profile_store import InMemoryProfileStore

from .utils import BACKER, FOUNDER, auth_headers, make_app


client = TestClient(make_app())


def test_profile_for_current_user():
    r = client.get("/api/profile", headers=auth_headers(FOUNDER.id))
    assert r.status_code == 200
    assert r.json()["full_name"] == "Ada Lovelace"
    assert r.json()["user_type"] == "entrepreneur"


def test_missing_profile_is_404():
    r = client.get("/api/profile", headers=auth_headers("nobody"))
    assert r.status_code == 404


def test_bootstrap_tailors_copy_to_user_type():
    founder = client.get("/api/assistant/bootstrap", headers=auth_headers(FOUNDER.id)).json()
    assert founder["welcome_message"].startswith("Hi Ada!")
    assert founder["starters"][0]["title"] == "Perfect My Pitch"
    assert founder["personas"] == ["Strategist", "Critic", "Founder", "Investor"]
    assert founder["tones"] == ["Balanced", "Formal", "Casual", "Concise"]

    investor = client.get("/assistant/bootstrap", headers=auth_headers(BACKER.id)).json()
    assert investor["welcome_message"].startswith("Hello Grace!")
    assert investor["starters"][0]["title"] == "Deal Evaluation"


def test_public_mode_uses_guest_profile():
    profiles = InMemoryProfileStore()
    profiles.put_profile(FOUNDER.model_copy(update={"id": "guest", "full_name": None}))
    public = TestClient(make_app(profiles=profiles, public_mode=True))
    r = public.get("/api/assistant/bootstrap")
    assert r.status_code == 200
    assert r.json()["welcome_message"].startswith("Hi there!")
