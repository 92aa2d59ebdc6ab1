from src.ideacrafter.domain.chat_models import Conversation, Message
from src.ideacrafter.services.handoff import HandoffChannel


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _conv():
    return Conversation(conversation_id="c1", title="T", messages=[Message(role="user", content="hi")])


def test_take_consumes_the_snapshot():
    channel = HandoffChannel()
    channel.put("c1", _conv())
    assert channel.take("c1").messages[0].content == "hi"
    assert channel.take("c1") is None


def test_snapshot_is_isolated_from_later_edits():
    channel = HandoffChannel()
    conv = _conv()
    channel.put("c1", conv)
    conv.messages[0].content = "edited"
    assert channel.take("c1").messages[0].content == "hi"


def test_expired_snapshot_is_dropped():
    clock = _Clock()
    channel = HandoffChannel(ttl_seconds=10, clock=clock)
    channel.put("c1", _conv())
    clock.now += 11
    assert channel.take("c1") is None


def test_clear():
    channel = HandoffChannel()
    channel.put("c1", _conv())
    channel.clear()
    assert channel.take("c1") is None


def test_unclaimed_snapshots_do_not_accumulate():
    clock = _Clock()
    channel = HandoffChannel(ttl_seconds=1, clock=clock)
    for i in range(1000):
        channel.put(f"c{i}", _conv())
    clock.now += 2
    channel.put("fresh", _conv())
    assert len(channel) == 1
    assert channel.take("c0") is None
    assert channel.take("fresh") is not None
