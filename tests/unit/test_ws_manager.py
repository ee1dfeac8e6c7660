from __future__ import annotations

from fieldscribe.services.ws_manager import ConnectionManager


class FakeSocket:
    def __init__(self, fail=False):
        self.accepted = False
        self.sent = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


async def test_publish_assessment_status():
    manager = ConnectionManager()
    ws = FakeSocket()
    await manager.connect("01ASSESS", ws)
    assert ws.accepted

    await manager.publish_status("01ASSESS", "assessment", "failed", "음성 내용이 없습니다.")

    assert ws.sent == [{
        "event": "status_update",
        "assessment_id": "01ASSESS",
        "template_id": "",
        "data": {"status": "failed", "error_message": "음성 내용이 없습니다."},
    }]


async def test_publish_template_status():
    manager = ConnectionManager()
    ws = FakeSocket()
    await manager.connect("01TPL", ws)
    await manager.publish_status("01TPL", "template", "completed")
    assert ws.sent[0]["template_id"] == "01TPL"
    assert ws.sent[0]["data"] == {"status": "completed", "error_message": None}


async def test_dead_subscriber_is_dropped():
    manager = ConnectionManager()
    alive, dead = FakeSocket(), FakeSocket(fail=True)
    await manager.connect("01A", alive)
    await manager.connect("01A", dead)

    await manager.broadcast("01A", {"event": "status_update"})

    assert alive.sent == [{"event": "status_update"}]
    assert manager.subscriber_count("01A") == 1


async def test_channels_are_isolated():
    manager = ConnectionManager()
    a, b = FakeSocket(), FakeSocket()
    await manager.connect("01A", a)
    await manager.connect("01B", b)
    await manager.broadcast("01A", {"n": 1})
    assert a.sent and not b.sent

    manager.disconnect("01A", a)
    assert manager.subscriber_count("01A") == 0
