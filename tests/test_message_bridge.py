from bridge import HostMessage, HostMessageType, MessageBridge


def test_queued_messages_flush_in_order_exactly_once(surface):
    bridge = MessageBridge()
    for name in ("A", "B", "C"):
        bridge.send(HostMessageType.NOTIFICATION, {"message": name, "level": "info"})

    assert surface.messages == []
    assert len(bridge.pending) == 3

    bridge.attach(surface)
    assert [m["data"]["message"] for m in surface.messages] == ["A", "B", "C"]
    assert bridge.pending == []

    bridge.send(HostMessageType.ERROR, {"message": "D"})
    assert [m["data"]["message"] for m in surface.messages] == ["A", "B", "C", "D"]


def test_post_accepts_models_and_plain_dicts(surface):
    bridge = MessageBridge()
    bridge.attach(surface)

    bridge.post(HostMessage(type=HostMessageType.LANGUAGE_UPDATED, data="es"))
    bridge.post({"type": "config-updated", "data": {}})

    assert surface.messages == [
        {"type": "language-updated", "data": "es"},
        {"type": "config-updated", "data": {}},
    ]


def test_detach_returns_to_queueing(surface):
    bridge = MessageBridge()
    bridge.attach(surface)
    bridge.detach()

    bridge.send(HostMessageType.AUTH_STATUS, {"authenticated": False, "user": None})

    assert surface.messages == []
    assert not bridge.attached
    assert bridge.pending[0]["type"] == "auth-status"


def test_detach_of_stale_surface_is_ignored(surface):
    from conftest import RecordingSurface

    bridge = MessageBridge()
    old = RecordingSurface()
    bridge.attach(old)
    bridge.attach(surface)

    bridge.detach(old)
    bridge.send(HostMessageType.ERROR, {"message": "still attached"})

    assert surface.types == ["error"]
    assert old.messages == []
