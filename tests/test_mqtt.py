from types import SimpleNamespace

from plantshadow.mqtt import MQTTManager


class FakeClient:
    def __init__(self, accept=True, fail_with=None, connect_rc=0, publish_rc=0, subscribe_rc=0):
        self.accept = accept
        self.fail_with = fail_with
        self.connect_rc = connect_rc
        self.publish_rc = publish_rc
        self.subscribe_rc = subscribe_rc
        self.is_up = False
        self.on_message = None
        self.subscribed = []
        self.published = []
        self.loops = 0
        self.tls = None
        self.connect_calls = []

    def tls_set(self, ca_certs=None, certfile=None, keyfile=None):
        self.tls = (ca_certs, certfile, keyfile)

    def connect(self, host, port):
        self.connect_calls.append((host, port))
        if self.fail_with is not None:
            raise self.fail_with
        if self.accept and self.connect_rc == 0:
            self.is_up = True
        return self.connect_rc

    def is_connected(self):
        return self.is_up

    def loop(self, timeout=1.0):
        self.loops += 1
        return 0

    def disconnect(self):
        self.is_up = False

    def subscribe(self, topic):
        self.subscribed.append(topic)
        return (self.subscribe_rc, 1)

    def publish(self, topic, payload, retain=False):
        self.published.append((topic, payload, retain))
        return SimpleNamespace(rc=self.publish_rc)


def make_manager(**kwargs):
    client = FakeClient(**kwargs)
    return MQTTManager("broker.example.com", 8883, "device", client), client


def test_connect_resubscribes_registered_topics_in_order():
    manager, client = make_manager()
    manager.subscribe("a/b", lambda t, m: None)
    manager.subscribe("c/d", lambda t, m: None)
    assert client.subscribed == []
    assert manager.connect() is True
    assert client.connect_calls == [("broker.example.com", 8883)]
    assert client.subscribed == ["a/b", "c/d"]


def test_connect_when_already_connected_does_nothing():
    manager, client = make_manager()
    manager.connect()
    assert manager.connect() is True
    assert len(client.connect_calls) == 1


def test_connect_network_error_returns_false():
    manager, client = make_manager(fail_with=OSError("unreachable"))
    assert manager.connect() is False
    assert manager.connected() is False


def test_connect_error_code_returns_false():
    manager, _ = make_manager(connect_rc=5)
    assert manager.connect() is False


def test_connect_without_acknowledgement_times_out():
    manager, client = make_manager(accept=False)
    manager.connect_timeout = 0.0
    assert manager.connect() is False
    assert manager.connected() is False


def test_subscribe_while_connected_subscribes_immediately():
    manager, client = make_manager()
    manager.connect()
    manager.subscribe("x/y", lambda t, m: None)
    assert client.subscribed == ["x/y"]


def test_publish_requires_connection():
    manager, client = make_manager()
    assert manager.publish("t", "m") is False
    assert client.published == []


def test_publish_passes_retained_flag():
    manager, client = make_manager()
    manager.connect()
    assert manager.publish("t", "payload", retained=True) is True
    assert client.published == [("t", "payload", True)]


def test_publish_reports_client_failure():
    manager, _ = make_manager(publish_rc=4)
    manager.connect()
    assert manager.publish("t", "m") is False


def test_dispatch_goes_to_first_matching_callback_only():
    manager, _ = make_manager()
    received = []
    manager.subscribe("t", lambda topic, msg: received.append(("first", topic, msg)))
    manager.subscribe("t", lambda topic, msg: received.append(("second", topic, msg)))
    assert manager.dispatch("t", b'{"version": 3}') is True
    assert received == [("first", "t", '{"version": 3}')]


def test_dispatch_unknown_topic_returns_false():
    manager, _ = make_manager()
    received = []
    manager.subscribe("t", lambda topic, msg: received.append(msg))
    assert manager.dispatch("other", "x") is False
    assert received == []


def test_client_message_hook_routes_to_callback():
    manager, client = make_manager()
    received = []
    manager.subscribe("t", lambda topic, msg: received.append((topic, msg)))
    client.on_message(client, None, SimpleNamespace(topic="t", payload=b"hello"))
    assert received == [("t", "hello")]


def test_set_certificates_configures_tls():
    manager, client = make_manager()
    manager.set_certificates("ca.pem", "cert.pem", "key.pem")
    assert client.tls == ("ca.pem", "cert.pem", "key.pem")


def test_update_loops_only_when_connected():
    manager, client = make_manager()
    manager.update()
    assert client.loops == 0
    manager.connect()
    manager.update()
    assert client.loops == 1


def test_disconnect_drops_connection():
    manager, _ = make_manager()
    manager.connect()
    manager.disconnect()
    assert manager.connected() is False