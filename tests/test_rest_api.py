import json
import urllib.error
import urllib.request

import pytest

from logportal.logs import LogLevel, LogRecord, MemoryLogSource, NodeInfo
from logportal.rest_api import (
    MAX_MESSAGE_LENGTH,
    RestApiServer,
    decode_node_name,
    log_to_json,
)


@pytest.fixture
def source():
    src = MemoryLogSource()
    src.add_node(NodeInfo("/talker", publishers={"/chatter": ["std_msgs/msg/String"]}))
    src.add_node(NodeInfo("/ns/listener", subscribers={"/chatter": ["std_msgs/msg/String"]}))
    src.add_log(LogRecord(name="talker", msg="hello", level=LogLevel.INFO, sec=1, nanosec=2))
    src.add_log(LogRecord(name="talker", msg="oops", level=LogLevel.ERROR))
    src.add_log(LogRecord(name="ns.listener", msg="heard", level=LogLevel.INFO))
    return src


def body(response):
    return json.loads(response.body.decode("utf-8"))


def test_log_to_json_fields():
    record = LogRecord(name="n", msg="m", level=LogLevel.WARN, sec=3, nanosec=4,
                       file="f.cpp", function="fn", line=12)
    entry = log_to_json(record)
    assert entry["timestamp"] == {"sec": 3, "nanosec": 4}
    assert entry["level"] == LogLevel.WARN.name
    assert (entry["name"], entry["message"], entry["file"], entry["function"], entry["line"]) == (
        "n", "m", "f.cpp", "fn", 12)


def test_root_lists_endpoints(source):
    response = RestApiServer(source).handle("/")
    data = body(response)
    assert response.status == 200
    assert data["message"] == "ROS2 Log Viewer REST API"
    assert data["version"] == "1.0.0"
    assert "/nodes/{node_name}/logs" in data["endpoints"]


def test_unknown_path_is_404():
    response = RestApiServer(MemoryLogSource()).handle("/nope")
    assert response.status == 404
    assert response.body == b'{"error":"Not Found","status":404}'


def test_nodes(source):
    data = body(RestApiServer(source).handle("/nodes"))
    by_name = {entry["name"]: entry for entry in data}
    assert by_name["/talker"]["log_count"] == 2
    assert by_name["/talker"]["publishers"] == {"/chatter": ["std_msgs/msg/String"]}
    assert "subscribers" not in by_name["/talker"]
    assert "publishers" not in by_name["/ns/listener"]


def test_node_logs(source):
    response = RestApiServer(source).handle("/nodes/talker/logs")
    assert response.status == 200
    assert [entry["message"] for entry in body(response)] == ["hello", "oops"]


def test_node_logs_missing_node(source):
    response = RestApiServer(source).handle("/nodes/ghost/logs")
    assert response.status == 404
    assert body(response) == {"error": "Node not found", "node": "ghost", "status": 404}


def test_node_logs_encoded_name_exists(source):
    response = RestApiServer(source).handle("/nodes/ns%2Flistener/logs")
    assert response.status == 200


def test_all_logs_severity_filter(source):
    data = body(RestApiServer(source).handle("/logs", {"severity": LogLevel.ERROR.name}))
    assert [entry["message"] for entry in data] == ["oops"]


def test_all_logs_limit(source):
    api = RestApiServer(source)
    assert len(body(api.handle("/logs", {"limit": "2"}))) == 2
    assert len(body(api.handle("/logs", {"limit": "bogus"}))) == 3
    # The limit is checked after an entry is added, so zero still yields one.
    assert len(body(api.handle("/logs", {"limit": "0"}))) == 1


def test_all_logs_default_limit():
    src = MemoryLogSource()
    for index in range(150):
        src.add_log(LogRecord(name="n", msg=str(index)))
    data = body(RestApiServer(src).handle("/logs"))
    assert len(data) == 100
    assert data[0]["message"] == "0"


def test_large_messages_skipped():
    src = MemoryLogSource()
    src.add_node(NodeInfo("/n"))
    src.add_log(LogRecord(name="n", msg="x" * (MAX_MESSAGE_LENGTH + 1)))
    src.add_log(LogRecord(name="n", msg="x" * MAX_MESSAGE_LENGTH))
    api = RestApiServer(src)
    assert len(body(api.handle("/logs"))) == 1
    assert len(body(api.handle("/nodes/n/logs"))) == 1


def test_topics_and_services(source):
    api = RestApiServer(source)
    assert body(api.handle("/topics")) == {"/chatter": ["/talker", "/ns/listener"]}
    assert body(api.handle("/services")) == {}


def test_without_source_returns_empty():
    api = RestApiServer()
    assert body(api.handle("/nodes")) == []
    assert body(api.handle("/logs")) == []
    assert api.handle("/nodes/x/logs").status == 404


def test_live_server(source):
    with RestApiServer(source) as api:
        api.start_server("127.0.0.1", 0)
        url = f"http://127.0.0.1:{api.port}"
        with urllib.request.urlopen(f"{url}/logs?limit=1") as reply:
            assert reply.headers["Access-Control-Allow-Methods"] == "GET, OPTIONS"
            assert [e["message"] for e in json.loads(reply.read())] == ["hello"]
        with pytest.raises(urllib.error.HTTPError) as info:
            urllib.request.urlopen(f"{url}/missing")
        assert info.value.code == 404
    assert api.running is False