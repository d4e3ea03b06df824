# logportal

logportal puts buffered log records behind a small HTTP interface. It has two parts:

* **A REST API** (`logportal-rest-api`, module `logportal.rest_api`). It serves
  nodes, their logs, topics and services as JSON.
* **A client distribution server** (`logportal-dist-server`, module
  `logportal.dist_server`). It serves an HTML client page to browsers on the local
  network and rewrites the page so that it talks to the REST API at the right
  address. It can also print QR codes for its URLs.

Only the standard library is needed.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The REST API

```
logportal-rest-api [--host HOST] [--port PORT]
```

By default the server listens on `0.0.0.0:8080`. Stop it with Ctrl+C or SIGTERM.
Every GET answer is JSON and carries the headers `Access-Control-Allow-Origin: *`,
`Access-Control-Allow-Methods: GET, OPTIONS` and
`Access-Control-Allow-Headers: Content-Type`.

| Path                      | Answer                                                              |
|---------------------------|---------------------------------------------------------------------|
| `/`                       | API name, version `1.0.0` and a list of endpoints                   |
| `/nodes`                  | Every node with `log_count`, and `publishers` / `subscribers` if any |
| `/nodes/{node_name}/logs` | The logs of one node                                                |
| `/logs`                   | All buffered logs, oldest first                                     |
| `/topics`                 | Each topic mapped to the nodes that publish or subscribe to it      |
| `/services`               | Each service mapped to the nodes that provide it                    |

Notes on the endpoints:

* `/nodes/{node_name}/logs` takes the node name without its leading slash. When
  the node is looked up, `%2F` or `%2f` in the name is read as `/` (except in the
  last two characters). An unknown node gets
  `{"error": "Node not found", "node": ..., "status": 404}` with status 404.
* `/logs` takes an optional `severity` (`DEBUG`, `INFO`, `WARN`, `ERROR`,
  `FATAL` or `UNKNOWN`) and an optional `limit` (default 100). A negative limit
  removes the limit. A limit that cannot be read is ignored and the default is used.
* Log listings leave out messages longer than 10,000 characters.
* Any other path gets `{"error": "Not Found", "status": 404}` with status 404.

Each log entry looks like this:

```json
{
  "file": "talker.cpp",
  "function": "main",
  "level": "INFO",
  "line": 42,
  "message": "Hello",
  "name": "talker",
  "timestamp": {"nanosec": 0, "sec": 1700000000}
}
```

While it runs, the server calls the source's `update_graph()` every five seconds.
About every thirty seconds it prints `No logs received yet.` if the buffer is empty.

### Using it from Python

`RestApiServer` reads from any `LogSource` (see `logportal.logs`).
`MemoryLogSource` is a thread-safe in-memory source that you fill yourself. Its
buffer holds 2000 records by default, and the oldest records are dropped first.

```python
from logportal.logs import LogLevel, LogRecord, MemoryLogSource, NodeInfo
from logportal.rest_api import RestApiServer

source = MemoryLogSource()
source.add_node(NodeInfo("/talker", publishers={"/chatter": ["std_msgs/msg/String"]}))
source.add_log(LogRecord(name="talker", msg="Hello", level=LogLevel.INFO))

with RestApiServer(source) as api:
    api.start_server("127.0.0.1", 8080)
    ...
```

`RestApiServer.handle(path, query)` answers a single request without a socket
and returns a `Response` with `status`, `content_type` and `body`. This is handy
in tests. `decode_node_name` and `log_to_json` are available on their own, as is
`level_to_string` in `logportal.logs`.

## The client distribution server

```
logportal-dist-server [--target-ip IP] [--target-port PORT]
                      [--target-ip-keyword WORD] [--qr-distribute-count N]
                      [--show-qr-code | --no-show-qr-code] [--qr-location cli]
                      [--rest-api-server-ip IP] [--rest-api-server-port PORT]
                      [--target-html PATH] [--search-root DIR]
```

By default the server listens on `0.0.0.0:8081` and expects the REST API on
port 8080. It looks for the client page given by `--target-html` below
`--search-root` (default `.`). It tries the path as given, then the path with
`.html` added, and then searches the directory tree for a file of that name. If
no page is found, the command exits with status 1.

It serves, with permissive CORS headers:

* `/` and `/client.html`: the client page. Every `http://localhost:8080`
  reference in it is replaced with the REST API base URL. If the REST API port
  is not 8080, every other `:8080` is also replaced with the configured port.
* Static assets next to the page (`.css`, `.js`, `.png`, `.jpg`, `.jpeg`,
  `.gif`, `.ico`, `.svg`, `.woff`, `.woff2`, `.ttf`, `.eot`), each with a
  matching content type. Paths containing `..` are refused.
* `/info`: a JSON summary of the settings, the detected address and the API base URL.

When the server listens on `0.0.0.0` or `localhost`, it finds the machine's
addresses with `hostname -I`. It uses at most five addresses and leaves out
`127.0.0.1`. It picks the first address that contains the keyword (default
`target-ip`), or else the first address found. The same address replaces a
REST API host of `localhost` or `0.0.0.0` in the base URL.

If QR codes are enabled (the default), the server prints a URL for each of the
first `--qr-distribute-count` addresses. When `--qr-location` is `cli` and the
`qrencode` tool is installed, it also renders each URL as an ANSI QR code. If the
tool is missing, it prints a hint on how to install it.

From Python, `LogClientDistServer(DistServerConfig(...))` does the same thing.
Use `start()` and `stop()`, or use it as a context manager. `handle_get(path)`
answers a request without a socket.

## What it does not do

logportal does not collect logs. The `logportal-rest-api` command serves an
empty `MemoryLogSource`, so it only answers with data when a program fills a
`LogSource` through the Python API. Logs are not stored on disk, and nothing is
kept after the process ends.