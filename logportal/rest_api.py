"""JSON REST API over a log source."""

from __future__ import annotations

import argparse
import json
import logging
import os
import re
import signal
import sys
import threading
from collections.abc import Mapping
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from .dist_server import Response
from .logs import LogRecord, LogSource, MemoryLogSource, level_to_string

_log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

MAX_MESSAGE_LENGTH = 10000
DEFAULT_LIMIT = 100
_GRAPH_INTERVAL = 5.0
_IDLE_REPORT_INTERVAL = 30.0
_MAX_ULONG = 2**64 - 1

_NODE_LOGS_ROUTE = re.compile(r"/nodes/(.*)/logs")

_ENDPOINTS = {
    "/": "API information",
    "/nodes": "List all nodes",
    "/nodes/{node_name}/logs": "Get logs for specific node",
    "/logs": "Get all logs with optional severity filter",
    "/topics": "List all topics with publishers/subscribers",
    "/services": "List all services with providers",
}


def _dump(value: Any, indent: Optional[int] = None) -> bytes:
    if indent is None:
        text = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    else:
        text = json.dumps(value, sort_keys=True, indent=indent, ensure_ascii=False)
    return text.encode("utf-8")


def _json(value: Any, status: int = 200, indent: Optional[int] = None) -> Response:
    return Response(status, "application/json", _dump(value, indent))


def decode_node_name(name: str) -> str:
    """Turn ``%2F`` sequences not at the very end of *name* into slashes."""
    decoded = []
    i = 0
    while i < len(name):
        if name[i] == "%" and i + 2 < len(name) and name[i + 1 : i + 3] in ("2F", "2f"):
            decoded.append("/")
            i += 3
        else:
            decoded.append(name[i])
            i += 1
    return "".join(decoded)


def log_to_json(record: LogRecord) -> dict:
    """JSON form of a log record."""
    return {
        "timestamp": {"sec": record.sec, "nanosec": record.nanosec},
        "level": level_to_string(record.level),
        "name": record.name,
        "message": record.msg,
        "file": record.file,
        "function": record.function,
        "line": record.line,
    }


def _parse_limit(value: str) -> Optional[int]:
    """Parse a limit like ``strtoul``; ``None`` means no limit."""
    match = re.match(r"\s*([+-]?)(\d+)", value)
    if not match:
        raise ValueError(f"invalid limit {value!r}")
    number = int(match.group(2))
    if number > _MAX_ULONG:
        raise ValueError(f"limit out of range: {value!r}")
    if match.group(1) == "-" and number:
        return None
    return number


class RestApiServer:
    """Answers REST queries about nodes, logs, topics and services."""

    def __init__(self, source: Optional[LogSource] = None):
        self.source = source
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._maintenance: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    @property
    def running(self) -> bool:
        return self._httpd is not None

    @property
    def port(self) -> Optional[int]:
        """Bound port while running."""
        return self._httpd.server_address[1] if self._httpd else None

    def handle(self, path: str, query: Optional[Mapping[str, str]] = None) -> Response:
        """Answer a GET request for *path* with query parameters *query*."""
        query = query or {}
        if path == "/":
            return self._root()
        if path == "/nodes":
            return self._nodes()
        match = _NODE_LOGS_ROUTE.fullmatch(path)
        if match:
            return self._node_logs(match.group(1))
        if path == "/logs":
            return self._all_logs(query)
        if path == "/topics":
            return _json(self.source.get_topics() if self.source else {})
        if path == "/services":
            return _json(self.source.get_services() if self.source else {})
        return self.not_found()

    @staticmethod
    def not_found() -> Response:
        return _json({"error": "Not Found", "status": 404}, status=404)

    def _root(self) -> Response:
        body = {
            "message": "ROS2 Log Viewer REST API",
            "version": "1.0.0",
            "endpoints": dict(_ENDPOINTS),
        }
        return _json(body, indent=2)

    def _nodes(self) -> Response:
        result = []
        if self.source:
            for node in self.source.get_nodes():
                info: dict[str, Any] = {
                    "name": node.full_name,
                    "log_count": len(self.source.get_filtered_logs([node.full_name])),
                }
                if node.publishers:
                    info["publishers"] = dict(node.publishers)
                if node.subscribers:
                    info["subscribers"] = dict(node.subscribers)
                result.append(info)
        return _json(result)

    def _node_logs(self, node_name: str) -> Response:
        decoded = decode_node_name(node_name)
        exists = bool(self.source) and any(
            node.full_name[1:] == decoded for node in self.source.get_nodes()
        )
        if not exists:
            return _json(
                {"error": "Node not found", "node": node_name, "status": 404}, status=404
            )
        entries = [
            log_to_json(record)
            for record in self.source.get_filtered_logs([node_name])
            if len(record.msg) <= MAX_MESSAGE_LENGTH
        ]
        return _json(entries)

    def _all_logs(self, query: Mapping[str, str]) -> Response:
        severity = query.get("severity", "")
        limit: Optional[int] = DEFAULT_LIMIT
        if "limit" in query:
            try:
                limit = _parse_limit(query["limit"])
            except ValueError as exc:
                print(f"Invalid limit parameter: {exc}, using default limit of {DEFAULT_LIMIT}")
        entries = []
        if self.source:
            for record in self.source.get_pending_logs():
                if len(record.msg) > MAX_MESSAGE_LENGTH:
                    print(
                        "Skipping suspiciously large log message "
                        f"(length: {len(record.msg)})"
                    )
                    continue
                if severity and level_to_string(record.level) != severity:
                    continue
                entries.append(log_to_json(record))
                if limit is not None and len(entries) >= limit:
                    break
        return _json(entries)

    def _maintain(self) -> None:
        waited = 0.0
        while not self._stopping.wait(_GRAPH_INTERVAL):
            waited += _GRAPH_INTERVAL
            if self.source is None:
                continue
            self.source.update_graph()
            if waited >= _IDLE_REPORT_INTERVAL:
                waited = 0.0
                if not self.source.get_pending_logs():
                    print("No logs received yet.")

    def start_server(self, host: str = "0.0.0.0", port: int = 8080) -> None:
        """Serve the API in a background thread."""
        if self.running:
            print("Server is already running")
            return
        print(f"Starting HTTP server on {host}:{port}")
        httpd = ThreadingHTTPServer((host, port), _make_handler(self))
        httpd.daemon_threads = True
        self._httpd = httpd
        self._stopping.clear()
        self._thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        self._thread.start()
        self._maintenance = threading.Thread(target=self._maintain, daemon=True)
        self._maintenance.start()

    def stop_server(self) -> None:
        """Stop serving and wait for the background threads."""
        if not self.running:
            return
        self._stopping.set()
        self._httpd.shutdown()
        self._httpd.server_close()
        self._httpd = None
        for thread in (self._thread, self._maintenance):
            if thread is not None:
                thread.join()
        self._thread = None
        self._maintenance = None

    def __enter__(self) -> "RestApiServer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop_server()


def _make_handler(app: RestApiServer) -> type[BaseHTTPRequestHandler]:
    class _Handler(BaseHTTPRequestHandler):
        def _send(self, reply: Response) -> None:
            self.send_response(reply.status)
            for name, value in CORS_HEADERS.items():
                self.send_header(name, value)
            self.send_header("Content-Type", reply.content_type)
            self.send_header("Content-Length", str(len(reply.body)))
            self.end_headers()
            self.wfile.write(reply.body)

        def do_GET(self) -> None:
            parts = urlsplit(self.path)
            query = {key: values[0] for key, values in parse_qs(parts.query).items()}
            self._send(app.handle(parts.path, query))

        def do_OPTIONS(self) -> None:
            self._send(app.not_found())

        def log_message(self, format, *args) -> None:
            _log.debug("%s - %s", self.address_string(), format % args)

    return _Handler


def main(argv: Optional[list[str]] = None) -> int:
    """Run the REST API server until interrupted."""
    parser = argparse.ArgumentParser(description="Serve buffered logs over HTTP.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    args = parser.parse_args(argv)

    server = RestApiServer(MemoryLogSource())
    print("REST API Server node created successfully.")
    domain_id = os.environ.get("ROS_DOMAIN_ID")
    if domain_id:
        print(f"Using ROS_DOMAIN_ID: {domain_id}")

    try:
        server.start_server(args.host, args.port)
    except OSError as exc:
        print(f"Failed to bind to port {args.port}: {exc}", file=sys.stderr)
        return 1

    shown_host = "localhost" if args.host == "0.0.0.0" else args.host
    print(f"REST API Server is running at http://{shown_host}:{args.port}/")
    print("Press Ctrl+C to terminate the server.")

    shutdown = threading.Event()

    def _on_signal(signum, _frame) -> None:
        print(f"Received signal {signum}, shutting down...")
        shutdown.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)
    try:
        while not shutdown.wait(0.1):
            pass
    finally:
        server.stop_server()
    return 0


if __name__ == "__main__":
    sys.exit(main())