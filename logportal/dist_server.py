"""HTTP server that hands out the log client page to browsers."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from .client_html import (
    api_base_url,
    content_type_for,
    find_client_html,
    rewrite_client_html,
)
from .netinfo import (
    build_qr_urls,
    get_available_ips,
    is_wildcard,
    pick_server_ip,
    show_qr_codes,
)

_log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
    "Access-Control-Max-Age": "86400",
}

_STATIC_ROUTE = re.compile(
    r"/(.+\.(css|js|png|jpg|jpeg|gif|ico|svg|woff|woff2|ttf|eot))"
)


@dataclass
class DistServerConfig:
    """Settings of the distribution server."""

    target_ip: str = "0.0.0.0"
    target_port: int = 8081
    target_ip_keyword: str = "target-ip"
    qr_distribute_count: int = 1
    show_qr_code: bool = True
    qr_location: str = "cli"
    rest_api_server_ip: str = "localhost"
    rest_api_server_port: int = 8080
    target_html: str = "./src/ros2_console_browser/ros2_console_rest_api_node/example/client.html"
    search_root: str = "."


@dataclass(frozen=True)
class Response:
    """Outcome of a GET request."""

    status: int
    content_type: str
    body: bytes = b""


def _text(status: int, message: str) -> Response:
    return Response(status, "text/plain", message.encode())


class LogClientDistServer:
    """Serves the client page with API addresses adjusted for remote browsers."""

    def __init__(self, config: Optional[DistServerConfig] = None):
        self.config = config or DistServerConfig()
        self.qr_urls: list[str] = []
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

        cfg = self.config
        print("Starting Log Client Distribution Server")
        print(f"Client Distribution Server will run on {cfg.target_ip}:{cfg.target_port}")
        print(
            f"REST API Server expected at {cfg.rest_api_server_ip}:{cfg.rest_api_server_port}"
        )
        self.client_html_path = find_client_html(cfg.target_html, cfg.search_root)
        if self.client_html_path is None:
            print(
                "Could not find client.html file. "
                "Please ensure it exists in the expected locations.",
                file=sys.stderr,
            )
        else:
            print(f"Client HTML path: {self.client_html_path}")

    def __enter__(self) -> "LogClientDistServer":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    @property
    def port(self) -> int:
        """Port actually bound while running, otherwise the configured one."""
        if self._httpd is not None:
            return self._httpd.server_address[1]
        return self.config.target_port

    def server_ip(self) -> str:
        """Address this host advertises to clients."""
        cfg = self.config
        if not is_wildcard(cfg.target_ip):
            return cfg.target_ip
        return pick_server_ip(
            cfg.target_ip, cfg.target_ip_keyword, get_available_ips(cfg.target_ip)
        )

    def _rest_host(self) -> str:
        rest_ip = self.config.rest_api_server_ip
        return self.server_ip() if rest_ip in ("localhost", "0.0.0.0") else rest_ip

    def api_base(self) -> str:
        """Base URL of the REST API given to the client page."""
        cfg = self.config
        return api_base_url(cfg.rest_api_server_ip, cfg.rest_api_server_port, self._rest_host())

    def client_html(self) -> str:
        """Client page content with API URLs rewritten."""
        if self.client_html_path is None:
            raise FileNotFoundError("client page was not found")
        content = self.client_html_path.read_text(encoding="utf-8")
        base = self.api_base()
        print(f"Replacing localhost with: {base}")
        return rewrite_client_html(content, base, self.config.rest_api_server_port)

    def info(self) -> dict:
        """Description of the server's configuration and detected addresses."""
        cfg = self.config
        server_ip = self._rest_host()
        return {
            "server": "Log Client Distribution Server",
            "target_ip": cfg.target_ip,
            "target_port": cfg.target_port,
            "rest_api_server_port": cfg.rest_api_server_port,
            "detected_server_ip": server_ip,
            "api_base_url": f"http://{server_ip}:{cfg.rest_api_server_port}",
            "target_html": cfg.target_html,
            "client_html_path": str(self.client_html_path or ""),
        }

    def handle_get(self, path: str) -> Response:
        """Answer a GET request for *path*."""
        if path in ("/", "/client.html"):
            try:
                content = self.client_html()
            except (OSError, UnicodeDecodeError) as exc:
                print(f"Failed to open client.html file: {exc}", file=sys.stderr)
                content = ""
            if not content:
                return _text(500, "Failed to load client.html")
            return Response(200, "text/html", content.encode("utf-8"))
        if path == "/info":
            body = json.dumps(self.info(), indent=2)
            return Response(200, "application/json", body.encode("utf-8"))
        if _STATIC_ROUTE.fullmatch(path):
            return self._static(path[1:])
        return _text(404, "")

    def _static(self, filename: str) -> Response:
        if ".." in Path(filename).parts:
            return _text(400, "Bad Request")
        base = self.client_html_path.parent if self.client_html_path else Path(".")
        file_path = base / filename
        if not file_path.exists():
            return _text(404, "Not Found")
        try:
            data = file_path.read_bytes()
        except OSError:
            return _text(500, "Failed to open file")
        return Response(200, content_type_for(filename), data)

    def generate_qr_codes(self) -> list[str]:
        """Build the client URLs and display them as QR codes."""
        cfg = self.config
        ips = get_available_ips(cfg.target_ip)
        print("Available IPs for QR code generation:")
        for number, ip in enumerate(ips, start=1):
            print(f"  IP {number}: {ip}")
        urls = build_qr_urls(ips, cfg.target_port, cfg.qr_distribute_count)
        for number, url in enumerate(urls, start=1):
            print(f"Generated QR URL {number}: {url}")
        self.qr_urls.extend(urls)
        if cfg.qr_location == "cli":
            show_qr_codes(self.qr_urls, sys.stdout)
        else:
            print(f"QR code display location not recognized: {cfg.qr_location}")
        return urls

    def start(self) -> None:
        """Show QR codes if enabled and serve in a background thread."""
        if self._httpd is not None:
            return
        if self.client_html_path is None:
            raise FileNotFoundError("client page was not found")
        cfg = self.config
        if cfg.show_qr_code:
            self.generate_qr_codes()

        print(f"HTTP Server starting on {cfg.target_ip}:{cfg.target_port}")
        httpd = ThreadingHTTPServer((cfg.target_ip, cfg.target_port), _make_handler(self))
        httpd.daemon_threads = True
        self._httpd = httpd
        self._thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        self._thread.start()

        print("Client Distribution Server started successfully")
        display_ip = self.server_ip() if cfg.target_ip == "0.0.0.0" else cfg.target_ip
        print("=== Access URLs ===")
        print(f"Client HTML: http://{display_ip}:{cfg.target_port}")
        print(f"REST API:    {self.api_base()}")

    def stop(self) -> None:
        """Shut the server down and wait for its thread."""
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def wait(self) -> None:
        """Block until the server thread ends."""
        while self._thread is not None and self._thread.is_alive():
            self._thread.join(0.5)


def _make_handler(app: LogClientDistServer) -> type[BaseHTTPRequestHandler]:
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
            self._send(app.handle_get(unquote(urlsplit(self.path).path)))

        def do_OPTIONS(self) -> None:
            self._send(Response(200, "text/plain"))

        def log_message(self, format, *args) -> None:
            _log.debug("%s - %s", self.address_string(), format % args)

    return _Handler


def _parse_args(argv: Optional[list[str]]) -> DistServerConfig:
    defaults = DistServerConfig()
    parser = argparse.ArgumentParser(description="Serve the log client page.")
    parser.add_argument("--target-ip", default=defaults.target_ip)
    parser.add_argument("--target-port", type=int, default=defaults.target_port)
    parser.add_argument("--target-ip-keyword", default=defaults.target_ip_keyword)
    parser.add_argument("--qr-distribute-count", type=int, default=defaults.qr_distribute_count)
    parser.add_argument(
        "--show-qr-code", action=argparse.BooleanOptionalAction, default=defaults.show_qr_code
    )
    parser.add_argument("--qr-location", default=defaults.qr_location)
    parser.add_argument("--rest-api-server-ip", default=defaults.rest_api_server_ip)
    parser.add_argument("--rest-api-server-port", type=int, default=defaults.rest_api_server_port)
    parser.add_argument("--target-html", default=defaults.target_html)
    parser.add_argument("--search-root", default=defaults.search_root)
    return DistServerConfig(**vars(parser.parse_args(argv)))


def main(argv: Optional[list[str]] = None) -> int:
    """Run the distribution server until interrupted."""
    server = LogClientDistServer(_parse_args(argv))
    if server.client_html_path is None:
        return 1
    try:
        server.start()
    except OSError as exc:
        print(
            f"Failed to start HTTP server on {server.config.target_ip}:"
            f"{server.config.target_port}: {exc}",
            file=sys.stderr,
        )
        return 1
    try:
        server.wait()
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())