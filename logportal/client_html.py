"""Locating and rewriting the browser client page."""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_REST_PORT = 8080

_CONTENT_TYPES = {
    ".css": "text/css",
    ".js": "application/javascript",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".svg": "image/svg+xml",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/truetype",
    ".eot": "application/vnd.ms-fontobject",
}


def find_client_html(
    target_html: str, search_root: Union[str, os.PathLike] = "."
) -> Optional[Path]:
    """Find the client page by path, by path plus ``.html``, or by name below *search_root*."""
    if not target_html:
        return None
    root = Path(search_root)
    for candidate in (root / target_html, root / f"{target_html}.html"):
        if candidate.exists():
            return candidate.absolute()

    names = {target_html, f"{target_html}.html"}
    try:
        for directory, subdirs, files in os.walk(root):
            subdirs.sort()
            for name in sorted(files):
                if name in names:
                    return (Path(directory) / name).absolute()
    except OSError as exc:
        print(f"Error searching for target HTML: {exc}", file=sys.stderr)

    print(f"Could not find specified target_html: {target_html}", file=sys.stderr)
    return None


def api_base_url(rest_ip: str, rest_port: int, server_ip: str) -> str:
    """Base URL of the REST API as a browser on another machine should see it."""
    host = server_ip if rest_ip in ("localhost", "0.0.0.0") else rest_ip
    return f"http://{host}:{rest_port}"


def rewrite_client_html(content: str, api_base: str, rest_port: int) -> str:
    """Point every local API reference in *content* at *api_base*."""
    replacements = [
        ("http://localhost:8080", api_base),
        (f"http://localhost:{rest_port}", api_base),
        ("'http://localhost:8080'", f"'{api_base}'"),
        ('"http://localhost:8080"', f'"{api_base}"'),
        ("`http://localhost:8080`", f"`{api_base}`"),
        (
            "const API_BASE = 'http://localhost:8080';",
            f"const API_BASE = '{api_base}';",
        ),
        (
            'const API_BASE = "http://localhost:8080";',
            f'const API_BASE = "{api_base}";',
        ),
    ]
    if rest_port != DEFAULT_REST_PORT:
        replacements.append((":8080", f":{rest_port}"))
    for pattern, replacement in replacements:
        content = re.sub(pattern, lambda _match, r=replacement: r, content)
    return content


def content_type_for(filename: str) -> str:
    """MIME type served for a static asset."""
    return _CONTENT_TYPES.get(Path(filename).suffix, "text/plain")