"""Local address discovery and QR code display for client URLs."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable, Iterable, Sequence
from typing import Optional, TextIO

WILDCARD_HOSTS = frozenset({"0.0.0.0", "localhost"})
LOOPBACK = "127.0.0.1"
_MAX_ADDRESSES = 5


def is_wildcard(host: str) -> bool:
    """True when *host* does not name one concrete address."""
    return host in WILDCARD_HOSTS


def _hostname_addresses() -> str:
    """Return the output of ``hostname -I``, or an empty string on failure."""
    try:
        result = subprocess.run(
            ["hostname", "-I"], capture_output=True, text=True, check=False
        )
    except OSError:
        return ""
    return result.stdout or ""


def get_available_ips(
    target_ip: str, runner: Optional[Callable[[], Optional[str]]] = None
) -> list[str]:
    """List addresses clients may use to reach this host.

    A concrete *target_ip* comes first, followed by up to five entries
    reported by *runner* (``hostname -I`` by default), loopback excluded.
    Falls back to ``["localhost"]`` when nothing is found.
    """
    ips = [] if is_wildcard(target_ip) else [target_ip]
    output = (runner or _hostname_addresses)() or ""
    for line in output.replace(" ", "\n").splitlines()[:_MAX_ADDRESSES]:
        ip = line.rstrip("\n\r ")
        if ip and ip != LOOPBACK:
            ips.append(ip)
    return ips or ["localhost"]


def pick_server_ip(target_ip: str, keyword: str, ips: Sequence[str]) -> str:
    """Choose the address to advertise for this server."""
    if not is_wildcard(target_ip):
        return target_ip
    for ip in ips:
        if keyword in ip:
            print(f"Selected IP with keyword '{keyword}': {ip}")
            return ip
    if ips:
        print(f"Using first available IP: {ips[0]}")
        return ips[0]
    print("No suitable IP found, using localhost")
    return "localhost"


def build_qr_urls(ips: Iterable[str], port: int, count: int) -> list[str]:
    """Build client URLs for the first *count* addresses."""
    urls = []
    for ip in ips:
        if len(urls) >= count:
            break
        urls.append(f"http://{ip}:{port}")
    return urls


def show_qr_codes(urls: Iterable[str], out: Optional[TextIO] = None) -> None:
    """Render each URL as a terminal QR code with ``qrencode``."""
    out = out or sys.stdout
    print("=== QR Code URLs ===", file=out)
    for number, url in enumerate(urls, start=1):
        print(f"QR Code {number}: {url}", file=out)
        try:
            result = subprocess.run(
                ["qrencode", "-t", "ANSI", url],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError:
            result = None
        if result is not None and result.returncode == 0:
            out.write(result.stdout or "")
        else:
            print(f"Manual QR generation needed for: {url}", file=out)
            print("Install qrencode with: sudo apt install qrencode", file=out)
    print("====================", file=out)