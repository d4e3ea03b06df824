import pytest

from logportal.client_html import (
    api_base_url,
    content_type_for,
    find_client_html,
    rewrite_client_html,
)


def test_find_exact_path(tmp_path):
    page = tmp_path / "client.html"
    page.write_text("<html></html>")
    assert find_client_html("client.html", tmp_path) == page.absolute()


def test_find_adds_html_extension(tmp_path):
    page = tmp_path / "client.html"
    page.write_text("x")
    assert find_client_html("client", tmp_path) == page.absolute()


def test_find_searches_subdirectories(tmp_path):
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    page = nested / "viewer.html"
    page.write_text("x")
    assert find_client_html("viewer", tmp_path) == page.absolute()


def test_find_absolute_path(tmp_path):
    page = tmp_path / "client.html"
    page.write_text("x")
    assert find_client_html(str(page), tmp_path / "elsewhere") == page


def test_find_missing_returns_none(tmp_path, capsys):
    assert find_client_html("nothing.html", tmp_path) is None
    assert "Could not find specified target_html: nothing.html" in capsys.readouterr().err


def test_find_empty_name(tmp_path):
    assert find_client_html("", tmp_path) is None


@pytest.mark.parametrize("rest_ip", ["localhost", "0.0.0.0"])
def test_api_base_uses_server_ip_for_local(rest_ip):
    assert api_base_url(rest_ip, 8080, "10.1.1.1") == "http://10.1.1.1:8080"


def test_api_base_uses_explicit_ip():
    assert api_base_url("10.2.2.2", 9000, "10.1.1.1") == "http://10.2.2.2:9000"


def test_rewrite_const_declaration():
    html = "const API_BASE = 'http://localhost:8080';"
    out = rewrite_client_html(html, "http://10.1.1.1:8080", 8080)
    assert out == "const API_BASE = 'http://10.1.1.1:8080';"


def test_rewrite_all_occurrences():
    html = 'a="http://localhost:8080/logs" b=`http://localhost:8080`'
    out = rewrite_client_html(html, "http://h:8080", 8080)
    assert "localhost" not in out
    assert out.count("http://h:8080") == 2


def test_rewrite_custom_port_reference():
    html = "fetch('http://localhost:9000/nodes')"
    out = rewrite_client_html(html, "http://h:9000", 9000)
    assert out == "fetch('http://h:9000/nodes')"


def test_rewrite_other_8080_when_port_differs():
    html = "ws://other:8080/stream"
    assert rewrite_client_html(html, "http://h:9000", 9000) == "ws://other:9000/stream"


def test_rewrite_keeps_8080_on_default_port():
    html = "ws://other:8080/stream"
    assert rewrite_client_html(html, "http://h:8080", 8080) == html


def test_rewrite_replacement_is_literal():
    html = "http://localhost:8080"
    base = r"http://a\1$0:8080"
    assert rewrite_client_html(html, base, 8080) == base


@pytest.mark.parametrize(
    "name, expected",
    [
        ("style.css", "text/css"),
        ("app.js", "application/javascript"),
        ("img/logo.png", "image/png"),
        ("a.jpeg", "image/jpeg"),
        ("a.jpg", "image/jpeg"),
        ("f.woff2", "font/woff2"),
        ("f.ttf", "font/truetype"),
        ("f.eot", "application/vnd.ms-fontobject"),
        ("readme", "text/plain"),
        ("data.bin", "text/plain"),
    ],
)
def test_content_type_for(name, expected):
    assert content_type_for(name) == expected