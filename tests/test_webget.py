import socket
import threading

import pytest

from minnow.webget import get_url, main


def _serve_once(listener, response, received):
    conn, _ = listener.accept()
    with conn:
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = conn.recv(4096)
            if not chunk:
                break
            data += chunk
        received.append(data)
        conn.sendall(response)


@pytest.fixture
def http_server(monkeypatch):
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    real_getaddrinfo = socket.getaddrinfo

    def fake_getaddrinfo(host, service, *args, **kwargs):
        if service == "http":
            service = str(port)
        return real_getaddrinfo(host, service, *args, **kwargs)

    monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)
    yield listener
    listener.close()


def test_get_url_fetches_response(http_server, capsys):
    response = b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nhello"
    received = []
    thread = threading.Thread(target=_serve_once, args=(http_server, response, received))
    thread.start()
    result = get_url("127.0.0.1", "/hello")
    thread.join(timeout=10)

    assert result == response
    assert received == [
        b"GET /hello HTTP/1.1\r\nHost: 127.0.0.1\r\nConnection: close\r\n\r\n"
    ]
    captured = capsys.readouterr()
    assert captured.out == response.decode()
    assert "Function called: get_URL(127.0.0.1, /hello)" in captured.err


def test_main_runs_get_url(http_server, capsys):
    response = b"HTTP/1.1 404 Not Found\r\n\r\n"
    received = []
    thread = threading.Thread(target=_serve_once, args=(http_server, response, received))
    thread.start()
    assert main(["127.0.0.1", "/missing"]) == 0
    thread.join(timeout=10)
    assert received[0].startswith(b"GET /missing HTTP/1.1\r\n")
    assert capsys.readouterr().out == response.decode()


def test_unresolvable_host_reports_error(capsys):
    assert get_url("nonexistent.invalid", "/") is None
    assert "getaddrinfo(nonexistent.invalid, http)" in capsys.readouterr().err


@pytest.mark.parametrize("args", [[], ["host"], ["host", "/path", "extra"]])
def test_wrong_argument_count_prints_usage(args, capsys):
    assert main(args) == 1
    err = capsys.readouterr().err
    assert "Usage:" in err
    assert "HOST PATH" in err
    assert "stanford.edu /class/cs144" in err