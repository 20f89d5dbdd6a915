import pytest
import requests

from grade_watcher.config import USER_AGENT
from grade_watcher.exceptions import TransportError
from grade_watcher.session import GradeSession


def make_response(status_code, url="https://jw.ustc.edu.cn/for-std/grade/sheet/getSemesters"):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response._content = b"[]"
    return response


def test_session_sends_browser_identity():
    with GradeSession() as session:
        assert session.session.headers['User-Agent'] == USER_AGENT


def test_get_passes_params_and_timeout(monkeypatch):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(method=method, url=url, **kwargs)
        return make_response(200, url)

    session = GradeSession(timeout=12)
    monkeypatch.setattr(session.session, "request", fake_request)

    response = session.get("https://example.test/list", params={"semesterIds": ""})

    assert response.status_code == 200
    assert seen == {"method": "GET", "url": "https://example.test/list",
                    "params": {"semesterIds": ""}, "timeout": 12}


def test_post_sends_form_data(monkeypatch):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(method=method, **kwargs)
        return make_response(200, "https://jw.ustc.edu.cn/home")

    session = GradeSession()
    monkeypatch.setattr(session.session, "request", fake_request)

    session.post("https://passport.ustc.edu.cn/login", data=[("username", "u")])

    assert seen["method"] == "POST"
    assert seen["data"] == [("username", "u")]
    assert seen["timeout"] is None


def test_network_error_becomes_transport_error(monkeypatch):
    error = requests.exceptions.ConnectionError("dns failure")

    def fake_request(method, url, **kwargs):
        raise error

    session = GradeSession()
    monkeypatch.setattr(session.session, "request", fake_request)

    with pytest.raises(TransportError) as excinfo:
        session.get("https://jw.ustc.edu.cn/")

    assert excinfo.value.original_exception is error


def test_http_error_status_becomes_transport_error(monkeypatch):
    session = GradeSession()
    monkeypatch.setattr(session.session, "request", lambda method, url, **kwargs: make_response(502, url))

    with pytest.raises(TransportError) as excinfo:
        session.get("https://jw.ustc.edu.cn/for-std/grade/sheet/getGradeList")

    assert isinstance(excinfo.value.original_exception, requests.exceptions.HTTPError)


def test_sessions_do_not_share_cookies():
    first = GradeSession()
    second = GradeSession()
    first.cookies.set("SESSION", "abc", domain="jw.ustc.edu.cn")

    assert "SESSION" not in second.cookies


def test_post_without_status_check_returns_error_response(monkeypatch):
    session = GradeSession()
    monkeypatch.setattr(session.session, "request",
                        lambda method, url, **kwargs: make_response(401, "https://passport.ustc.edu.cn/login"))

    response = session.post("https://passport.ustc.edu.cn/login", data=[("username", "u")], check_status=False)

    assert response.status_code == 401
