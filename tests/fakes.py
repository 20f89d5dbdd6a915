"""Hand-written stand-ins for the HTTP session used by the pipeline tests."""

import json
import threading

from grade_watcher.config import GRADE_LIST_URL, LOGIN_URL, SEMESTERS_URL
from grade_watcher.exceptions import TransportError


class FakeResponse:
    def __init__(self, *, url="", json_data=None, text=None):
        self.url = url
        self._json_data = json_data
        if text is None and json_data is not None:
            text = json.dumps(json_data, ensure_ascii=False)
        self.text = text or ""

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Stands in for GradeSession; routes requests by URL and records them."""

    def __init__(self, login_url="https://jw.ustc.edu.cn/home", semesters=None,
                 all_payload="", filtered_payload="", grade_list_error=None):
        self.login_url = login_url
        self.semesters = semesters if semesters is not None else []
        self.all_payload = all_payload
        self.filtered_payload = filtered_payload
        self.grade_list_error = grade_list_error
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def post(self, url, data, check_status=True):
        self.calls.append(('POST', url, data))
        assert url == LOGIN_URL
        return FakeResponse(url=self.login_url)

    def get(self, url, params=None):
        with self._lock:
            self.calls.append(('GET', url, params))
        if url == SEMESTERS_URL:
            return FakeResponse(url=url, json_data=self.semesters)
        if url == GRADE_LIST_URL:
            if params['semesterIds'] == '':
                if self.grade_list_error is not None:
                    raise self.grade_list_error
                return FakeResponse(url=url, text=self.all_payload)
            return FakeResponse(url=url, text=self.filtered_payload)
        raise TransportError(f"unexpected url {url}")


CATALOG = [
    {"id": 1, "nameZh": "2023春", "nameEn": "2023 Spring", "schoolYear": "2022-2023", "current": False},
    {"id": 2, "nameZh": "2023秋", "nameEn": "2023 Fall", "schoolYear": "2023-2024", "current": True},
]

ALL_PAYLOAD = '{"overview":{"gpa":3.5,"passedCredits":120}}'
FILTERED_PAYLOAD = ('{"overview":{"gpa":3.8},"semesters":[{"id":1,"scores":'
                    '[{"courseNameCh":"线性代数","scoreCh":"A","credits":4.0}]}]}')
