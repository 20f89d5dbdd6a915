# src/grade_watcher/session.py

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import requests

from .config import USER_AGENT
from .exceptions import TransportError

log = logging.getLogger(__name__)

FormData = Union[Dict[str, str], Sequence[Tuple[str, str]]]


class GradeSession:
    """
    HTTP session holding the cookie jar and browser identity for one pipeline run.

    Every request made through one instance shares the same cookies, so the
    SSO login performed on it authenticates all later calls. Create a new
    instance for each run; never reuse one across different credentials.
    """

    def __init__(self, user_agent: str = USER_AGENT, timeout: Optional[float] = None):
        """
        Args:
            user_agent: The User-Agent header sent with every request.
            timeout: Optional per-request timeout in seconds. None leaves the
                     transport default in place.
        """
        self.session = requests.Session()
        self.session.headers.update({'User-Agent': user_agent})
        self.timeout = timeout

    def __enter__(self) -> "GradeSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    @property
    def cookies(self) -> requests.cookies.RequestsCookieJar:
        return self.session.cookies

    def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Sends a GET request. Raises TransportError on network or HTTP status failure."""
        return self._send('GET', url, params=params)

    def post(self, url: str, data: FormData, check_status: bool = True) -> requests.Response:
        """
        Sends a form-encoded POST request.

        With `check_status` False, an error status is returned like any other
        response and only network failures raise TransportError.
        """
        return self._send('POST', url, check_status=check_status, data=data)

    def _send(self, method: str, url: str, check_status: bool = True, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            log.debug(f"{method} {response.url} -> {response.status_code}")
            if check_status:
                response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}", original_exception=e) from e
