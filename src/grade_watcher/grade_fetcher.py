# src/grade_watcher/grade_fetcher.py

import time
import logging
import concurrent.futures
from typing import Callable, Dict, List, Sequence, Tuple

import requests

from .config import (
    LOGIN_URL, LOGIN_SERVICE_URL, SEMESTERS_URL, GRADE_LIST_URL, TRAIN_TYPE_ID
)
from .exceptions import LoginFailedError, GradeMalformedError, TransportError
from .extractor import extract_grade
from .models import Grade, SemesterInfo
from .session import GradeSession

log = logging.getLogger(__name__)

# Expected record fields of the semester catalog and their JSON types
SEMESTER_FIELDS = {
    'id': int,
    'nameZh': str,
    'nameEn': str,
    'schoolYear': str,
    'current': bool,
}


def select_semester_ids(catalog: Sequence[SemesterInfo], selected_names: Sequence[str]) -> str:
    """
    Returns the comma-joined ids of the catalog semesters whose name is selected.

    Ids keep catalog order, not the order of `selected_names`. Names absent
    from the catalog are ignored.
    """
    return ','.join(str(s['id']) for s in catalog if s['nameZh'] in selected_names)


def _check_semester_record(record) -> SemesterInfo:
    if not isinstance(record, dict):
        raise ValueError(f"semester record is not an object: {record!r}")
    for field, expected in SEMESTER_FIELDS.items():
        value = record.get(field)
        # bool is an int subclass, so it must not pass as an id
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ValueError(f"semester field '{field}' missing or not {expected.__name__}: {record!r}")
    return {field: record[field] for field in SEMESTER_FIELDS}


# --- USTC Jiaowu Fetcher Class (HTTP Layer) ---
class GradeFetcher:
    """
    Handles the HTTP exchanges with the USTC passport and Jiaowu endpoints.

    All calls go through one GradeSession, whose cookie jar carries the login
    into the later requests. Nothing here retries; every failure is raised to
    the caller.
    """

    def __init__(self, session: GradeSession):
        self.session = session

    def login(self, username: str, password: str) -> None:
        """
        Logs in through the passport SSO form.

        Raises:
            LoginFailedError: If the redirect chain did not end on a `/home` page.
            TransportError: On network failure.
        """
        data = [
            ('model', 'uplogin.jsp'),
            ('service', LOGIN_SERVICE_URL),
            ('warn', ''),
            ('showCode', ''),
            ('username', username),
            ('password', password),
            ('button', ''),
        ]
        # The landing URL decides the outcome, whatever the status code
        response = self.session.post(LOGIN_URL, data=data, check_status=False)
        if '/home' not in response.url:
            log.warning(f"Login failed, landed on: {response.url}")
            raise LoginFailedError(final_url=response.url)
        log.info("Logined")

    def fetch_semesters(self) -> List[SemesterInfo]:
        """
        Fetches the semester catalog.

        Raises:
            TransportError: On network failure or if the body is not a list of semester records.
        """
        response = self.session.get(SEMESTERS_URL)
        try:
            records = response.json()
            if not isinstance(records, list):
                raise ValueError(f"semester catalog is not a list: {type(records).__name__}")
            semesters = [_check_semester_record(record) for record in records]
        except (ValueError, RecursionError) as e:
            raise TransportError(f"Cannot decode semester catalog: {e}", original_exception=e) from e
        log.info("Semesters get")
        log.debug(f"Semester catalog has {len(semesters)} entries.")
        return semesters

    def _fetch_grade_list(self, semester_ids: str) -> requests.Response:
        return self.session.get(GRADE_LIST_URL, params={
            'trainTypeId': TRAIN_TYPE_ID,
            'semesterIds': semester_ids,
        })

    def fetch_grade_lists(self, semester_ids: str) -> Tuple[str, str]:
        """
        Fetches the unfiltered and the semester-filtered grade lists concurrently.

        Both requests are always waited on before either result is used, so a
        failure in one never leaves the other running.

        Args:
            semester_ids: Comma-joined semester ids for the filtered query.

        Returns:
            A tuple (all_text, filtered_text) of raw response bodies.

        Raises:
            TransportError: If either request failed.
        """
        start_time = time.time()
        with concurrent.futures.ThreadPoolExecutor(max_workers=2, thread_name_prefix="GradeListFetcher") as executor:
            all_future = executor.submit(self._fetch_grade_list, '')
            filtered_future = executor.submit(self._fetch_grade_list, semester_ids)
            concurrent.futures.wait([all_future, filtered_future])

        # Re-raises the worker's exception, unfiltered request first
        all_response = all_future.result()
        filtered_response = filtered_future.result()

        log.info("Grade get")
        log.debug(f"Fetched both grade lists in {time.time() - start_time:.2f}s.")
        return all_response.text, filtered_response.text


def get_grade(username: str, password: str, semesters: Sequence[str],
              session_factory: Callable[[], GradeSession] = GradeSession) -> Grade:
    """
    Runs the full pipeline: login, semester catalog, both grade lists, extraction.

    A fresh session is created for the run and closed afterwards.

    Args:
        username: Passport username.
        password: Passport password, in plaintext.
        semesters: Display names (nameZh) of the semesters to report on.
        session_factory: Builds the session for this run.

    Returns:
        The current Grade snapshot.

    Raises:
        LoginFailedError: If the login was rejected.
        TransportError: On any network, HTTP status or catalog decoding failure.
        GradeMalformedError: If the grade payloads lack the expected structure.
    """
    with session_factory() as session:
        fetcher = GradeFetcher(session)
        fetcher.login(username, password)

        catalog = fetcher.fetch_semesters()
        semester_ids = select_semester_ids(catalog, semesters)
        log.debug(f"Selected semester ids: '{semester_ids}'")

        all_text, filtered_text = fetcher.fetch_grade_lists(semester_ids)

    semester_names: Dict[int, str] = {s['id']: s['nameZh'] for s in catalog}
    grade = extract_grade(all_text, filtered_text, semester_names)
    if grade is None:
        raise GradeMalformedError()
    return grade
