# src/grade_watcher/watcher.py

import time
import logging
from typing import Callable, Optional, Sequence

from .config import WatcherConfig, MailConfig
from .email_utils import send_grade_report, send_error_report
from .exceptions import GradeWatcherBaseError, NotificationSystemError
from .grade_fetcher import get_grade
from .models import Grade, grade_changed

log = logging.getLogger(__name__)

Fetch = Callable[[str, str, Sequence[str]], Grade]


class GradeWatcher:
    """
    Polls the grade pipeline and emails a report whenever the snapshot changes.

    The first fetch must succeed; later failures are reported by email and
    the loop carries on. Every tick runs the pipeline from scratch with a new
    session, so nothing from a previous login is reused.
    """

    def __init__(self,
                 config: WatcherConfig,
                 fetch: Fetch = get_grade,
                 report: Callable[[MailConfig, Grade], None] = send_grade_report,
                 report_error: Callable[[MailConfig, str], None] = send_error_report,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.fetch = fetch
        self.report = report
        self.report_error = report_error
        self.sleep = sleep
        self.last_grade: Optional[Grade] = None

    def _fetch(self) -> Grade:
        ustc = self.config.ustc
        return self.fetch(ustc.username, ustc.password, ustc.semesters)

    def start(self) -> Grade:
        """
        Takes the initial snapshot and optionally reports it.

        Raises:
            GradeWatcherBaseError: If the first fetch or the first report fails.
        """
        log.info("App started")
        self.last_grade = self._fetch()
        if self.config.ustc.send_first:
            self.report(self.config.mail, self.last_grade)
        return self.last_grade

    def check_once(self) -> bool:
        """
        Runs one polling tick.

        Returns:
            True if a changed snapshot was fetched and reported.

        Raises:
            NotificationSystemError: If an error report itself cannot be sent.
        """
        try:
            grade = self._fetch()
        except GradeWatcherBaseError as e:
            log.error(f"Get grade failed: {e}")
            self.report_error(self.config.mail, f"Get grade failed: {e}")
            return False

        if not grade_changed(self.last_grade, grade):
            log.debug("No grade change.")
            return False

        log.info("New grade detected")
        try:
            self.report(self.config.mail, grade)
        except NotificationSystemError as e:
            # Keep the old snapshot so the change is reported again next tick
            log.error(f"Send email failed: {e}")
            self.report_error(self.config.mail, f"Send email failed: {e}")
            return False

        self.last_grade = grade
        return True

    def run(self) -> None:
        """Takes the initial snapshot, then polls forever at the configured interval."""
        self.start()
        interval = self.config.ustc.interval
        while True:
            log.info(f"Sleep for {interval:.1f} minutes")
            self.sleep(60 * interval)
            self.check_once()
