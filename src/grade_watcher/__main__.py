# src/grade_watcher/__main__.py

import sys
import argparse
import logging

from .config import load_config
from .email_utils import send_error_report
from .exceptions import ConfigError, GradeWatcherBaseError, NotificationSystemError
from .logging_config import setup_logging
from .watcher import GradeWatcher

log = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="grade-watcher", description="Watch USTC grades and email changes.")
    parser.add_argument('-c', '--config', metavar='FILE', default=None,
                        help='Sets a custom config (env) file. Defaults to .env in the working directory.')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        log.error(f"Config error: {e}")
        return 1

    try:
        GradeWatcher(config).run()
    except GradeWatcherBaseError as e:
        log.error(f"{e}")
        try:
            send_error_report(config.mail, f"{e}")
        except NotificationSystemError:
            log.exception("Could not send the error report either.")
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted, exiting.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
