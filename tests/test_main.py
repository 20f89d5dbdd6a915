from grade_watcher import __main__ as cli
from grade_watcher.config import MailConfig, UstcConfig, WatcherConfig
from grade_watcher.exceptions import ConfigError, LoginFailedError

CONFIG = WatcherConfig(
    mail=MailConfig(username="w@example.com", password="pw", server="smtp.example.com",
                    port=587, sendto=["a@example.com"]),
    ustc=UstcConfig(username="SA23001", password="secret", semesters=["2023春"], interval=10.0),
)


def test_parse_args_config_option():
    assert cli.parse_args(["-c", "watcher.env"]).config == "watcher.env"
    assert cli.parse_args([]).config is None


def test_config_error_exits_with_status_1(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda: None)

    def bad_config(path):
        raise ConfigError("Required setting USTC_USERNAME is not set.")

    monkeypatch.setattr(cli, "load_config", bad_config)

    assert cli.main(["-c", "missing.env"]) == 1


def test_fatal_watcher_error_sends_error_report(monkeypatch):
    sent = []
    monkeypatch.setattr(cli, "setup_logging", lambda: None)
    monkeypatch.setattr(cli, "load_config", lambda path: CONFIG)
    monkeypatch.setattr(cli, "send_error_report", lambda mail, message: sent.append(message))

    class FailingWatcher:
        def __init__(self, config):
            pass

        def run(self):
            raise LoginFailedError()

    monkeypatch.setattr(cli, "GradeWatcher", FailingWatcher)

    assert cli.main([]) == 1
    assert sent == ["Jiaowu login failed"]
