import os

import pytest
from pydantic import ValidationError

from CommandFramework.core.ActionScheduler import ActionScheduler
from CommandFramework.core.Resource import Resource
from CommandFramework.core.SchedulerConfig import SchedulerConfig
from CommandFramework.debugger.ConsoleDebugger import ConsoleDebugger


def test_config_defaults():
    config = SchedulerConfig()
    assert config.period == 0.02
    assert config.verbose is False
    assert config.error_dir is None and config.save_dir is None


def test_config_rejects_non_positive_period():
    with pytest.raises(ValidationError):
        SchedulerConfig(period=0)


def test_config_from_env_and_dotenv(tmp_path, monkeypatch):
    monkeypatch.setattr(os, "environ", dict(os.environ))
    for name in ("PERIOD", "VERBOSE", "ERROR_DIR", "SAVE_DIR"):
        os.environ.pop(f"COMMAND_SCHEDULER_{name}", None)
    dotenv = tmp_path / ".env"
    dotenv.write_text("COMMAND_SCHEDULER_VERBOSE=true\nCOMMAND_SCHEDULER_PERIOD=0.5\n")
    os.environ["COMMAND_SCHEDULER_PERIOD"] = "0.05"

    config = SchedulerConfig.from_env(dotenv_path=str(dotenv))

    assert config.period == 0.05
    assert config.verbose is True
    assert config.error_dir is None


def test_console_debugger_writes_log_file(tmp_path, make_action):
    debugger = ConsoleDebugger(log_dir=tmp_path / "debug", show_ticks=True)
    scheduler = ActionScheduler(SchedulerConfig(period=1.0), debugger=debugger)
    arm = scheduler.register_resource(Resource("arm"))
    blocker = make_action("Blocker", arm).with_interruption_behavior("cancel_incoming")
    scheduler.schedule(blocker, make_action("Refused", arm), make_action("Short", finish_after=1))
    scheduler.run(2)
    scheduler.close()

    text = (tmp_path / "debug" / "console_debug.log").read_text(encoding="utf-8")
    assert "Debugger initialized" in text
    assert "Tick 1" in text
    assert "Initialized action RecordingAction(Blocker) at tick 1" in text
    assert "Conflict for action RecordingAction(Refused) at tick 1: arm held by Blocker" in text
    assert "Ended action RecordingAction(Short) at tick 2 (status=finished)" in text
    assert "Ended action RecordingAction(Blocker) at tick 2 (status=interrupted)" in text
    assert text.rstrip().endswith("Debugger exited")
    assert len(debugger.lines) == len(text.splitlines())
