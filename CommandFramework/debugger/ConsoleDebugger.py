from pathlib import Path
from typing import Optional, Union
from datetime import datetime

from CommandFramework.core.DebugInterface import DebugInterface
from command_logging import logger
from util.SchedulerException import ActionFault, ResourceConflict


class ConsoleDebugger(DebugInterface):
    """
    A console-based debugger that prints and optionally logs scheduling events.
    """
    def __init__(self, print_console: bool = False, show_ticks: bool = False, log_dir: Optional[Union[str, Path]] = None):
        """
        :param print_console: If True, prints every event.
        :param show_ticks: If True, also records the start of every tick.
        :param log_dir: Optional directory to save a 'console_debug.log' file. If provided,
                        the log file is reset on init_debugger and appended thereafter.
        """
        super().__init__()
        self.print_console = print_console
        self.show_ticks = show_ticks
        self.lines = []
        if log_dir:
            self.log_dir = Path(log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = self.log_dir / 'console_debug.log'
        else:
            self.log_file = None

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def _log(self, message: str) -> None:
        """Prints to console, keeps the line and appends to log file if configured."""
        self.lines.append(message)
        if self.print_console:
            print(message)
        if self.log_file:
            try:
                with open(self.log_file, 'a', encoding='utf-8') as f:
                    f.write(message + "\n")
            except OSError as e:
                logger.warning(f"[{self._timestamp()}] Failed to write debug log: {e}")

    def init_debugger(self) -> None:
        """Initialize debugger, clearing log file if needed."""
        if self.log_file:
            self.log_file.unlink(missing_ok=True)
        self._log(f"[{self._timestamp()}] Debugger initialized")

    def exit_debugger(self) -> None:
        self._log(f"[{self._timestamp()}] Debugger exited")

    def start_tick(self, tick: int) -> None:
        if self.show_ticks:
            self._log(f"[{self._timestamp()}] Tick {tick}")

    def binding_fired(self, binding: "Binding", request: "Request", tick: int) -> None:
        self._log(f"[{self._timestamp()}] Binding {binding} requested {request.value} at tick {tick}")

    def action_initialized(self, action: "Schedulable", tick: int) -> None:
        self._log(f"[{self._timestamp()}] Initialized action {type(action).__name__}({action.uuid}) at tick {tick}")

    def action_ended(self, action: "Schedulable", tick: int, interrupted: bool) -> None:
        status = "interrupted" if interrupted else "finished"
        self._log(f"[{self._timestamp()}] Ended action {type(action).__name__}({action.uuid}) at tick "
                  f"{tick} (status={status})")

    def resource_conflict(self, action: "Schedulable", conflict: ResourceConflict, tick: int) -> None:
        self._log(f"[{self._timestamp()}] Conflict for action {type(action).__name__}({action.uuid}) "
                  f"at tick {tick}: {', '.join(conflict.resources)} held by {', '.join(conflict.holders) or '-'}")

    def error_action(self, action: "Schedulable", tick: int, fault: ActionFault) -> None:
        self._log(f"[{self._timestamp()}] Error in action {type(action).__name__}({action.uuid}) "
                  f"at tick {tick}: {fault}")
