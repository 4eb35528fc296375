import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class SchedulerConfig(BaseModel):
    """
    Configuration for ActionScheduler.
    """
    period: float = Field(0.02, gt=0, description="Scheduling period in seconds; longer ticks are logged as overruns")
    verbose: bool = Field(False, description="Trace every tick on the rich console")
    error_dir: Optional[str] = Field(None, description="Write a scheduler snapshot here whenever an action faults")
    save_dir: Optional[str] = Field(None, description="Write a scheduler snapshot here at the end of run()")

    @classmethod
    def from_env(cls, prefix: str = "COMMAND_SCHEDULER_", dotenv_path: str = None) -> "SchedulerConfig":
        """
        Build a config from environment variables, e.g. ``COMMAND_SCHEDULER_PERIOD``.
        A ``.env`` file is loaded first; variables already set win.
        """
        load_dotenv(dotenv_path)
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)
