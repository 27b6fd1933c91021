"""
Configuration for the jobwatch service.

Loads settings from environment variables with sensible defaults.
The service log is written to ~/.jobwatch/ unless JOBWATCH_DATA_DIR is set.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Jobwatch configuration."""

    # Paths
    data_dir: Path = Path(os.environ.get("JOBWATCH_DATA_DIR", str(Path.home() / ".jobwatch")))
    log_file: Path = None

    # Logging
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    # Server
    host: str = os.environ.get("JOBWATCH_HOST", "0.0.0.0")
    port: int = int(os.environ.get("JOBWATCH_PORT", "9910"))

    # Target executable, relative paths resolve against the startup directory
    job_command: str = os.environ.get("JOB_COMMAND", "scripts/dummy-job.sh")

    # Retries
    max_retries: int = int(os.environ.get("MAX_RETRIES", "1"))
    retry_delay: float = float(os.environ.get("RETRY_DELAY", "1"))

    # Eviction of finished jobs
    cleanup_interval: int = int(os.environ.get("CLEANUP_INTERVAL", "300"))
    job_retention: int = int(os.environ.get("JOB_RETENTION", "3600"))

    def __post_init__(self):
        """Initialize derived paths and create directories."""
        self.data_dir = Path(self.data_dir)
        self.log_file = self.data_dir / "jobwatch.log"

        command = Path(self.job_command)
        if not command.is_absolute():
            command = Path.cwd() / command
        self.job_command = str(command)

        self.data_dir.mkdir(parents=True, exist_ok=True)


config = Config()
