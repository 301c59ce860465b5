"""
Run-level file logging.

Mirrors everything logged during one aggregation run into a dedicated log
file so a batch can be reviewed after the console output is gone.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RunLogHandler:
    """
    Context manager for run-level file logging.

    Attaches a FileHandler to the root logger on enter and removes it on
    exit, bracketing the run with start/end markers.
    """

    def __init__(self, log_file: Union[str, Path], run_label: str = "aggregation"):
        """
        Args:
            log_file: Destination file; parent directories are created
            run_label: Name written into the start/end markers
        """
        self.log_file = Path(log_file)
        self.run_label = run_label
        self.file_handler: Optional[logging.FileHandler] = None
        self.root_logger = logging.getLogger()

    def __enter__(self):
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self.file_handler = logging.FileHandler(self.log_file, mode="w", encoding="utf-8")
            self.file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            self.file_handler.setLevel(self.root_logger.level or logging.INFO)
            self.root_logger.addHandler(self.file_handler)

            start_time = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
            self.root_logger.info("=" * 80)
            self.root_logger.info(f"Run started: {self.run_label}")
            self.root_logger.info(f"Start time: {start_time}")
            self.root_logger.info("=" * 80)
        except OSError as e:
            # Non-blocking: a run without a file log is still a valid run
            logger.warning(f"Failed to initialize run logging at {self.log_file}: {e}")
            self.file_handler = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.file_handler:
            return
        try:
            end_time = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
            self.root_logger.info("=" * 80)
            if exc_type is None:
                self.root_logger.info(f"Run completed successfully: {self.run_label}")
            else:
                self.root_logger.error(f"Run failed: {self.run_label} - {exc_type.__name__}: {exc_val}")
            self.root_logger.info(f"End time: {end_time}")
            self.root_logger.info("=" * 80)
            self.file_handler.flush()
        finally:
            self.file_handler.close()
            self.root_logger.removeHandler(self.file_handler)
            self.file_handler = None
