"""
Shared utilities: logger setup and the wall-clock budget of a search.
"""

import logging
import math
import os
import time
from pathlib import Path
from typing import Optional


def setup_logging(
    log_type: str,
    problem_name: str,
    log_dir: Optional[str] = 'logs',
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Sets up a logger for a search run. Pass log_dir=None to log to the console only.

    Calling it again for the same run type and problem reuses the handlers
    already attached, adding a file handler only for a log file not yet written to.
    """
    logger = logging.getLogger(f"{log_type}_{problem_name}_logger")
    logger.setLevel(level)

    handlers = []
    # Prevent adding multiple handlers if the logger already exists
    if not logger.handlers:
        handlers.append(logging.StreamHandler())
    if log_dir is not None:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)
        log_file = os.path.abspath(log_dir_path / f"{log_type}_logs.log")
        if not any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == log_file
            for handler in logger.handlers
        ):
            handlers.append(logging.FileHandler(log_file, mode='a'))

    if handlers:
        session_id = int(time.time())
        formatter = logging.Formatter(
            f'%(asctime)s - %(levelname)s - [Session: {session_id}]-[Problem: {problem_name}] - %(message)s'
        )
        for handler in handlers:
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    return logger


class Timer:
    """Wall-clock time budget, checked cooperatively by the search loops."""

    def __init__(self, time_limit: float = math.inf):
        self.time_limit = time_limit
        self._start = time.perf_counter()

    def start(self) -> None:
        self._start = time.perf_counter()

    def elapsed_time(self) -> float:
        return time.perf_counter() - self._start

    def remaining_time(self) -> float:
        return max(0.0, self.time_limit - self.elapsed_time())

    def needs_to_end(self) -> bool:
        return self.elapsed_time() >= self.time_limit
