"""
Console logger - leveled log sink for the command line
Terminal counterpart of the log textbox used by the installer callbacks
"""

import sys
from typing import TextIO, Optional


class ConsoleLogger:
    """
    Writes installer messages to the terminal with a color per level

    Usage:
        logger = ConsoleLogger()
        manager.install_modpack(..., log_callback=logger.add_log)
    """

    # ANSI colors per log type
    LOG_COLORS = {
        "normal": "\033[0m",
        "info": "\033[94m",
        "success": "\033[92m",
        "warning": "\033[93m",
        "error": "\033[91m"
    }
    RESET = "\033[0m"

    def __init__(self, stream: Optional[TextIO] = None, error_stream: Optional[TextIO] = None,
                 use_colors: Optional[bool] = None):
        self.stream = stream or sys.stdout
        self.error_stream = error_stream or sys.stderr
        if use_colors is None:
            use_colors = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.use_colors = use_colors

    def add_log(self, message: str, log_type: str = "normal"):
        """
        Writes a message with the color of its level

        Args:
            message: The message to write (newlines are the caller's job)
            log_type: Log type (normal, info, success, warning, error)
        """
        # Validate log type
        if log_type not in self.LOG_COLORS:
            log_type = "normal"

        stream = self.error_stream if log_type in ("warning", "error") else self.stream

        if self.use_colors and log_type != "normal":
            stream.write(f"{self.LOG_COLORS[log_type]}{message}{self.RESET}")
        else:
            stream.write(message)
        stream.flush()
