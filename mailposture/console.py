"""Colorized, timestamped console logging."""

import sys
from datetime import datetime

from colorama import init, Fore, Style

# Initialize colorama
init(autoreset=True)

LEVEL_COLORS = {
    "INFO": Fore.CYAN,
    "SUCCESS": Fore.GREEN,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Fore.MAGENTA,
    "DEBUG": Fore.BLUE,
}


class Console:
    """Scanner log sink; INFO and DEBUG are only shown in verbose mode"""

    def __init__(self, verbose=False, stream=None):
        self.verbose = verbose
        self.stream = stream

    def log_message(self, message, level="INFO"):
        """Enhanced logging with timestamps and colors"""
        if not self.verbose and level in ("INFO", "DEBUG"):
            return

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        color = LEVEL_COLORS.get(level, Fore.WHITE)
        stream = self.stream or sys.stderr
        print(f"{color}[{timestamp}] [{level}] {message}{Style.RESET_ALL}", file=stream)


console = Console()


def log_message(message, level="INFO"):
    console.log_message(message, level)
