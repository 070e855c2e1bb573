import sys

from colorama import Fore, Style
from nativelib import config


def enabled():
    if not (sys.stdout.isatty() and sys.stderr.isatty()):
        return False
    return config.getboolean("nativelib", "colors", True)


def _paint(s, color):
    if not enabled():
        return s
    return color + Style.BRIGHT + s + Style.RESET_ALL


def red(s):
    return _paint(s, Fore.RED)


def yellow(s):
    return _paint(s, Fore.YELLOW)
