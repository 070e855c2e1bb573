#!/usr/bin/python
import os
import sys

from nativelib import cli
from nativelib import error
from nativelib import log


def _attach_debugger(sig, frame):
    import pdb
    pdb.Pdb().set_trace(frame)


def main():
    """ Console entry point. Errors are logged and turned into exit status 1. """
    if os.name == "posix":
        import signal
        signal.signal(signal.SIGUSR1, _attach_debugger)

    try:
        cli.cli(obj=dict())
    except KeyboardInterrupt:
        log.warning("Interrupted by user")
        sys.exit(1)
    except error.LoggedError as e:
        log.error("{}", log.format_exception_msg(e.exc))
        sys.exit(1)
    except Exception as e:
        log.exception(e)
        if cli.debug_enabled:
            import pdb
            pdb.post_mortem(e.__traceback__)
        sys.exit(1)


if __name__ == "__main__":
    main()
