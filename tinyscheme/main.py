"""Runs tinyscheme files or the interactive shell. Also uses error handling context manager. Installed as the
tinyscheme console script.
"""

import argparse
import sys

from tinyscheme.lang.error import ErrorHandler
from tinyscheme.lang.session import Session
from tinyscheme.lang.shell import Shell

RECURSION_LIMIT = 10000  # host recursion limit, which bounds evaluation depth


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="tinyscheme", description="A small Lisp interpreter.")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--recursion-limit", type=int, default=RECURSION_LIMIT,
                        help=f"maximum host recursion depth (default: {RECURSION_LIMIT})")
    parser.add_argument("--echo", action="store_true", help="print the result of every top-level form in a file")
    parser.add_argument("-q", "--quiet", action="store_true", help="do not print the shell banner")
    return parser.parse_args(argv)


def main(argv=None):
    """Runs tinyscheme interpreter. Returns the exit status."""
    args = parse_args(argv)
    sys.setrecursionlimit(max(args.recursion_limit, 100))

    with ErrorHandler(fatal=False) as error_handler:
        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False)
            sess.run(echo=args.echo)
            return 1 if error_handler.errors else 0

        shell = Shell(Session(error_handler, Session.SH_FILE, cmd_line=True))
        if args.quiet:
            shell.intro = ""
        shell.cmdloop()
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
