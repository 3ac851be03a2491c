"""Error handling for tinyscheme. Only GenericExceptions should be encountered during evaluation: if another type of
error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Errors are ordinary Python exceptions while a form is being evaluated. They are only collapsed into a printed message
(and a neutral '()' result) at the session boundary, which is where ErrorHandler is used.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a tinyscheme error/warning."""

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False, source=None):
        """Parses args for GenericException or warning. '{}' placeholders in msg are filled with exprs (bolded).
        source is the text used for caret diagnosis, by default the first expr.
        """
        if exprs is None:
            exprs = ""
        if not isinstance(exprs, (list, tuple)):
            exprs = [exprs]  # a single offending value, which may itself be iterable (a Pair)
        exprs = [str(expr) for expr in exprs]

        self.plain_msg = msg.format(*exprs)
        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        if source is None:
            source = exprs[0] if exprs else ""  # exprs[0] should be the offending expr that caused the error
        self.expr = source
        self.end = end if end != -1 else len(self.expr)  # needed for error display

        self.start = start
        self.diagnosis = diagnosis
        self.internal = internal
        self.trace = []  # (path, line, line_num) entries added while unwinding through load

        super().__init__(self.plain_msg)

    def add_trace(self, path, line, line_num):
        """Records that this error passed through line line_num of path (innermost first)."""
        self.trace.append((path, line, line_num))


class UnboundSymbolError(GenericException):

    def __init__(self, name):
        super().__init__("unbound symbol '{}'", name, diagnosis=False)
        self.name = name


class NotAProcedureError(GenericException):

    def __init__(self, value):
        super().__init__("attempt to apply non-procedure '{}'", value, diagnosis=False)
        self.value = value


class ArityError(GenericException):

    def __init__(self, name, expected, got):
        super().__init__("'{}' expects {} argument(s), got {}", (name, expected, got), diagnosis=False)


class TypeMismatchError(GenericException):

    def __init__(self, name, expected, value):
        super().__init__("'{}' expects {}, got '{}'", (name, expected, value), diagnosis=False)
        self.value = value


class MalformedSyntaxError(GenericException):
    """Raised by the reader (with the offending text and position) and by special forms with a bad shape."""


class LoadError(GenericException):

    def __init__(self, path, reason):
        super().__init__("'{}' could not be loaded: {}", (path, reason), diagnosis=False)
        self.path = path


class RecursionDepthError(GenericException):

    def __init__(self):
        super().__init__("maximum recursion depth exceeded", diagnosis=False)


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom tinyscheme errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.traceback = {}
        self.errors = []  # every error thrown through this handler, in order

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_line(self, path, line, line_num):
        """Registers line in traceback given path. Should be called prior to Session add/run."""
        self.traceback[path] = (line, line_num)

    def remove_line(self, path):
        """Removes line from traceback given path. Should be called after successful Session add/run."""
        self.traceback[path] = (None, None)

    @staticmethod
    def diagnose(error, warning=False):
        """Returns offending part of error.expr highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        line_start = error.expr.rfind("\n", 0, error.start) + 1
        line_end = error.expr.find("\n", error.start)
        if line_end == -1:
            line_end = len(error.expr)
        line = error.expr[line_start:line_end]
        start = error.start - line_start
        end = min(max(error.end - line_start, start + 1), len(line) + 1)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args."""
        error = GenericException(*args, **kwargs)

        error_msg = ""
        for file, (line, line_num) in self.traceback.items():
            if line:
                error_msg += colored(f"{file}:{line_num}: ", attrs=["bold"])
                break
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg

        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error, warning=True))

    def throw(self, error):
        """Throws error using error and self.traceback. error must be a GenericException, and self.traceback must be a
        dict of file: (line, line_num) representing origination of error.
        """
        self.errors.append(error)

        entries = [(file, line, line_num) for file, (line, line_num) in self.traceback.items() if line]
        entries += reversed(error.trace)  # loaded files, outermost first

        error_msg = ""
        for file, line, line_num in entries:
            error_msg += f"  File '{file}', line {line_num}:\n"
            error_msg += f"    {line}\n"

        if len(entries) > 1:
            error_msg = "Traceback:\n" + error_msg

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error))

        if self.fatal:
            sys.exit(1)
        self.traceback = {file: (None, None) for file in self.traceback}  # if error occurred, reset traceback

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(RecursionDepthError())
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}'", f"{exc_type.__name__}: {exc_val}", internal=True))
            do_exit = True

        return not do_exit
