"""Session control for tinyscheme. Owns the global environment and runs top-level forms, either in command line mode
or file interpretation mode.

The session is the boundary where errors stop being exceptions: each top-level form runs under the ErrorHandler, so a
failing form is reported, yields nil, and never prevents later forms from running.
"""

from tinyscheme.lang.error import GenericException, MalformedSyntaxError
from tinyscheme.lang.primitives import make_global
from tinyscheme.pure.evaluator import evaluate
from tinyscheme.pure.lexical import Reader
from tinyscheme.pure.values import NIL


class Session:
    """Governs a tinyscheme session, with control over the global environment."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, cmd_line=True):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.env = make_global()  # the single global frame, mutated in place by define
        self.to_exec = []         # list of (form, line, line_num) to evaluate
        self.results = []         # printed results not echoed by run, oldest first

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            exprs = []
            add_to_prev = False

            try:
                with open(path, "r") as file:
                    for line_num, line in enumerate(file):
                        __, add_to_prev = self.preprocess_line(line, line_num + 1, add_to_prev, exprs)
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

            for expr, line_num in exprs:
                with self.error_handler:
                    self.add(expr, line_num)

        elif not cmd_line:
            raise GenericException("'{}' is a reserved filename", Session.SH_FILE, diagnosis=False)

    @staticmethod
    def preprocess_line(line, line_num, add_to_prev, exprs=None):
        """Preprocesses a line from a file or command-line. In command-line mode, exprs can be ignored (used to keep
        track of file's exprs), but add_to_prev will indicate whether a line continuation is necessary. Returns
        updated value of line and add_to_prev. Parentheses are counted naively, so parentheses inside comments count.
        """
        if exprs is not None:
            if add_to_prev:
                prev, prev_line_num = exprs.pop()
                line = prev + line
                exprs.append((line, prev_line_num))
            elif line.strip():
                exprs.append((line, line_num))

        return line, line.count("(") > line.count(")")

    def parse(self, text):
        """Returns the first form in text. Raises MalformedSyntaxError if text holds no form."""
        form = Reader(text).read()
        if form is None:
            raise MalformedSyntaxError("expected a form, got empty input", diagnosis=False)
        return form

    def evaluate(self, form):
        """Evaluates form in the global environment. Errors are raised, not reported."""
        return evaluate(form, self.env)

    def add(self, expr, line_num):
        """Reads every form in expr and queues it. Evaluation is delayed until run is called. A malformed form is
        raised, and nothing from expr is queued.
        """
        self.error_handler.register_line(self.path, expr.strip(), line_num)  # in case error is raised

        reader = Reader(expr)
        forms = []
        for form in reader:
            line = expr.splitlines()[reader.line_num - 1].strip()
            forms.append((form, line, line_num + reader.line_num - 1))
        self.to_exec.extend(forms)

        self.error_handler.remove_line(self.path)  # error was not raised

    def run(self, echo=False):
        """Evaluates every queued form in order. A form that raises is reported by the error handler and yields nil.
        If echo, each result is printed as soon as it is produced. Returns the results of this run.
        """
        results = []
        while self.to_exec:
            form, line, line_num = self.to_exec.pop(0)
            self.error_handler.register_line(self.path, line, line_num)

            result = NIL
            with self.error_handler:
                result = self.evaluate(form)
                self.error_handler.remove_line(self.path)

            results.append(result)
            if echo:
                print(result)
            else:
                self.results.append(str(result))

        return results

    def execute(self, text, line_num=1, echo=False):
        """Adds and runs text, returning the list of results. A malformed text is reported and runs nothing."""
        with self.error_handler:
            self.add(text, line_num)
        return self.run(echo)

    def pop(self):
        """Removes and returns the oldest printed result."""
        return self.results.pop(0)
