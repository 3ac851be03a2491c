"""Interactive tinyscheme shell built on cmd, with a continuation prompt for forms spanning several lines."""

import cmd


class Shell(cmd.Cmd):
    """tinyscheme interpreter shell."""
    intro = "tinyscheme interpreter :: Python backend\nType 'help' for more information, Ctrl-D to exit."
    prompt = "scheme> "
    secondary_prompt = "... "  # used for continuation prompts
    _tmp_prompt = "scheme> "   # restored once a pending form is complete

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0
        self._start_line_num = 1  # line on which the pending form started

    def default(self, line):
        """Executes arbitrary tinyscheme forms, waiting for more lines while parentheses are unbalanced."""
        self.line_num += 1
        if not self._tmp_line:
            self._start_line_num = self.line_num

        line, add_to_prev = self.sess.preprocess_line(self._tmp_line + line + "\n", self.line_num, self._tmp_line)

        if add_to_prev:
            self._tmp_line = line
            self.prompt = self.secondary_prompt
        else:
            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.execute(line, self._start_line_num, echo=True)

    def do_help(self, arg):
        """Prints an overview of the language and a first example to try."""
        print("Welcome to the tinyscheme interpreter!\n\n"
              "tinyscheme is a small Lisp: numbers, symbols, pairs and procedures, with the special \n"
              "forms quote, if, define and lambda (single-expression body), and the primitives \n"
              "+ - * / = < > cons car cdr list null? display eval load.\n\n"
              "Try it out by typing '(define square (lambda (x) (* x x)))'. This will bind a \n"
              "procedure to the name 'square'. Next, try typing '(square 7)', which gives 49. \n"
              "Files are loaded with a bare file name: '(load example.scm)'.")

    def emptyline(self):
        """A blank line is ignored instead of rerunning the last form."""
        return ""

    def do_EOF(self, arg):
        """Ctrl-D ends the session like exit."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Leaves the shell. Any argument is refused with a warning."""
        if arg:
            self.sess.error_handler.warn("'exit' takes no arguments, got '{}'", arg, diagnosis=False)
            return False
        return True
