import io
import os
import re
import tempfile
import unittest
from contextlib import redirect_stdout

from tinyscheme.lang.error import (ErrorHandler, GenericException, MalformedSyntaxError, NotAProcedureError,
                                   RecursionDepthError, TypeMismatchError, UnboundSymbolError)
from tinyscheme.lang.session import Session
from tinyscheme.pure.values import NIL, Number, Symbol, from_iterable


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.handler = ErrorHandler(fatal=False)
        self.sess = Session(self.handler)
        self.output = io.StringIO()

    def execute(self, text, **kwargs):
        with redirect_stdout(self.output):
            return self.sess.execute(text, **kwargs)

    def test_preprocess_line(self):
        should_continue = ["(define x", "((a)", "(define f (lambda (x)\n"]
        for case in should_continue:
            self.assertTrue(Session.preprocess_line(case, 1, False)[1], case)

        should_finish = ["(a)", "x", "", "(a))", "((a) (b))"]
        for case in should_finish:
            self.assertFalse(Session.preprocess_line(case, 1, False)[1], case)

    def test_preprocess_lines_into_exprs(self):
        exprs = []
        add_to_prev = False
        lines = ["(define square\n", "  (lambda (x)\n", "    (* x x)))\n", "\n", "(square 7)\n"]
        for line_num, line in enumerate(lines):
            __, add_to_prev = Session.preprocess_line(line, line_num + 1, add_to_prev, exprs)

        self.assertEqual([("".join(lines[:3]), 1), ("(square 7)\n", 5)], exprs)

    def test_parse(self):
        self.assertEqual(from_iterable([Symbol("a"), Symbol("b")]), self.sess.parse("(a b) (c)"))
        self.assertRaises(MalformedSyntaxError, self.sess.parse, "   ")
        self.assertRaises(MalformedSyntaxError, self.sess.parse, "(a")

    def test_evaluate(self):
        self.assertEqual(Symbol("x"), self.sess.evaluate(self.sess.parse("(define x 5)")))
        self.assertEqual(Number(5), self.sess.evaluate(Symbol("x")))
        self.assertRaises(UnboundSymbolError, self.sess.evaluate, Symbol("nope"))
        self.assertEqual([], self.handler.errors)

    def test_scenario(self):
        results = self.execute("(define square (lambda (x) (* x x))) (square 7)")
        self.assertEqual([Symbol("square"), Number(49)], results)
        self.assertIn("square", self.sess.env.bindings)
        self.assertEqual("square", self.sess.pop())
        self.assertEqual("49", self.sess.pop())
        self.assertEqual([], self.sess.results)

    def test_error_recovery(self):
        results = self.execute("(define x 1) (car x) (+ x 1)")
        self.assertEqual([Symbol("x"), NIL, Number(2)], results)
        self.assertEqual(1, len(self.handler.errors))
        self.assertIsInstance(self.handler.errors[0], TypeMismatchError)
        self.assertIn("'car' expects a pair", re.sub(r"\x1b\[[0-9;]*m", "", self.output.getvalue()))

    def test_error_does_not_corrupt_environment(self):
        self.execute("(define x 1)")
        self.execute("(define y (car x))")
        self.assertEqual([Number(1)], self.execute("x"))
        self.assertNotIn("y", self.sess.env)

    def test_nil_result_is_not_an_error(self):
        self.assertEqual([NIL], self.execute("(null? 1)"))
        self.assertEqual([], self.handler.errors)

        self.assertEqual([NIL], self.execute("(car 1)"))
        self.assertEqual(1, len(self.handler.errors))

    def test_malformed(self):
        should_fail = ["(1 2", ")", "(a))"]
        for case in should_fail:
            self.assertEqual([], self.execute(case), case)
            self.assertIsInstance(self.handler.errors[-1], MalformedSyntaxError, case)

        self.assertEqual(len(should_fail), len(self.handler.errors))
        self.assertEqual([Number(2)], self.execute("(+ 1 1)"))

    def test_malformed_application_recovery(self):
        results = self.execute("(5 1) (define z 3) z")
        self.assertEqual([NIL, Symbol("z"), Number(3)], results)
        self.assertIsInstance(self.handler.errors[0], NotAProcedureError)

        should_fail = {
            "(() 1)": NotAProcedureError,
            "(define 5 1)": MalformedSyntaxError,
            "(lambda (1) x)": MalformedSyntaxError,
            "(lambda x x)": MalformedSyntaxError,
        }
        for case, error in should_fail.items():
            self.assertEqual([NIL, Number(2)], self.execute(case + " (+ 1 1)"), case)
            self.assertIsInstance(self.handler.errors[-1], error, case)

        self.assertEqual(1 + len(should_fail), len(self.handler.errors))

    def test_error_names_offending_list(self):
        self.assertEqual([NIL], self.execute("((quote (1 2)) 3)"))
        self.assertEqual("attempt to apply non-procedure '(1 2)'", self.handler.errors[0].plain_msg)
        self.assertIn("(1 2)", re.sub(r"\x1b\[[0-9;]*m", "", self.output.getvalue()))

    def test_load_bare_file_name(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "defs.scm")
            with open(path, "w") as file:
                file.write("(define square (lambda (x) (* x x)))\n")

            self.assertEqual([Symbol("square"), Number(49)], self.execute(f"(load {path}) (square 7)"))
            self.assertEqual([Symbol("square")], self.execute(f"(load (quote {path}))"))
        self.assertEqual([], self.handler.errors)

    def test_runaway_recursion(self):
        results = self.execute("(define loop (lambda (n) (loop n))) (loop 1) (+ 1 2)")
        self.assertEqual([Symbol("loop"), NIL, Number(3)], results)
        self.assertIsInstance(self.handler.errors[0], RecursionDepthError)

    def test_echo(self):
        self.execute("(display 5) (+ 1 2)", echo=True)
        self.assertEqual("5\n()\n3\n", self.output.getvalue())
        self.assertEqual([], self.sess.results)

    def test_cmd_line_is_not_fatal(self):
        handler = ErrorHandler(fatal=True)
        Session(handler)
        self.assertFalse(handler.fatal)


class FileSessionTestCase(unittest.TestCase):

    def setUp(self):
        self.handler = ErrorHandler(fatal=False)
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.output = io.StringIO()

    def session(self, text):
        path = os.path.join(self.tmp.name, "prog.scm")
        with open(path, "w") as file:
            file.write(text)

        with redirect_stdout(self.output):
            sess = Session(self.handler, path, cmd_line=False)
            sess.run()
        return sess, path

    def test_file(self):
        text = "; squares\n(define square\n  (lambda (x) (* x x)))\n(square 7)\n(display (square 3))\n"
        sess, __ = self.session(text)

        self.assertEqual(["square", "49", "()"], sess.results)
        self.assertEqual("9\n", self.output.getvalue())
        self.assertEqual([], self.handler.errors)

    def test_file_with_error(self):
        sess, path = self.session("(define a 1)\n(car a)\n(+ a 1)\n")

        self.assertEqual(["a", "()", "2"], sess.results)
        self.assertEqual(1, len(self.handler.errors))
        self.assertIn(f"File '{path}', line 2:", self.output.getvalue())

    def test_file_with_malformed_form(self):
        sess, __ = self.session("(define a 1)\n(car a\n")

        self.assertEqual(["a"], sess.results)
        self.assertIsInstance(self.handler.errors[0], MalformedSyntaxError)

    def test_bad_paths(self):
        missing = os.path.join(self.tmp.name, "missing.scm")
        self.assertRaises(GenericException, Session, self.handler, missing, cmd_line=False)
        self.assertRaises(GenericException, Session, self.handler, Session.SH_FILE, cmd_line=False)


if __name__ == '__main__':
    unittest.main()
