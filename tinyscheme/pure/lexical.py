"""Reader for tinyscheme: tokenization and recursive-descent parsing of source text into Values.

Surface syntax can be loosely defined as follows:

```
<form>   ::= <atom>
           | "(" <form>* ")"          ; right-nested pairs terminated by nil, no dotted-pair syntax
<atom>   ::= "#t"                     ; the true symbol
           | "#f"                     ; reads as nil, the same value as ()
           | <number>                 ; optional sign, at least one digit, at most one '.'
           | <symbol>                 ; any other run of non-whitespace, non-parenthesis characters

<comment> ::= ";" <char>*             ; only when ';' starts a token, runs to end of line
```

There is no quote shorthand ('x), no strings and no vectors. A Reader can be used repeatedly over one buffer, which is
how load reads a whole file form by form.
"""

from tinyscheme.lang.error import MalformedSyntaxError
from tinyscheme.pure.values import NIL, Number, Symbol, TRUE, from_iterable


OPEN_PAREN = "("
CLOSE_PAREN = ")"
COMMENT = ";"
LITERALS = {"#t": TRUE, "#f": NIL}


def is_number_token(token):
    """Optional leading sign, then digits with at most one '.', and at least one digit overall."""
    body = token[1:] if token[:1] in ("+", "-") else token
    has_digit = has_dot = False
    for char in body:
        if char.isdigit() and char.isascii():
            has_digit = True
        elif char == "." and not has_dot:
            has_dot = True
        else:
            return False
    return has_digit


def classify(token):
    """Returns the atom Value for a non-parenthesis token."""
    if token in LITERALS:
        return LITERALS[token]
    if is_number_token(token):
        return Number(float(token))
    return Symbol(token)


class Reader:
    """Reads top-level forms one at a time from text."""

    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.start = 0  # position of the first token of the last form read

    @property
    def remaining(self):
        return self.text[self.pos:]

    @property
    def line_num(self):
        """1-based line on which the last form read started."""
        return self.text.count("\n", 0, self.start) + 1

    def _skip_blank(self):
        """Skips whitespace and comments."""
        text = self.text
        while self.pos < len(text):
            if text[self.pos].isspace():
                self.pos += 1
            elif text[self.pos] == COMMENT:
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            else:
                break

    def next_token(self):
        """Returns the next token, or None at end of input."""
        self._skip_blank()
        text = self.text
        if self.pos >= len(text):
            return None

        start = self.pos
        if text[start] in (OPEN_PAREN, CLOSE_PAREN):
            self.pos += 1
        elif text.startswith(("#t", "#f"), start):
            self.pos += 2
        else:
            while self.pos < len(text) and not text[self.pos].isspace() and text[self.pos] not in "()":
                self.pos += 1
        return text[start:self.pos]

    def read(self):
        """Returns the next top-level form, or None if only whitespace/comments remain."""
        self._skip_blank()
        self.start = self.pos
        token = self.next_token()
        if token is None:
            return None
        return self._read_form(token)

    def _read_form(self, token):
        if token == OPEN_PAREN:
            return self._read_list(self.pos - 1)
        if token == CLOSE_PAREN:
            raise MalformedSyntaxError("unexpected '{}'", ")", start=self.pos - 1, end=self.pos, source=self.text)
        return classify(token)

    def _read_list(self, open_pos):
        items = []
        while True:
            token = self.next_token()
            if token is None:
                msg = "unexpected end of input, expected '{}'"
                raise MalformedSyntaxError(msg, ")", start=open_pos, end=open_pos + 1, source=self.text)
            if token == CLOSE_PAREN:
                break
            items.append(self._read_form(token))

        return from_iterable(items)

    def __iter__(self):
        while True:
            form = self.read()
            if form is None:
                return
            yield form


def read_one(text):
    """Returns (form, remaining text) for the first form in text, or None at end of input."""
    reader = Reader(text)
    form = reader.read()
    if form is None:
        return None
    return form, reader.remaining


def read_all(text):
    """Returns every top-level form in text, in order."""
    return list(Reader(text))
