"""Lexical environments: a chain of mutable frames, each an insertion-ordered dict of name -> Value plus a link to the
enclosing frame. Closures keep a reference to the frame they were created in, which keeps it (and its ancestors)
alive for as long as the closure is.
"""

from tinyscheme.lang.error import UnboundSymbolError


class Environment:
    """One frame of the environment chain."""

    def __init__(self, parent=None):
        self.parent = parent
        self.bindings = {}

    def new_child(self):
        """Returns an empty frame whose parent is self. Used for every closure call."""
        return Environment(self)

    def define(self, name, value):
        """Binds name in this frame only, replacing any previous binding of name here. Ancestors are never touched."""
        self.bindings[name] = value

    def lookup(self, name):
        """Returns the value bound to name in this frame or the nearest ancestor. Raises UnboundSymbolError."""
        env = self
        while env is not None:
            if name in env.bindings:
                return env.bindings[name]
            env = env.parent
        raise UnboundSymbolError(name)

    def __contains__(self, name):
        env = self
        while env is not None:
            if name in env.bindings:
                return True
            env = env.parent
        return False

    def __repr__(self):
        return f"Environment({list(self.bindings)}, parent={'None' if self.parent is None else '...'})"
