"""
CAP tokenizer: quote-aware splitting of a raw input line.

Grammar
- Tokens are separated by unquoted whitespace.
- A double or single quote opens a quoted segment anywhere in unquoted text; the
  segment keeps its whitespace verbatim and the quote characters are dropped, so
  `-p="pim 16"` becomes the single token `-p=pim 16`.
- A backslash right before the active quote character (or before any quote
  character outside quotes) yields that quote as literal content. Any other
  backslash is literal.

Modes
- strict (default): an unterminated quote raises UnterminatedQuoteError.
- tolerant: the unterminated content becomes the final, in-progress token.

Examples
    >>> tokenize('a "b c" d')
    ['a', 'b c', 'd']
    >>> tokenize('cmd "abc', tolerant=True)
    ['cmd', 'abc']
"""
from .faults import UnterminatedQuoteError
from .utils import mirror, ordinal

QUOTES = frozenset("\"'")
ESCAPE = "\\"


class Lexer:
    """
    Single-pass scanner over one input line.

    Besides the tokens it records two facts the completion engine relies on:
    `unterminated` (the last token is still inside the open `quote`) and `trailing`
    (the line ends in unquoted whitespace, i.e. a new token has begun).
    """

    def __init__(self, line, /, *, tolerant=False):
        if not isinstance(line, str):
            raise TypeError("lexer line must be a string")
        self._line = line
        self._tolerant = tolerant
        self._tokens = []
        self._unterminated = False
        self._quote = None
        self._trailing = False
        self._scan()

    line = mirror("line")
    tokens = mirror("tokens")
    tolerant = mirror("tolerant")
    unterminated = mirror("unterminated")
    quote = mirror("quote")
    trailing = mirror("trailing")

    def _scan(self):
        line = self._line
        buffer = []
        started = False
        quote = None
        opening = -1
        position = 0

        while position < len(line):
            char = line[position]
            following = line[position + 1] if position + 1 < len(line) else ""

            if quote is not None:
                if char == ESCAPE and following == quote:
                    buffer.append(following)
                    position += 1
                elif char == quote:
                    quote = None
                else:
                    buffer.append(char)
            elif char == ESCAPE and following in QUOTES:
                buffer.append(following)
                started = True
                position += 1
            elif char in QUOTES:
                quote = char
                opening = position
                started = True
            elif char.isspace():
                if started:
                    self._tokens.append("".join(buffer))
                    buffer.clear()
                    started = False
            else:
                buffer.append(char)
                started = True

            position += 1

        if quote is not None:
            if not self._tolerant:
                index = len(self._tokens) + 1
                raise UnterminatedQuoteError(
                    f"unterminated {quote} quote opened at column {opening + 1}, "
                    f"in the {ordinal(index)} token",
                    raw=line,
                    index=index,
                )
            self._unterminated = True
            self._quote = quote

        if started:
            self._tokens.append("".join(buffer))

        self._trailing = quote is None and bool(line) and line[-1].isspace()

    def __iter__(self):
        return iter(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def __repr__(self):
        return f"Lexer({self._line!r}, tokens={self._tokens!r})"


def tokenize(line, /, *, tolerant=False):
    """
    Split line into tokens (see module docstring for the grammar).

    Raises UnterminatedQuoteError in strict mode when a quote is left open.
    """
    return Lexer(line, tolerant=tolerant).tokens


__all__ = (
    "Lexer",
    "tokenize",
)
