"""Case transforms for formula file names and Ruby class names.

Word splitting follows the change-case rules Homebrew tooling in the npm
world uses, so ``@scope/myCLI-tool`` becomes ``scope-my-cli-tool`` and
``ScopeMyCliTool``.
"""

import re

# lowerUpper / digitUpper boundary: "myCli" -> "my Cli"
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
# Acronym followed by a word: "CLITool" -> "CLI Tool"
_UPPER_WORD = re.compile(r"([A-Z])([A-Z][a-z])")
# Any run of separators
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")

_SPLIT = "\0"


def split_words(value: str) -> list[str]:
    result = _LOWER_UPPER.sub(rf"\1{_SPLIT}\2", value)
    result = _UPPER_WORD.sub(rf"\1{_SPLIT}\2", result)
    result = _SEPARATORS.sub(_SPLIT, result)
    return [word for word in result.split(_SPLIT) if word]


def param_case(value: str) -> str:
    """``@scope/fooBar`` -> ``scope-foo-bar``."""
    return "-".join(word.lower() for word in split_words(value))


def pascal_case(value: str) -> str:
    """``@scope/foo-bar`` -> ``ScopeFooBar``.

    A word starting with a digit after the first word is joined with an
    underscore (``foo-2`` -> ``Foo_2``) so the boundary stays readable.
    """
    parts = []
    for index, word in enumerate(split_words(value)):
        first, rest = word[0], word[1:].lower()
        if index > 0 and first.isdigit():
            parts.append(f"_{first}{rest}")
        else:
            parts.append(f"{first.upper()}{rest}")
    return "".join(parts)
