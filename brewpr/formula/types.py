"""Types for formula generation."""

from dataclasses import dataclass


class TemplateError(Exception):
    """Raised when a formula placeholder cannot be resolved.

    This is a programming defect (a missing field or a typo in a section
    template), not something an operator can fix.
    """


@dataclass(frozen=True)
class TestSpec:
    """Extra verification command injected into the formula's test block.

    ``output`` is the substring ``command`` must print.
    """

    __test__ = False  # not a pytest test class

    command: str
    output: str


@dataclass(frozen=True)
class Artifact:
    """A rendered formula plus everything needed to publish it.

    Fully determined by the release and optional TestSpec it was generated
    from, so repeated runs produce byte-identical content and metadata.
    """

    name: str
    version: str
    formula_name: str
    class_name: str
    filename: str
    content: str
    title: str
    body: str
