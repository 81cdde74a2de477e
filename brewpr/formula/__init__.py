"""Formula generation.

Public API:
    generate(release, test=None, registry_url=...) -> Artifact
    commit_message(release, is_new) -> str
"""

from brewpr.formula.naming import param_case, pascal_case
from brewpr.formula.types import Artifact, TemplateError, TestSpec
from brewpr.formula.generator import commit_message, generate

__all__ = [
    "generate",
    "commit_message",
    "param_case",
    "pascal_case",
    "Artifact",
    "TemplateError",
    "TestSpec",
]
