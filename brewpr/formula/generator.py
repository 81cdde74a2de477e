"""Homebrew formula generator for npm packages.

The formula is assembled from named sections rather than one big template
string. Required sections are always rendered; optional sections are
rendered only when their data exists, so an absent test command removes
its assertion line entirely instead of leaving a blank or half-filled one.

Placeholders use ``{{token}}`` and are resolved by exact token match in a
single pass. Every token must have a value; a missing one raises
TemplateError rather than leaking ``{{token}}`` into the formula.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from brewpr.formula.fields import render_license, ruby_string, sanitize_description
from brewpr.formula.naming import param_case, pascal_case
from brewpr.formula.types import Artifact, TemplateError, TestSpec
from brewpr.registry.types import ReleaseRecord

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class Section:
    """A run of formula lines rendered together."""

    name: str
    lines: tuple[str, ...]
    optional: bool = False


FORMULA_SECTIONS: tuple[Section, ...] = (
    Section("header", (
        'require "language/node"',
        "",
        "class {{formula}} < Formula",
    )),
    Section("metadata", (
        "  desc {{description}}",
        "  homepage {{homepage}}",
        "  url {{url}}",
        '  sha256 "{{sha256}}"',
        "  license {{license}}",
        "",
    )),
    Section("livecheck", (
        "  livecheck do",
        "    url {{livecheck_url}}",
        """    regex(/["']version["']:\\s*?["']([^"']+)["']/i)""",
        "  end",
        "",
    )),
    Section("dependencies", (
        '  depends_on "node"',
        "",
    )),
    Section("install", (
        "  def install",
        '    system "npm", "install", *Language::Node.std_npm_args(libexec)',
        '    bin.install_symlink Dir["#{libexec}/bin/*"]',
        "  end",
        "",
    )),
    Section("test", (
        "  test do",
        '    assert_match(version.to_s, shell_output("#{bin}/{{bin}} --version"))',
    )),
    Section("custom_test", (
        '    assert_match({{test_output}}, shell_output("#{bin}/{{test_command}}"))',
    ), optional=True),
    Section("footer", (
        "  end",
        "end",
    )),
)


def generate(
    release: ReleaseRecord,
    test: Optional[TestSpec] = None,
    registry_url: str = DEFAULT_REGISTRY_URL,
) -> Artifact:
    """Render *release* into a formula Artifact.

    Pure function: no I/O. ``release.sha256`` must already be set
    (see ``hash_tarball``), otherwise the sha256 placeholder is
    unresolved and TemplateError is raised.
    """
    formula_name = param_case(release.name)
    class_name = pascal_case(release.name)

    values: dict[str, Optional[str]] = {
        "formula": class_name,
        "description": ruby_string(sanitize_description(release.description)),
        "homepage": ruby_string(release.homepage),
        "url": ruby_string(release.tarball),
        "sha256": release.sha256,
        "license": render_license(release.license),
        "livecheck_url": ruby_string(f"{registry_url.rstrip('/')}/{release.name}/latest"),
        "bin": _ruby_inner(release.executable),
    }

    enabled: set[str] = set()
    if test is not None and test.command and test.output:
        enabled.add("custom_test")
        values["test_output"] = ruby_string(test.output)
        values["test_command"] = _ruby_inner(test.command)

    content = render_sections(FORMULA_SECTIONS, values, enabled)

    return Artifact(
        name=release.name,
        version=release.version,
        formula_name=formula_name,
        class_name=class_name,
        filename=f"{formula_name}.rb",
        content=content,
        title=pull_request_title(release),
        body=pull_request_body(release),
    )


def render_sections(
    sections: tuple[Section, ...],
    values: dict[str, Optional[str]],
    enabled: set[str],
) -> str:
    """Render required sections plus the optional ones named in *enabled*."""
    lines: list[str] = []
    for section in sections:
        if section.optional and section.name not in enabled:
            continue
        for line in section.lines:
            lines.append(_substitute(section.name, line, values))
    return "\n".join(lines).strip() + "\n"


def _substitute(section: str, line: str, values: dict[str, Optional[str]]) -> str:
    def replace(match: re.Match) -> str:
        token = match.group(1)
        value = values.get(token)
        if value is None:
            raise TemplateError(f"Unresolved placeholder {{{{{token}}}}} in section '{section}'")
        return value

    return _PLACEHOLDER.sub(replace, line)


def _ruby_inner(value: str) -> str:
    # Text placed inside an existing "..." literal in the template
    return ruby_string(value)[1:-1]


def pull_request_title(release: ReleaseRecord) -> str:
    return f"publish `{release.name}@{release.version}`".lower()


def pull_request_body(release: ReleaseRecord) -> str:
    return (
        f"Publish [`{release.name}@{release.version}`]"
        f"(https://npmjs.com/package/{release.name}/v/{release.version})."
    )


def commit_message(release: ReleaseRecord, is_new: bool) -> str:
    """Homebrew-style commit subject: ``foo 1.2.3`` or ``foo 1.2.3 (new formula)``."""
    parts = [param_case(release.name), release.version]
    if is_new:
        parts.append("(new formula)")
    return " ".join(parts)
