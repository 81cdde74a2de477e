"""
brewpr CLI - Main entry point

Usage:
    brewpr generate <package> [outdir]   - Write a formula and validate it with brew
    brewpr github <package> <owner/repo> - Publish the formula as a pull request
    brewpr install|test|audit|livecheck <formula>
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.status import Status

from brewpr.core.config import Settings, get_settings
from brewpr.core.logging import configure_structlog
from brewpr.formula import Artifact, TemplateError, TestSpec, commit_message, generate
from brewpr.github import GitHubClient, RemoteError, RemoteSync, SyncResult, SyncTarget, parse_repo
from brewpr.registry import FetchError, ReleaseRecord, fetch_latest, hash_tarball, published_file_exists
from brewpr.validator import (
    ValidationFailure,
    ValidationKind,
    require_success,
    run_validation,
)

console = Console()

# Everything the core can raise; the CLI reports these and exits 1.
FATAL_ERRORS = (FetchError, TemplateError, RemoteError, ValidationFailure, ValueError)


@click.group()
@click.version_option(version="0.1.0", prog_name="brewpr")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose):
    """Brew on GitHub from the command line"""
    settings = get_settings()
    configure_structlog(debug=verbose or settings.debug)
    ctx.obj = settings


@cli.command("generate")
@click.argument("package")
@click.argument("outdir", required=False, default=".", type=click.Path(file_okay=False, path_type=Path))
@click.option("--test-command", help="Test command to add")
@click.option("--test-output", help="Output that test command should produce")
@click.option("--install/--no-install", default=True, help="Run brew install (required for the other checks)")
@click.option("--test/--no-test", "run_test", default=True, help="Run brew test")
@click.option("--audit/--no-audit", default=False, help="Run brew audit")
@click.option("--livecheck/--no-livecheck", default=False, help="Run brew livecheck")
@click.pass_obj
def generate_command(
    settings: Settings,
    package: str,
    outdir: Path,
    test_command: Optional[str],
    test_output: Optional[str],
    install: bool,
    run_test: bool,
    audit: bool,
    livecheck: bool,
):
    """Generate a formula for PACKAGE into OUTDIR."""
    test_spec = _test_spec(test_command, test_output)

    try:
        with console.status("[bold cyan]Generating formula...", spinner="dots") as status:
            release, artifact, is_published = asyncio.run(
                _build_artifact(package, settings, test_spec, status, check_published=True)
            )

        outdir.mkdir(parents=True, exist_ok=True)
        outfile = outdir / artifact.filename
        outfile.write_text(artifact.content, encoding="utf-8")
        console.print(f"[green]✓[/green] created `{artifact.filename}`")

        if install:
            _check(ValidationKind.INSTALL, str(outfile), settings)
            if run_test:
                _check(ValidationKind.TEST, str(outfile), settings)
            if audit:
                _check(ValidationKind.AUDIT, artifact.formula_name, settings)
            if livecheck:
                _check(ValidationKind.LIVECHECK, str(outfile), settings)
    except FATAL_ERRORS as e:
        _fail("Failed to generate formula", e)

    console.print(
        _success_message(release, outfile, is_published),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


@cli.command("github")
@click.argument("package")
@click.argument("repo")
@click.option("--test-command", help="Test command to add")
@click.option("--test-output", help="Output that test command should produce")
@click.option("--base-branch", default=None, help="Branch to open the pull request against")
@click.pass_obj
def github_command(
    settings: Settings,
    package: str,
    repo: str,
    test_command: Optional[str],
    test_output: Optional[str],
    base_branch: Optional[str],
):
    """Generate a formula for PACKAGE and open or update a pull request on REPO."""
    test_spec = _test_spec(test_command, test_output)

    try:
        # Credentials and repo are checked before any network call.
        parse_repo(repo)
        client = GitHubClient(
            settings.github_token,
            api_url=settings.github_api_url,
            timeout=settings.request_timeout_seconds,
        )

        with console.status("[bold cyan]Generating formula...", spinner="dots") as status:
            _, artifact, _ = asyncio.run(_build_artifact(package, settings, test_spec, status))
            target = SyncTarget.for_artifact(
                repo,
                artifact,
                base_branch=base_branch or settings.base_branch,
                formula_dir=settings.formula_dir,
            )
            status.update("[bold cyan]Creating pull request...")
            result = asyncio.run(RemoteSync(client).sync(target, artifact))
    except FATAL_ERRORS as e:
        _fail("Failed to publish formula", e)

    _print_sync_result(target, result)


def _register_check(kind: ValidationKind, help_text: str):
    @cli.command(kind.value, help=help_text)
    @click.argument("formula")
    @click.pass_obj
    def command(settings: Settings, formula: str):
        try:
            result = _check(kind, formula, settings)
        except ValidationFailure as e:
            _fail(f"failed `brew {kind.value}`", e)
        if kind is ValidationKind.LIVECHECK and result.message:
            click.echo(result.message)

    return command


_register_check(ValidationKind.INSTALL, "Run brew install on a formula file.")
_register_check(ValidationKind.TEST, "Run brew test on a formula file.")
_register_check(ValidationKind.AUDIT, "Run brew audit on a formula.")
_register_check(ValidationKind.LIVECHECK, "Run brew livecheck on a formula file.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _build_artifact(
    package: str,
    settings: Settings,
    test_spec: Optional[TestSpec],
    status: Status,
    check_published: bool = False,
) -> tuple[ReleaseRecord, Artifact, bool]:
    status.update("[bold cyan]Fetching release info...")
    release = await fetch_latest(package, settings)
    if release is None:
        raise FetchError(f"Package {package} not found in {settings.npm_registry_url}")

    is_published = False
    if check_published:
        is_published = await published_file_exists(release, settings)

    status.update("[bold cyan]Fetching tarball...")
    digest = await hash_tarball(release.tarball, timeout=settings.request_timeout_seconds)
    release = release.with_digest(digest)

    status.update("[bold cyan]Generating formula...")
    artifact = generate(release, test_spec, registry_url=settings.npm_registry_url)
    return release, artifact, is_published


def _check(kind: ValidationKind, target: str, settings: Settings):
    label = f"`brew {kind.value}`"
    with console.status(f"[bold cyan]running {label}...", spinner="dots"):
        result = run_validation(kind, target, timeout=settings.validation_timeout_seconds)
    if result.ok:
        console.print(f"[green]✓[/green] passed {label}")
    else:
        console.print(f"[red]✗[/red] failed {label}")
    return require_success(result)


def _test_spec(command: Optional[str], output: Optional[str]) -> Optional[TestSpec]:
    if bool(command) != bool(output):
        raise click.UsageError("--test-command and --test-output must be used together")
    if command and output:
        return TestSpec(command=command, output=output)
    return None


def _success_message(release: ReleaseRecord, outfile: Path, is_published: bool) -> str:
    if is_published:
        return "\n".join([
            "Done! Publish a new version with:",
            "",
            "  brew bump-formula-pr",
        ])
    return "\n".join([
        "Done! Commit the formula with:",
        "",
        f"  git add {outfile}",
        f"  git commit -m '{commit_message(release, is_new=True)}'",
    ])


def _print_sync_result(target: SyncTarget, result: SyncResult) -> None:
    if result.pull_request is None:
        console.print(f"[green]✓[/green] {target.file_path} on {target.full_name} is already up to date")
        return
    verb = "opened" if result.pull_request_created else "updated"
    pull = result.pull_request
    console.print(f"[green]✓[/green] {verb} pull request #{pull.number} {pull.html_url}".rstrip())


def _fail(headline: str, error: Exception) -> None:
    console.print(f"[red]✗[/red] {headline}")
    detail = error.diagnostic if isinstance(error, ValidationFailure) else str(error)
    click.echo(detail, err=True)
    raise SystemExit(1)


if __name__ == "__main__":
    cli()
