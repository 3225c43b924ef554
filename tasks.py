"""Invoke tasks for docshelf development.

Every task shells out to the `uv` CLI so the environment, test, lint, and
type-check steps run against the same locked toolchain.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SOURCES = ("src", "tests")


def _uv(ctx: Context, args: Sequence[str], *, dry_run: bool = False) -> None:
    """Run ``uv`` with the given arguments.

    Args:
        ctx: Invoke execution context.
        args: Arguments appended after the `uv` executable.
        dry_run: When True, print the command without executing it.
    """
    command = shlex.join(("uv", *args))
    if dry_run:
        print(f"[dry-run] {command}")
        return
    ctx.run(command, echo=True, pty=True)


@task
def sync(ctx: Context, dev: bool = True) -> None:
    """Install docshelf and its dependencies into the project environment.

    Args:
        ctx: Invoke execution context.
        dev: Include the dev extra (pytest, ruff, mypy) when True.
    """
    args = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _uv(ctx, args)


@task(help={"clean": "Remove existing artifacts from dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build the sdist and wheel into `dist/`.

    Args:
        ctx: Invoke execution context.
        clean: Delete prior artifacts in `dist/` before building.
    """
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite.

    Args:
        ctx: Invoke execution context.
        k: `pytest -k` expression to select tests.
        path: Target path for pytest discovery.
        options: Extra CLI arguments appended to the pytest call.
    """
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    args.append(path)
    _uv(ctx, args)


@task(help={"fix": "Apply auto-fixes where possible (ruff --fix)."})
def lint(ctx: Context, fix: bool = False) -> None:
    """Check formatting and lint rules with Ruff.

    Args:
        ctx: Invoke execution context.
        fix: Reformat and apply Ruff fixes instead of only checking.
    """
    if fix:
        _uv(ctx, ["run", "ruff", "format", *SOURCES])
        _uv(ctx, ["run", "ruff", "check", "--fix", *SOURCES])
        return
    _uv(ctx, ["run", "ruff", "format", "--check", *SOURCES])
    _uv(ctx, ["run", "ruff", "check", *SOURCES])


@task
def mypy(ctx: Context) -> None:
    """Type-check the package with MyPy."""
    _uv(ctx, ["run", "mypy", "src"])


@task(help={"root": "Archive root to display (defaults to the configured root)."})
def tree(ctx: Context, root: str = "") -> None:
    """Print the year/merchant/month tree of an archive.

    Args:
        ctx: Invoke execution context.
        root: Optional archive root passed to `docshelf --root`.
    """
    args = ["run", "docshelf"]
    if root:
        args.extend(["--root", root])
    args.append("tree")
    _uv(ctx, args)


@task
def ci(ctx: Context) -> None:
    """Run lint, type checks, and tests the way CI does."""
    ctx.invoke(lint)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, tree, ci)
