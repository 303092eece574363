"""Invoke tasks for WineTrail development and operations."""

import sys
from pathlib import Path

from invoke import task
from invoke.context import Context

LOG_FILE = Path("data/winetrail.log")


@task
def start(ctx: Context, host: str = "", port: int = 0, reload: bool = False) -> None:
    """Start the API server in the foreground.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: from config)
        port: Port to bind to (default: from config)
        reload: Enable auto-reload for development
    """
    cmd = "uv run winetrail-server start --foreground"
    if host:
        cmd += f" --host {host}"
    if port:
        cmd += f" --port {port}"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task(name="start-background")
def start_background(ctx: Context) -> None:
    """Start the API server in the background."""
    ctx.run("uv run winetrail-server start")


@task
def stop(ctx: Context) -> None:
    ctx.run("uv run winetrail-server stop")


@task
def restart(ctx: Context) -> None:
    ctx.run("uv run winetrail-server restart")


@task
def status(ctx: Context) -> None:
    ctx.run("uv run winetrail-server status")


@task
def logs(ctx: Context, follow: bool = False, lines: int = 50) -> None:
    """Show the background server log.

    Args:
        ctx: Invoke context
        follow: Follow log output (like tail -f)
        lines: Number of lines to show (default: 50)
    """
    if not LOG_FILE.exists():
        print("No log file found. Server may not have been started in background mode.")
        return

    if follow:
        ctx.run(f"tail -f {LOG_FILE}", pty=True)
    else:
        ctx.run(f"tail -n {lines} {LOG_FILE}")


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False, mongo: str = "") -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
        mongo: Run against this MongoDB URL instead of the in-memory mock
    """
    cmd = "uv run pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=winetrail --cov-report=term-missing"
    env = {"TEST_MONGODB_URL": mongo} if mongo else None
    ctx.run(cmd, pty=True, env=env)


@task(name="init-db")
def init_db(ctx: Context) -> None:
    """Create collections and indexes."""
    print("Initializing database...")
    ctx.run(
        "uv run python -c 'import asyncio; from winetrail.database import init_db; asyncio.run(init_db())'"
    )
    print("Database initialized successfully")


@task(name="create-admin")
def create_admin(ctx: Context, email: str) -> None:
    """Create an administrator account (prompts for the password)."""
    ctx.run(f"uv run winetrail-admin add {email} --admin", pty=True)


@task
def clean(ctx: Context, images: bool = False) -> None:
    """Clean up temporary files.

    Args:
        ctx: Invoke context
        images: Also remove locally stored listing images
    """
    import shutil

    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    images_path = Path("data/images")
    if images and images_path.exists():
        shutil.rmtree(images_path)
        images_path.mkdir(parents=True)
        print(f"Removed images in {images_path}")

    print("Cleanup complete")


@task(name="docs-build")
def docs_build(ctx: Context) -> None:
    """Build the Sphinx documentation."""
    ctx.run("uv run sphinx-build -b html docs docs/_build/html", pty=True)
    print("Documentation built at docs/_build/html/index.html")
