"""Unified CLI for aurora-jobs using Click."""

import json
import sys

import click
from loguru import logger


@click.group()
def cli():
    pass


def _load(job_file, role=None, env=None, name=None):
    """Load a job file with config defaults and CLI overrides applied."""
    from aurora_jobs.config import get_config
    from aurora_jobs.jobs.loader import JobFileError, load_job_file

    try:
        job = load_job_file(job_file, config=get_config())
    except JobFileError as e:
        logger.error(f"Invalid job file: {e}")
        sys.exit(2)

    if role:
        job.set_role(role)
    if env:
        job.set_environment(env)
    if name:
        job.set_name(name)
    return job


def _report(errors) -> None:
    for error in errors:
        code = f" [{error.code}]" if error.code else ""
        click.echo(f"{error.field}: {error.message}{code}", err=True)


# =============================================================================
# Job Commands
# =============================================================================


@cli.command()
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the configuration to this file instead of stdout.",
)
@click.option("--indent", default=2, show_default=True, help="JSON indentation.")
@click.option("--role", default=None, help="Override the job role.")
@click.option("--env", default=None, help="Override the job environment.")
@click.option("--name", default=None, help="Override the job name.")
@click.option(
    "--check",
    is_flag=True,
    default=False,
    help="Run advisory checks and fail if anything is flagged.",
)
def render(job_file, output, indent, role, env, name, check):
    """Render a job file as a JSON job configuration.

    Reads a TOML or YAML job file, applies configuration defaults and any
    overrides given on the command line, and prints the resulting job
    configuration.

    Examples:

        # Print the configuration
        aurora-jobs render hello_world.toml

        # Render for another environment and save it
        aurora-jobs render hello_world.toml --env prod -o hello_world.json
    """
    from aurora_jobs.jobs.validator import JobValidator

    job = _load(job_file, role=role, env=env, name=name)

    if check:
        errors = JobValidator().validate(job)
        if errors:
            _report(errors)
            logger.error(f"{len(errors)} problem(s) found in {job_file}")
            sys.exit(1)

    rendered = job.to_json(indent=indent)
    if output:
        with open(output, "w") as f:
            f.write(rendered + "\n")
        logger.info(f"Wrote job configuration to {output}")
    else:
        click.echo(rendered)


@cli.command()
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False))
def check(job_file):
    """Check a job file for values the scheduler is likely to reject.

    Exits with status 1 if anything is flagged.
    """
    from aurora_jobs.jobs.validator import JobValidator

    job = _load(job_file)
    errors = JobValidator().validate(job)
    if errors:
        _report(errors)
        sys.exit(1)

    key = job.get_job_key()
    click.echo(f"{key.role}/{key.environment}/{key.name}: OK")


# =============================================================================
# Config Commands (subgroup)
# =============================================================================


@cli.group()
def config():
    """Inspect aurora-jobs configuration."""
    pass


@config.command(name="show")
def config_show():
    """Show the effective configuration.

    Combines built-in defaults, the config file and environment variables.
    """
    from aurora_jobs.config import get_config

    click.echo(json.dumps(get_config().to_dict(), indent=2))


if __name__ == "__main__":
    cli()
