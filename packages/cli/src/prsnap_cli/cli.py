"""CLI entry point for prsnap.

    prsnap <pr> [options]

Downloads a pull request (via gh CLI or the GitHub API) and prints it as
markdown or JSON, or saves it with its images to a directory for offline
viewing.
"""

from __future__ import annotations

import importlib.metadata

import click
from rich.console import Console

from prsnap_core.errors import InvalidReference, PRSnapError
from prsnap_core.gh.reference import SUPPORTED_FORMATS, require_pr_reference
from prsnap_core.loader import load_pull_request
from prsnap_core.packager import save_pull_request
from prsnap_core.render.json_doc import render_json
from prsnap_core.render.markdown import render

console = Console()


def _invalid_reference_message(error: InvalidReference) -> str:
    formats = "\n".join(f"  - {f}" for f in SUPPORTED_FORMATS)
    return f"{error}\nSupported formats:\n{formats}"


@click.command()
@click.version_option(
    version=importlib.metadata.version("prsnap"),
    prog_name="prsnap",
)
@click.argument("pr")
@click.option("--token", "-t", default=None, help="GitHub personal access token (optional for public PRs).")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory (creates a pr-<number>/ subfolder).",
)
@click.option("--download-images/--no-download-images", default=None, help="Download embedded images.")
@click.option("--include-reviews/--no-include-reviews", default=None, help="Include PR reviews.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["markdown", "json"]),
    default=None,
    help="Output format.  [default: markdown]",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output.")
@click.option("--force-api", is_flag=True, help="Force using the GitHub API instead of gh CLI.")
@click.option("--force-gh", is_flag=True, help="Force using gh CLI, fail if not available.")
@click.option(
    "--config",
    "config_path",
    default=".prsnap.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRSNAP_CONFIG",
)
def main(
    pr: str,
    token: str | None,
    output: str | None,
    download_images: bool | None,
    include_reviews: bool | None,
    output_format: str | None,
    verbose: bool,
    quiet: bool,
    force_api: bool,
    force_gh: bool,
    config_path: str,
):
    """Download a GitHub pull request and convert it to markdown.

    PR is a pull request URL or shorthand:

    \b
      prsnap https://github.com/owner/repo/pull/123
      prsnap owner/repo#123
      prsnap owner/repo/123 -o ./output
      prsnap owner/repo#123 --format json
      prsnap owner/repo#123 --no-download-images
      prsnap owner/repo#123 --force-api
    """
    from prsnap_core.config import load_config
    from prsnap_cli.auth import resolve_github_token
    from prsnap_cli.logs import configure_logging

    try:
        config = load_config(
            config_path,
            cli_overrides={
                "output": output,
                "download_images": download_images,
                "include_reviews": include_reviews,
                "format": output_format,
                # Flags only override the config file when set.
                "verbose": verbose or None,
                "force_api": force_api or None,
                "force_gh": force_gh or None,
            },
        )
    except ValueError as e:
        raise click.UsageError(str(e))

    if config["force_api"] and config["force_gh"]:
        raise click.ClickException("Cannot use both --force-api and --force-gh at the same time")

    log = configure_logging(verbose=config["verbose"], silent=quiet)

    try:
        ref = require_pr_reference(pr)
    except InvalidReference as e:
        raise click.ClickException(_invalid_reference_message(e))

    token = resolve_github_token(token or config.get("github_token"))

    try:
        dataset = load_pull_request(
            ref,
            token=token,
            include_reviews=config["include_reviews"],
            force_api=config["force_api"],
            force_gh=config["force_gh"],
            log=log,
        )
    except PRSnapError as e:
        raise click.ClickException(str(e))

    if config["output"]:
        result = save_pull_request(
            dataset,
            config["output"],
            download_images=config["download_images"],
            token=token,
            log=log,
        )
        if not quiet:
            console.print(f"[green]Markdown:[/green] {result.md_path}")
            console.print(f"[green]JSON:[/green]     {result.json_path}")
            if result.downloaded_images:
                console.print(f"[green]Images:[/green]   {len(result.downloaded_images)} in {result.images_dir}")
    elif config["format"] == "json":
        click.echo(render_json(dataset))
    else:
        # Nowhere to save images when printing to stdout.
        click.echo(render(dataset, download_images=False).markdown)

    log.info("Done!")
