#!/usr/bin/env python3
# src/ytcli/cli.py
from __future__ import annotations

import functools
import logging
import sys
from typing import Any, Callable, Dict, List, NoReturn

import click

from . import __version__
from .auth import ConfigError, get_config, setup
from .client import YouTrackAPIError, YouTrackClient
from .formatting import (
    render_comment,
    render_comment_list,
    render_issue,
    render_issue_list,
    render_project_list,
    render_user,
    to_json,
)


def die(message: str) -> NoReturn:
    """Report a failure as one JSON line on stderr and exit 1."""
    click.echo(to_json({"error": message}), err=True)
    raise SystemExit(1)


def output_options(f: Callable[..., Any]) -> Callable[..., Any]:
    f = click.option("--pretty", is_flag=True, help="Pretty-print JSON output (only with --format json).")(f)
    f = click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
                     show_default=True, help="Output format.")(f)
    return f


def fields_option(f: Callable[..., Any]) -> Callable[..., Any]:
    return click.option("--fields", help="Comma-separated list of fields to return.")(f)


def api_call(f: Callable[..., Any]) -> Callable[..., Any]:
    """Resolve the config, hand the command a client, and turn failures into `die`."""
    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            client = YouTrackClient.from_config(get_config())
            return f(client, *args, **kwargs)
        except (ConfigError, YouTrackAPIError) as e:
            die(str(e))
    return wrapper


def emit(data: Any, output_format: str, pretty: bool, render: Callable[[Any], str], preface: str = "") -> None:
    if output_format == "json":
        click.echo(to_json(data, pretty=pretty))
        return
    if preface:
        click.echo(preface)
        click.echo()
    click.echo(render(data))


def parse_field_args(values: List[str]) -> List[Dict[str, str]]:
    """`Name=Value` pairs -> custom field updates. The value may contain '='."""
    custom_fields = []
    for raw in values:
        name, sep, value = raw.partition("=")
        if not sep:
            raise click.BadParameter(f'Invalid --field format: "{raw}". Expected "Name=Value".')
        custom_fields.append({"name": name, "value": value})
    return custom_fields


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="yt")
@click.option("--debug", is_flag=True, help="Log HTTP requests to stderr.")
def cli(debug: bool) -> None:
    """yt CLI — YouTrack issues, comments, projects and users."""
    if debug:
        logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
        logging.getLogger("ytcli").setLevel(logging.DEBUG)


cli.add_command(setup, name="setup")


# -----------------------------
# Subcommands: issue
# -----------------------------
@cli.group(help="Work with YouTrack issues.")
def issue() -> None:
    pass


@issue.command("search")
@click.argument("query")
@click.option("--top", type=int, default=50, show_default=True, help="Maximum results to return.")
@click.option("--skip", type=int, default=0, show_default=True, help="Number of results to skip.")
@fields_option
@output_options
@api_call
def issue_search(client, query, top, skip, fields, output_format, pretty):
    """Search issues using YouTrack query syntax."""
    issues = client.search_issues(query, fields=fields, top=top, skip=skip)
    emit(issues, output_format, pretty, render_issue_list)


@issue.command("get")
@click.argument("issue_id")
@fields_option
@output_options
@api_call
def issue_get(client, issue_id, fields, output_format, pretty):
    """Show a single issue by ID."""
    emit(client.get_issue(issue_id, fields=fields), output_format, pretty, render_issue)


@issue.command("create")
@click.option("--project", required=True, help="Project short name or ID.")
@click.option("--summary", required=True, help="Issue summary/title.")
@click.option("--description", help="Issue description.")
@output_options
@api_call
def issue_create(client, project, summary, description, output_format, pretty):
    """Create a new issue."""
    created = client.create_issue(project, summary, description)
    emit(created, output_format, pretty, render_issue, preface=f"Created {created.get('idReadable')}")


@issue.command("update")
@click.argument("issue_id")
@click.option("--summary", help="New summary/title.")
@click.option("--description", help="New description.")
@click.option("--field", "field_args", multiple=True, help='Custom field as "Name=Value". Repeatable.')
@output_options
def issue_update(issue_id, summary, description, field_args, output_format, pretty):
    """Update summary, description or custom fields of an issue."""
    try:
        custom_fields = parse_field_args(list(field_args))
    except click.BadParameter as e:
        die(e.message)
    _update(issue_id, summary, description, custom_fields, output_format, pretty)


@api_call
def _update(client, issue_id, summary, description, custom_fields, output_format, pretty):
    updated = client.update_issue(
        issue_id,
        summary=summary,
        description=description,
        custom_fields=custom_fields or None,
    )
    emit(updated, output_format, pretty, render_issue, preface=f"Updated {updated.get('idReadable')}")


@issue.command("comments")
@click.argument("issue_id")
@fields_option
@output_options
@api_call
def issue_comments(client, issue_id, fields, output_format, pretty):
    """List comments on an issue."""
    emit(client.get_comments(issue_id, fields=fields), output_format, pretty, render_comment_list)


@issue.command("comment")
@click.argument("issue_id")
@click.option("--text", required=True, help="Comment text.")
@output_options
@api_call
def issue_comment(client, issue_id, text, output_format, pretty):
    """Add a comment to an issue."""
    comment = client.add_comment(issue_id, text)
    emit(comment, output_format, pretty, render_comment, preface=f"Comment added to {issue_id}")


# -----------------------------
# Subcommands: project / user
# -----------------------------
@cli.group(help="Work with YouTrack projects.")
def project() -> None:
    pass


@project.command("list")
@fields_option
@output_options
@api_call
def project_list(client, fields, output_format, pretty):
    """List all accessible projects."""
    emit(client.list_projects(fields=fields), output_format, pretty, render_project_list)


@cli.group(help="Work with YouTrack users.")
def user() -> None:
    pass


@user.command("me")
@fields_option
@output_options
@api_call
def user_me(client, fields, output_format, pretty):
    """Show the currently authenticated user."""
    emit(client.get_current_user(fields=fields), output_format, pretty, render_user)


def main() -> None:
    """Console entry point: usage errors are reported like every other failure."""
    try:
        rv = cli.main(standalone_mode=False)
    except click.exceptions.NoArgsIsHelpError as e:
        click.echo(e.format_message())
        sys.exit(0)
    except click.exceptions.Abort:
        die("Aborted")
    except click.ClickException as e:
        die(e.format_message())
    except Exception as e:
        die(str(e))
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
