"""who-can command line.

Usage:
    who-can get pods
    who-can create builds.v1.build.openshift.io -n myproject
    who-can delete deployments.apps --all-namespaces -o json
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace

import click

from whocan.command import UsageError, complete, parse_args, run_who_can
from whocan.config import Settings, load_settings
from whocan.core.models import ReviewOptions
from whocan.report import render_report, report_to_json_dict
from whocan.review import ReviewError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _log_level(settings: Settings, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    name = (settings.log_level or "").upper()
    if name not in _LOG_LEVELS:
        return logging.WARNING
    return getattr(logging, name)


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = _log_level(settings, verbose)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr)


@click.command(name="who-can", context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("args", nargs=-1, metavar="VERB RESOURCE")
@click.option(
    "-A",
    "--all-namespaces",
    is_flag=True,
    help="If present, list who can perform the specified action in all namespaces.",
)
@click.option("-n", "--namespace", default=None, help="Namespace to review (default: current namespace).")
@click.option("--context", default=None, help="Kubeconfig context to use.")
@click.option("--kubeconfig", default=None, help="Path to the kubeconfig file.")
@click.option(
    "-o", "--output", type=click.Choice(["text", "json"]), default="text", show_default=True, help="Output format."
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging on stderr.")
def main(args, all_namespaces, namespace, context, kubeconfig, output, verbose):
    """List who can perform the specified action on a resource."""
    settings = load_settings()
    overrides = {k: v for k, v in {"namespace": namespace, "context": context, "kubeconfig": kubeconfig}.items() if v}
    if overrides:
        settings = replace(settings, **overrides)
    _configure_logging(settings, verbose)
    logger.debug("Settings: %s", settings)

    try:
        parse_args(args)
    except UsageError as e:
        raise click.UsageError(str(e))

    # Provider imported lazily; usage errors never need the kubernetes client.
    from whocan.providers import k8s_provider

    request = complete(args, k8s_provider.get_rest_mapper(settings))
    try:
        options = ReviewOptions(
            all_namespaces=all_namespaces,
            namespace="" if all_namespaces else k8s_provider.current_namespace(settings),
        )
        result = run_who_can(request, options, k8s_provider.get_reviewer(settings))
    except ReviewError as e:
        raise click.ClickException(str(e))

    query = request.query()
    if output == "json":
        click.echo(json.dumps(report_to_json_dict(result, query), indent=2, sort_keys=False))
        return
    click.echo(render_report(result, query), nl=False)


if __name__ == "__main__":
    main()
