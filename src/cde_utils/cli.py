#!/usr/bin/env python
"""Command-line interface for cde-utils.

This module provides the main CLI entry point: a click group with one
subcommand per operator intent. Each subcommand only builds its intent;
connecting to the cluster and running it is shared.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, NamedTuple

import click
from icecream import ic

from cde_utils import __version__, console
from cde_utils.autoscaler import TUNABLES
from cde_utils.cluster import Cluster
from cde_utils.config import Settings
from cde_utils.exceptions import CdeUtilsError, ClusterConnectionError
from cde_utils.kubectl import Kubectl
from cde_utils.models import (
    CertificateSource,
    DeleteUser,
    EditAutoscaler,
    GangScheduling,
    InitBaseCluster,
    InitUser,
    InitVirtualCluster,
    Intent,
    RequestContext,
    UpdateSparkConfig,
    VirtualCluster,
)
from cde_utils.orchestrator import Orchestrator
from cde_utils.shell import find_binary
from cde_utils.spark import parse_spark_configs


class CliState(NamedTuple):
    """Global options shared with every subcommand."""

    context: RequestContext
    select: bool


def run_intent(state: CliState, build: Callable[[], Intent]) -> None:
    """Build an intent, connect to the cluster and run it.

    The intent is built first so that input errors are reported before any
    cluster access.

    Args:
        state: Global options.
        build: Intent factory; may raise ValidationError.

    """
    try:
        intent = build()
        settings = state.context.settings
        cluster = Cluster(select_context=state.select, kubeconfig=settings.kubeconfig)
        kubectl = Kubectl(
            binary=find_binary("kubectl", settings.extra_bin_path),
            context=cluster.context,
            kubeconfig=settings.kubeconfig,
            dry_run=state.context.dry_run,
            no_proxy_host=cluster.api_server_host,
        )
        ic(kubectl)
        Orchestrator(state.context, cluster, kubectl).dispatch(intent)
    except ClusterConnectionError as e:
        console.error(f"Cluster connection failed: {e}")
        sys.exit(1)
    except CdeUtilsError as e:
        console.error(str(e))
        sys.exit(1)


def host_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the required ``-h HOST`` option."""
    return click.option(
        "--host", "-h", required=True, help="virtual cluster host, e.g. xyz.cde-abcd1234.example.com"
    )(func)


def certificate_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the certificate source and wildcard options."""
    options = [
        click.option("--auto-generate-certs", "-a", is_flag=True, help="generate a self-signed certificate"),
        click.option("--cert-path", "-c", type=click.Path(path_type=Path), help="certificate file"),
        click.option("--key-path", "-k", type=click.Path(path_type=Path), help="private key file"),
        click.option("--wildcard", "-w", is_flag=True, help="use the shared wildcard certificate"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def tunable_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add one ``--<tunable> DURATION`` option per autoscaler tunable."""
    for flag, description in reversed(TUNABLES.items()):
        func = click.option(f"--{flag}", metavar="DURATION", help=f"{description}, eg 10s, 1h, 5m")(func)
    return func


@click.group(invoke_without_command=True, help="Administer CDE base and virtual clusters")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option("--dry-run", "-d", required=False, is_flag=True, help="print remote changes instead of applying them")
@click.option("--yes", "-y", "assume_yes", required=False, is_flag=True, help="do not ask before restarting pods")
@click.option("--kubeconfig", envvar="KUBECONFIG", required=False, help="kubeconfig file")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    debug: bool,
    select: bool,
    dry_run: bool,
    assume_yes: bool,
    kubeconfig: str | None,
) -> None:
    """Process global options.

    Args:
        ctx: Click context; receives the CliState.
        version: Print version and exit.
        debug: Enable debug output.
        select: Prompt for Kubernetes context selection.
        dry_run: Echo mutating kubectl commands instead of running them.
        assume_yes: Skip restart confirmations.
        kubeconfig: Kubeconfig path overriding the default.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()

    settings = Settings.from_env().with_kubeconfig(kubeconfig)
    ic(settings)
    ctx.obj = CliState(context=RequestContext(settings=settings, dry_run=dry_run, assume_yes=assume_yes), select=select)


@cli.command("init-base-cluster", help="Fix the TLS certificate of the base cluster ingress")
@host_option
@certificate_options
@click.pass_obj
def init_base_cluster(
    state: CliState,
    host: str,
    auto_generate_certs: bool,
    cert_path: Path | None,
    key_path: Path | None,
    wildcard: bool,
) -> None:
    """Bind TLS to the base cluster ingress."""
    run_intent(
        state,
        lambda: InitBaseCluster(
            cluster=VirtualCluster.from_host(host, wildcard=wildcard),
            certificates=CertificateSource(cert_path=cert_path, key_path=key_path, auto_generate=auto_generate_certs),
            wildcard=wildcard,
        ),
    )


@cli.command("init-virtual-cluster", help="Fix the TLS certificates of a virtual cluster (base and app ingresses)")
@host_option
@certificate_options
@click.pass_obj
def init_virtual_cluster(
    state: CliState,
    host: str,
    auto_generate_certs: bool,
    cert_path: Path | None,
    key_path: Path | None,
    wildcard: bool,
) -> None:
    """Bind TLS to the base and app ingresses of a virtual cluster."""
    run_intent(
        state,
        lambda: InitVirtualCluster(
            cluster=VirtualCluster.from_host(host, wildcard=wildcard),
            certificates=CertificateSource(cert_path=cert_path, key_path=key_path, auto_generate=auto_generate_certs),
            wildcard=wildcard,
        ),
    )


@cli.command("init-user-in-virtual-cluster", help="Create the Kerberos secrets of a workload user")
@host_option
@click.option("--username", "-u", required=True, help="workload username")
@click.option("--principal", "-p", required=True, type=click.Path(path_type=Path), help="Kerberos principal file")
@click.option("--keytab", "-k", required=True, type=click.Path(path_type=Path), help="Kerberos keytab file")
@click.pass_obj
def init_user(state: CliState, host: str, username: str, principal: Path, keytab: Path) -> None:
    """Provision a workload user's Kerberos secrets."""
    run_intent(
        state,
        lambda: InitUser(
            cluster=VirtualCluster.from_host(host),
            username=username,
            principal_file=principal,
            keytab_file=keytab,
        ),
    )


@cli.command("delete-user-in-virtual-cluster", help="Delete the Kerberos secrets of a workload user")
@host_option
@click.option("--username", "-u", required=True, help="workload username")
@click.pass_obj
def delete_user(state: CliState, host: str, username: str) -> None:
    """Remove a workload user's Kerberos secrets."""
    run_intent(state, lambda: DeleteUser(cluster=VirtualCluster.from_host(host), username=username))


@cli.command("add-spark-config-in-virtual-cluster", help="Add/update spark defaults and toggle gang scheduling")
@host_option
@click.option("--configs", "-c", required=False, help="spark configs, format 'key1=val1,key2=val2'")
@click.option(
    "--gang-scheduling",
    required=False,
    type=click.Choice([choice.value for choice in GangScheduling]),
    help="enable or disable gang scheduling",
)
@click.pass_obj
def add_spark_config(state: CliState, host: str, configs: str | None, gang_scheduling: str | None) -> None:
    """Update spark defaults and/or the gang-scheduling flag."""
    run_intent(
        state,
        lambda: UpdateSparkConfig(
            cluster=VirtualCluster.from_host(host),
            configs=parse_spark_configs(configs) if configs else (),
            gang_scheduling=GangScheduling(gang_scheduling) if gang_scheduling else None,
        ),
    )


@cli.command("edit-cluster-autoscaler", help="Tune how fast the cluster autoscaler scales nodes down (AWS only)")
@click.option("--interactive", "-i", is_flag=True, help="pick tunables from an arrow-key menu")
@tunable_options
@click.pass_obj
def edit_cluster_autoscaler(state: CliState, interactive: bool, **tunables: str | None) -> None:
    """Update autoscaler tunables from options or interactively."""
    options = {flag: tunables[flag.replace("-", "_")] for flag in TUNABLES}
    values = {flag: value for flag, value in options.items() if value is not None}
    ic(values)
    run_intent(state, lambda: EditAutoscaler(values=values, interactive=interactive))


if __name__ == "__main__":
    cli()
