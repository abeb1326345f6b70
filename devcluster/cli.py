"""Main CLI entry point for the local dev cluster."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from typer.core import TyperGroup

from devcluster.exceptions import DevClusterError
from devcluster.logging_config import get_logger, setup_logging
from devcluster.models.environment import Environment
from devcluster.models.status import ClusterStatus
from devcluster.orchestrator import LifecycleOrchestrator


class CommandGroup(TyperGroup):
    """Command group that answers unknown commands with the usage text and exit status 1."""

    def resolve_command(self, ctx: typer.Context, args: list[str]):
        if args and not args[0].startswith("-") and self.get_command(ctx, args[0]) is None:
            typer.echo(f"Error: No such command '{args[0]}'.\n")
            typer.echo(ctx.get_help())
            raise typer.Exit(code=1)
        return super().resolve_command(ctx, args)


app = typer.Typer(
    name="devcluster",
    help="Local kind cluster with a companion registry and ingress-nginx",
    cls=CommandGroup,
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", envvar="DEVCLUSTER_CLUSTER_NAME", help="kind cluster name"
    ),
    registry_name: str | None = typer.Option(
        None, "--registry-name", envvar="DEVCLUSTER_REGISTRY_NAME", help="Registry container name"
    ),
    registry_port: int | None = typer.Option(
        None, "--registry-port", envvar="DEVCLUSTER_REGISTRY_PORT", help="Registry host port"
    ),
    namespace: str | None = typer.Option(
        None,
        "--namespace",
        "-n",
        envvar="DEVCLUSTER_NAMESPACE",
        help="Namespace of the Services to expose",
    ),
    rollout_timeout: float | None = typer.Option(
        None,
        "--rollout-timeout",
        envvar="DEVCLUSTER_ROLLOUT_TIMEOUT",
        help="Seconds to wait for the ingress controller",
    ),
):
    """Global options for all commands."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=1)

    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")

    try:
        ctx.obj = Environment.from_options(
            cluster_name=cluster_name,
            registry_name=registry_name,
            registry_port=registry_port,
            namespace=namespace,
            rollout_timeout=rollout_timeout,
        )
    except DevClusterError as e:
        _fail(e)


def _orchestrator(ctx: typer.Context) -> LifecycleOrchestrator:
    env = ctx.obj if isinstance(ctx.obj, Environment) else Environment()
    return LifecycleOrchestrator(env, console=console)


def _fail(error: DevClusterError) -> None:
    logger.error(f"{error.kind} error: {error.message}")
    console.print(f"[red]{error.kind} Error:[/red] {error.message}")
    if error.details:
        console.print(f"\n{error.details}")
    if error.partial:
        steps = ", ".join(error.completed_steps)
        console.print(f"\n[yellow]Completed before the failure:[/yellow] {steps}")
        # start is a no-op once the cluster exists
        if "cluster" in error.completed_steps:
            console.print("The cluster exists but is incomplete. After fixing the problem run")
            console.print("'devcluster stop' and then 'devcluster start'")
        else:
            console.print("Run 'devcluster start' again after fixing the problem")
    raise typer.Exit(code=1)


def _unexpected(action: str, error: Exception) -> None:
    logger.error(f"Unexpected error during {action}: {error}", exc_info=True)
    console.print(f"[red]Unexpected error:[/red] {error}")
    console.print("\nRun with --verbose --log-file debug.log for more details")
    raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from devcluster import __version__

    typer.echo(f"devcluster version {__version__}")


@app.command()
def start(ctx: typer.Context) -> None:
    """
    Create the registry, the kind cluster and the ingress controller.

    Does nothing if the cluster already exists.
    """
    try:
        _orchestrator(ctx).start()
    except DevClusterError as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Start interrupted by user[/yellow]")
        console.print("Run 'devcluster stop' and then 'devcluster start' to provision again")
        raise typer.Exit(code=130)
    except Exception as e:
        _unexpected("start", e)


@app.command()
def stop(ctx: typer.Context) -> None:
    """
    Delete the kind cluster and remove the registry container.

    Fails if the cluster does not exist.
    """
    try:
        _orchestrator(ctx).stop()
    except DevClusterError as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stop interrupted by user[/yellow]")
        raise typer.Exit(code=130)
    except Exception as e:
        _unexpected("stop", e)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show whether the cluster is running, its versions and namespaces."""
    try:
        cluster = _orchestrator(ctx).status()
    except DevClusterError as e:
        _fail(e)
    except Exception as e:
        _unexpected("status", e)

    _print_status(cluster)


def _print_status(cluster: ClusterStatus) -> None:
    if not cluster.running:
        console.print(f"Cluster '{cluster.name}' is [red]not running[/red]")
        if cluster.registry_running:
            console.print("[yellow]Note:[/yellow] the registry container is still running")
        return

    console.print(f"Cluster '{cluster.name}' is [green]running[/green]")
    console.print(f"[bold cyan]Client Version:[/bold cyan] {cluster.client_version}")
    console.print(f"[bold cyan]Server Version:[/bold cyan] {cluster.server_version}")
    registry = "[green]running[/green]" if cluster.registry_running else "[red]not running[/red]"
    console.print(f"[bold cyan]Registry:[/bold cyan] {registry}")

    if cluster.nodes:
        nodes_table = Table(title="Nodes")
        nodes_table.add_column("Name", style="cyan")
        nodes_table.add_column("Role", style="magenta")
        for node in cluster.nodes:
            nodes_table.add_row(node.name, node.role)
        console.print(nodes_table)

    console.print("\n[bold cyan]Namespaces:[/bold cyan]")
    for name in cluster.namespaces:
        console.print(f"  - {name}")


@app.command()
def expose(
    ctx: typer.Context,
    service_name: str = typer.Argument(
        "", help="Name of the Service to expose", show_default=False
    ),
) -> None:
    """
    Create an ingress routing <service>.127.0.0.1.nip.io to a Service.

    The Service must exist and declare at least one port; the first port is used.
    """
    try:
        exposed = _orchestrator(ctx).expose(service_name)
    except DevClusterError as e:
        _fail(e)
    except Exception as e:
        _unexpected("expose", e)

    console.print(
        f"[green]✓[/green] Created ingress '{exposed.ingress_name}' for "
        f"{exposed.service_name}:{exposed.port}"
    )
    console.print(f"  Host: {exposed.host}")
    console.print(f"  URL: {exposed.url}")


if __name__ == "__main__":
    app()
