from pathlib import Path
import logging
import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from typing import Optional

from .counters import compute_aggregate_metrics, rule_status
from .ir import AggregateMetrics, Direction, LayoutConfig
from .layout import compute_topology_layout
from .loader import (
    InputFileError,
    load_layout_config,
    load_metrics,
    load_topology,
    save_render_graph,
    save_sample,
)
from .visualize import ascii_plan

app = typer.Typer(no_args_is_help=True, help="flowtopo CLI — stream rule topology layout and metrics")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging.")):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler()])


def _fail(message: str):
    rprint(f"[bold red]Error:[/] {message}")
    raise typer.Exit(code=1)


def _aggregate_panel(agg: AggregateMetrics, status: str) -> Panel:
    body = (
        f"Status: [bold]{status}[/]\n"
        f"Records In: {agg.records_in}   Records Out: {agg.records_out}   "
        f"Avg Latency: {agg.mean_latency_us}μs   Exceptions: [red]{agg.exceptions}[/]"
    )
    return Panel.fit(body, title="Aggregate Metrics")


@app.command()
def sample(name: str = typer.Option("demo", help="Bundled sample: demo | chain"),
           outdir: Path = typer.Option(Path("."), help="Where to place the YAML files")):
    """Write a bundled sample topology and metrics snapshot."""
    try:
        topo_file, metrics_file = save_sample(name, outdir)
    except ValueError as e:
        _fail(str(e))
    rprint(Panel.fit(f"Saved sample [bold]{name}[/] to [cyan]{topo_file}[/] and [cyan]{metrics_file}[/]"))


@app.command()
def layout(topology: Path,
           metrics: Optional[Path] = typer.Option(None, help="Metrics snapshot (YAML/JSON)."),
           config: Optional[Path] = typer.Option(None, help="Layout config (YAML/JSON)."),
           direction: Optional[Direction] = typer.Option(None, help="TB or LR."),
           json_out: Optional[Path] = typer.Option(None, "--json", help="Write the render graph as JSON.")):
    """Lay out a rule topology and annotate it with node metrics."""
    try:
        topo = load_topology(topology)
        snapshot = load_metrics(metrics) if metrics else {}
        if config:
            cfg = load_layout_config(config, direction=direction)
        else:
            cfg = LayoutConfig(direction=direction or Direction.TB)
    except InputFileError as e:
        _fail(str(e))

    graph = compute_topology_layout(topo, snapshot, cfg)
    table = Table(title="Topology Layout", show_lines=False)
    for col in ("Node", "Role", "Level", "Label", "X", "Y", "In", "Out", "Latency μs", "Exceptions"):
        table.add_column(col, justify="right" if col in ("Level", "X", "Y", "In", "Out", "Latency μs", "Exceptions") else "left")
    for n in graph.nodes:
        m = n.metrics
        table.add_row(n.id, f"[{n.color}]{n.role.value}[/]", str(n.level), n.label,
                      str(n.position.x), str(n.position.y), str(m.records_in), str(m.records_out),
                      str(m.latency_us), str(m.exceptions))
    rprint(table)
    rprint(_aggregate_panel(compute_aggregate_metrics(snapshot), graph.status))
    if json_out:
        save_render_graph(graph, json_out)
        rprint(f"Wrote render graph to [cyan]{json_out}[/]")


@app.command()
def metrics(file: Path):
    """Print pipeline-wide totals from a metrics snapshot."""
    try:
        snapshot = load_metrics(file)
    except InputFileError as e:
        _fail(str(e))
    rprint(_aggregate_panel(compute_aggregate_metrics(snapshot), rule_status(snapshot)))


@app.command()
def explain(topology: Path,
            metrics: Optional[Path] = typer.Option(None, help="Metrics snapshot (YAML/JSON).")):
    """Print a text plan of the topology, level by level."""
    try:
        topo = load_topology(topology)
        snapshot = load_metrics(metrics) if metrics else {}
    except InputFileError as e:
        _fail(str(e))
    print(ascii_plan(compute_topology_layout(topo, snapshot)))


if __name__ == "__main__":
    app()
