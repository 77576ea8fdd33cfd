"""
Command-line interface for PQEval package.
"""

import typer
from pathlib import Path
from typing import List, Optional
import traceback

from ase.io import read

from .config import PQEvalConfig, load_config
from .calc.overlap import make_overlap_calculator
from .orchestrators.runners import evaluate_parallel
from .reports.summarize import overlap_table, summarize_overlaps

app = typer.Typer(help="PQEval: atom radii overlaps of crystal structures")

@app.command()
def init(
    config: str = typer.Option("config.yml", help="Configuration file to create"),
    force: bool = typer.Option(False, help="Overwrite existing config")
):
    """Initialize a new PQEval configuration file."""

    config_path = Path(config)

    if config_path.exists() and not force:
        typer.echo(f"Configuration file {config} already exists. Use --force to overwrite.")
        raise typer.Exit(1)

    PQEvalConfig().to_yaml(str(config_path))

    typer.echo(f"Created configuration file: {config}")
    typer.echo("Edit this file and run 'pqeval overlap STRUCTURE' to evaluate overlaps.")

def parse_radii(items: List[str]) -> dict:
    """Parse SYMBOL=RADIUS items."""
    radii = {}
    for item in items:
        symbol, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected SYMBOL=RADIUS, got {item!r}")
        radii[symbol.strip()] = float(value)
    return radii

@app.command()
def overlap(
    structure: str = typer.Argument(..., help="Structure file readable by ASE"),
    config: Optional[str] = typer.Option(None, help="Configuration file"),
    radius: Optional[List[str]] = typer.Option(None, help="Custom radius as SYMBOL=RADIUS"),
    ncpu: Optional[int] = typer.Option(None, help="Number of partitions"),
    top: Optional[int] = typer.Option(None, help="Number of overlapping pairs to list")
):
    """Evaluate atom radii overlaps of a structure."""

    if not Path(structure).exists():
        typer.echo(f"Structure file {structure} not found.")
        raise typer.Exit(1)

    try:
        cfg = load_config(config)
        cfg.custom_radii.update(parse_radii(radius or []))
        if ncpu is not None:
            cfg.ncpu = ncpu
        if top is not None:
            cfg.top = top

        atoms = read(structure)
        calc = make_overlap_calculator(cfg)
        evaluate_parallel(calc, atoms, cfg.ncpu)

        summary = summarize_overlaps(calc)
        typer.echo(f"Sites: {summary.nsites}")
        typer.echo(f"Overlapping pairs: {summary.npairs}")
        typer.echo(f"Total square overlap: {summary.total_square_overlap:.6g} Å²")
        typer.echo(f"RMS overlap: {summary.rmsoverlap:.6g} Å")
        typer.echo(f"Cutoff used: {summary.rmax_used:.4g} Å")

        table = overlap_table(calc, top_n=cfg.top)
        if not table.empty:
            typer.echo("")
            typer.echo(table.to_string(index=False))

    except Exception as e:
        typer.echo(f"Error evaluating overlaps: {e}")
        traceback.print_exc()
        raise typer.Exit(1)

if __name__ == "__main__":
    app()
