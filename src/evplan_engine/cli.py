"""Command-line interface for the EV plan engine."""

import logging
from pathlib import Path

import typer

from evplan_engine import __version__

app = typer.Typer(
    help="EV Charging Plan Engine",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log planner details")):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show engine version."""
    typer.echo(f"EV Plan Engine v{__version__}")


@app.command()
def validate(bundle_path: str):
    """Validate a scenario bundle.

    Args:
        bundle_path: Path to bundle directory
    """
    from evplan_engine.core.validate import validate_rate_table
    from evplan_engine.io.bundle import load_bundle, validate_bundle

    try:
        validate_bundle(bundle_path)
        _, _, rate_table = load_bundle(bundle_path)
        validate_rate_table(rate_table)
        typer.secho(f"✓ Bundle at {bundle_path} is valid", fg=typer.colors.GREEN)
    except Exception as e:
        typer.secho(f"✗ Bundle validation failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


@app.command()
def plan(bundle_path: str):
    """Show the charging plan at the scenario start.

    Args:
        bundle_path: Path to bundle directory
    """
    from evplan_engine.runners.simulate import run_plan

    try:
        charging_plan, metrics = run_plan(bundle_path)
    except Exception as e:
        typer.secho(f"✗ Planning failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    unit = metrics["price_unit"]

    if len(charging_plan) == 0:
        typer.secho("Nothing to plan", fg=typer.colors.YELLOW)
        return

    typer.echo(f"\nRequired: {metrics['required_hours']:.2f} h")
    for slot in charging_plan:
        typer.echo(f"  {slot.start:%Y-%m-%d %H:%M} - {slot.end:%H:%M}  {slot.price:.3f} {unit}")

    typer.echo(f"\nAverage price:    {metrics['plan_average_price']:.3f} {unit}")
    typer.echo(f"Baseline price:   {metrics['baseline_average_price']:.3f} {unit}")
    typer.echo(f"Savings:          {metrics['savings']:.2f} ({metrics['savings_pct']:.1f}%)")


@app.command()
def simulate(bundle_path: str):
    """Run a charging simulation on a bundle.

    Args:
        bundle_path: Path to bundle directory
    """
    from evplan_engine.runners.simulate import run_simulation

    try:
        run_simulation(bundle_path)
        typer.secho(f"\n✓ Simulation completed successfully", fg=typer.colors.GREEN)
    except Exception as e:
        typer.secho(f"\n✗ Simulation failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


@app.command()
def report(bundle_path: str):
    """Generate report from simulation results.

    Args:
        bundle_path: Path to bundle directory
    """
    import json

    bundle_path_obj = Path(bundle_path)

    # Check if results exist
    metrics_file = bundle_path_obj / "metrics.json"
    if not metrics_file.exists():
        typer.secho(
            f"✗ No results found in bundle. Run simulate first.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)

    with open(metrics_file) as f:
        metrics = json.load(f)

    unit = metrics["price_unit"]

    typer.echo("\n" + "=" * 60)
    typer.echo(f"SIMULATION RESULTS: {metrics['loadpoint_id']}")
    typer.echo("=" * 60)

    typer.echo(f"\nCharging:")
    typer.echo(f"  Energy:           {metrics['energy_charged_kwh']:.2f} kWh")
    typer.echo(f"  Active:           {metrics['active_hours']:.2f} h in {metrics['activations']} sessions")
    typer.echo(f"  Final SoC:        {metrics['final_soc']:.1f}%")
    typer.echo(f"  Goal met:         {'yes' if metrics['goal_met'] else 'no'}")

    typer.echo(f"\nCost:")
    typer.echo(f"  Total:            {metrics['cost']:.2f}")
    typer.echo(f"  Average price:    {metrics['average_price']:.3f} {unit}")

    if metrics["planner_errors"]:
        typer.secho(f"\n{metrics['planner_errors']} ticks without a feasible plan", fg=typer.colors.YELLOW)

    typer.echo("\n" + "=" * 60 + "\n")

    typer.secho("✓ Report generated", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
