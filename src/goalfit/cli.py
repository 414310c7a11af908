"""CLI interface using Typer."""

from __future__ import annotations

import asyncio
import json
from datetime import date
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from goalfit.config import get_settings
from goalfit.db import get_db
from goalfit.db.queries import MeasurementQueries, ProfileQueries
from goalfit.errors import IncompleteInput, InvalidDomainValue, NonFiniteValue
from goalfit.profiles.goal_solver import infer_goal, target_date_for_tempo
from goalfit.profiles.planner import ProfileInputs, ProfilePlan, build_plan
from goalfit.session import ProfileOrchestrator, SQLiteRecordStore
from goalfit.tracking.dashboard import load_dashboard
from goalfit.tracking.models import BodyMeasurementEntry, Metric, WeightEntry

app = typer.Typer(
    help="Goal-driven nutrition targets and transformation progress",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
profile_app = typer.Typer(help="Edit and show the goal profile")
weight_app = typer.Typer(help="Log weigh-ins")
measure_app = typer.Typer(help="Log body measurements")
config_app = typer.Typer(help="Inspect configuration")

app.add_typer(profile_app, name="profile")
app.add_typer(weight_app, name="weight")
app.add_typer(measure_app, name="measure")
app.add_typer(config_app, name="config")

DEFAULT_USER_ID = 1


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2, default=str)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def ensure_tables() -> None:
    """Ensure tables exist (idempotent)."""
    get_db().initialize_schema()


def fail(command: str, message: str, json_output: bool, suggestion: Optional[str] = None) -> None:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        response: dict[str, Any] = {"success": False, "command": command, "errors": [message]}
        if suggestion:
            response["suggestions"] = [suggestion]
        output_json(response)
    else:
        console.print(f"[red]{message}[/red]")
        if suggestion:
            console.print(suggestion)
    raise typer.Exit(1)


def parse_date(value: Optional[str], option: str) -> Optional[date]:
    """Parse a YYYY-MM-DD option value."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint=option)


@profile_app.callback()
def profile_callback() -> None:
    """Ensure tables exist before any profile command."""
    ensure_tables()


@weight_app.callback()
def weight_callback() -> None:
    """Ensure tables exist before any weight command."""
    ensure_tables()


@measure_app.callback()
def measure_callback() -> None:
    """Ensure tables exist before any measure command."""
    ensure_tables()


def load_plan(user_id: int) -> Optional[ProfilePlan]:
    """Build the plan for a stored profile, or None if there is no profile."""
    with get_db().get_connection() as conn:
        record = ProfileQueries.get_profile(conn, user_id)
        if record is None:
            return None
        body_fat = MeasurementQueries.get_feed(conn, user_id).get(Metric.BODY_FAT).latest
    return build_plan(ProfileInputs.from_record(record, body_fat))


def plan_to_dict(plan: ProfilePlan) -> dict:
    energy = plan.energy
    deficit = plan.deficit
    macros = plan.macros
    return {
        "bmr": round(energy.bmr_kcal) if energy.bmr_kcal is not None else None,
        "tdee": round(energy.tdee_kcal) if energy.tdee_kcal is not None else None,
        "direction": plan.direction.value,
        "target_calories": plan.target_calories,
        "deficit": {
            "daily": deficit.daily_kcal_delta,
            "weekly": deficit.weekly_kcal_delta,
            "total": deficit.total_kcal_needed,
            "days_to_goal": deficit.days_to_goal,
            "weeks_to_goal": deficit.weeks_to_goal,
            "is_gaining": deficit.is_gaining,
            "weekly_fat_loss_g": deficit.weekly_fat_loss_g,
        }
        if deficit
        else None,
        "macros": {
            "intensity": macros.intensity.value,
            "protein_g": macros.protein_g,
            "carb_g": macros.carb_g,
            "fat_g": macros.fat_g,
            "protein_pct": macros.protein_pct,
            "carb_pct": macros.carb_pct,
            "fat_pct": macros.fat_pct,
        }
        if macros
        else None,
        "realism": {
            "score": plan.realism.score,
            "label": plan.realism.label,
            "reasons": plan.realism.reasons,
            "is_realistic": plan.is_realistic,
        },
        "missing": plan.missing,
        "warnings": plan.warnings,
    }


# ============================================================================
# Profile Commands
# ============================================================================


async def apply_profile_changes(user_id: int, changes: dict[str, Any]) -> ProfileOrchestrator:
    """Load the profile, apply edits and save them through the orchestrator."""
    orchestrator = ProfileOrchestrator(SQLiteRecordStore(get_db()), user_id, debounce_seconds=0)
    await orchestrator.load()
    try:
        current = orchestrator.inputs
        if "weight" in changes and current.start_weight is None:
            changes.setdefault("start_weight", changes["weight"])

        weight = changes.get("weight", current.weight)
        target = changes.get("target_weight", current.target_weight)
        if "goal" not in changes and current.goal is None and weight and target:
            changes["goal"] = infer_goal(weight, target).value

        orchestrator.update(**changes)
        await orchestrator.flush()
    finally:
        await orchestrator.close()
    return orchestrator


@profile_app.command("set")
def profile_set(
    weight: Optional[float] = typer.Option(None, "--weight", help="Current weight in kg"),
    height: Optional[float] = typer.Option(None, "--height", help="Height in cm"),
    age: Optional[int] = typer.Option(None, "--age", help="Age in years"),
    sex: Optional[str] = typer.Option(None, "--sex", help="Sex (male/female)"),
    activity: Optional[str] = typer.Option(
        None,
        "--activity",
        help="Activity level (sedentary/light/moderate/active/very_active)",
    ),
    goal: Optional[str] = typer.Option(None, "--goal", help="Goal (lose/maintain/gain)"),
    target_weight: Optional[float] = typer.Option(None, "--target-weight", help="Target weight in kg"),
    target_date: Optional[str] = typer.Option(None, "--target-date", help="Target date (YYYY-MM-DD)"),
    tempo: Optional[str] = typer.Option(
        None, "--tempo", help="Set the target date from a preset (sustainable/standard/aggressive)"
    ),
    goal_type: Optional[str] = typer.Option(None, "--goal-type", help="Goal type (weight/body_fat/both)"),
    target_body_fat: Optional[float] = typer.Option(None, "--target-body-fat", help="Target body fat %"),
    target_muscle: Optional[float] = typer.Option(None, "--target-muscle", help="Target muscle %"),
    target_belly: Optional[float] = typer.Option(None, "--target-belly", help="Target belly in cm"),
    intensity: Optional[str] = typer.Option(
        None, "--intensity", help="Macro intensity (rookie/warrior/elite)"
    ),
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Update profile fields and recompute targets."""
    if target_date and tempo:
        fail("profile set", "Use either --target-date or --tempo, not both", json_output)

    options = {
        "weight": weight,
        "height": height,
        "age": age,
        "gender": sex,
        "activity_level": activity,
        "goal": goal,
        "target_weight": target_weight,
        "target_date": parse_date(target_date, "--target-date"),
        "goal_type": goal_type,
        "target_body_fat_percentage": target_body_fat,
        "target_muscle_percentage": target_muscle,
        "target_belly_cm": target_belly,
        "macro_strategy": intensity,
    }
    changes = {k: v for k, v in options.items() if v is not None}

    if tempo:
        try:
            changes["target_date"] = target_date_for_tempo(tempo)
        except InvalidDomainValue as e:
            fail("profile set", str(e), json_output)

    if not changes:
        fail("profile set", "No fields to update", json_output, "See: goalfit profile set --help")

    try:
        orchestrator = asyncio.run(apply_profile_changes(user_id, changes))
    except (InvalidDomainValue, NonFiniteValue) as e:
        fail("profile set", str(e), json_output)

    if orchestrator.last_error is not None:
        fail("profile set", f"Save failed: {orchestrator.last_error}", json_output)

    plan = orchestrator.plan
    summary = f"Profile {user_id} updated"
    if plan.target_calories is not None:
        summary += f", {plan.target_calories} kcal/day"

    if json_output:
        output_json({
            "success": True,
            "command": "profile set",
            "data": {
                "user_id": user_id,
                "updated": sorted(changes),
                "plan": plan_to_dict(plan),
            },
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")
        if plan.missing:
            console.print(f"[yellow]Still missing:[/yellow] {', '.join(plan.missing)}")


@profile_app.command("show")
def profile_show(
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the stored profile."""
    with get_db().get_connection() as conn:
        record = ProfileQueries.get_profile(conn, user_id)

    if record is None:
        fail(
            "profile show",
            "No profile found",
            json_output,
            "Create one with: goalfit profile set --weight 80 --height 180 --age 30 --sex male",
        )

    if json_output:
        output_json({
            "success": True,
            "command": "profile show",
            "data": record.to_dict(),
            "human_summary": f"Profile {user_id}: {record.gender}, {record.age}y, {record.weight}kg",
        })
        return

    table = Table(title=f"Profile (ID: {user_id})", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in record.to_dict().items():
        if name == "user_id" or value is None:
            continue
        table.add_row(name.replace("_", " "), str(value))
    console.print(table)


# ============================================================================
# Plan
# ============================================================================


@app.command()
def plan(
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show energy, calorie and macro targets with the goal realism score."""
    ensure_tables()
    result = load_plan(user_id)
    if result is None:
        fail("plan", "No profile found", json_output, "Create one with: goalfit profile set ...")

    if not result.is_complete:
        fail("plan", str(IncompleteInput(result.missing)), json_output)

    data = plan_to_dict(result)
    macros = result.macros
    summary = (
        f"{result.target_calories} kcal: {macros.protein_g}g protein, "
        f"{macros.carb_g}g carbs, {macros.fat_g}g fat; realism {result.realism.score}/100"
    )

    if json_output:
        output_json({"success": True, "command": "plan", "data": data, "human_summary": summary})
        return

    console.print(Panel(
        f"BMR: {data['bmr']} kcal\n"
        f"TDEE: {data['tdee']} kcal\n"
        f"Target: [bold]{result.target_calories} kcal[/bold] ({result.direction.value})",
        title="Energy",
    ))

    table = Table(title=f"Macros ({macros.intensity.value})")
    table.add_column("Macro", style="cyan")
    table.add_column("Grams", justify="right")
    table.add_column("%", justify="right")
    table.add_row("Protein", str(macros.protein_g), f"{macros.protein_pct:.1f}")
    table.add_row("Carbs", str(macros.carb_g), f"{macros.carb_pct:.1f}")
    table.add_row("Fat", str(macros.fat_g), f"{macros.fat_pct:.1f}")
    console.print(table)

    if result.deficit:
        deficit = result.deficit
        kind = "surplus" if deficit.is_gaining else "deficit"
        console.print(
            f"Daily {kind}: {deficit.daily_kcal_delta} kcal over {deficit.days_to_goal} days "
            f"({deficit.weeks_to_goal} weeks)"
        )

    style = "green" if result.is_realistic else "yellow"
    console.print(f"[{style}]Realism: {result.realism.score}/100 ({result.realism.label})[/{style}]")
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


# ============================================================================
# Measurement Commands
# ============================================================================


def require_profile(conn, user_id: int, command: str, json_output: bool) -> None:
    if ProfileQueries.get_profile(conn, user_id) is None:
        fail(command, "No profile found", json_output, "Create one first: goalfit profile set ...")


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in kg"),
    body_fat: Optional[float] = typer.Option(None, "--body-fat", help="Body fat %"),
    muscle: Optional[float] = typer.Option(None, "--muscle", help="Muscle %"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Optional notes"),
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Add a weigh-in, optionally with body composition."""
    measured_at = parse_date(date_str, "--date") or date.today()
    try:
        entry = WeightEntry(
            log_id=None,
            user_id=user_id,
            weight_kg=weight,
            measured_at=measured_at,
            body_fat_percentage=body_fat,
            muscle_percentage=muscle,
            notes=notes,
        )
    except ValueError as e:
        fail("weight add", str(e), json_output)

    with get_db().get_connection() as conn:
        require_profile(conn, user_id, "weight add", json_output)
        MeasurementQueries.add_weight(conn, entry)

    if json_output:
        output_json({
            "success": True,
            "command": "weight add",
            "data": {
                "weight_kg": entry.weight_kg,
                "body_fat_percentage": entry.body_fat_percentage,
                "muscle_percentage": entry.muscle_percentage,
                "measured_at": entry.measured_at.isoformat(),
            },
            "human_summary": f"Logged {weight:.1f} kg on {measured_at}",
        })
    else:
        console.print(f"[green]Logged:[/green] {weight:.1f} kg on {measured_at}")


@weight_app.command("list")
def weight_list(
    days: int = typer.Option(30, "--days", "-d", help="Number of entries to show"),
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weigh-ins."""
    with get_db().get_connection() as conn:
        history = MeasurementQueries.get_weight_history(conn, user_id, days=days)

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {
                "entries": [
                    {
                        "date": e.measured_at.isoformat(),
                        "weight_kg": e.weight_kg,
                        "body_fat_percentage": e.body_fat_percentage,
                        "muscle_percentage": e.muscle_percentage,
                    }
                    for e in history
                ]
            },
            "human_summary": f"{len(history)} entries",
        })
        return

    if not history:
        console.print("No weight entries found")
        return

    table = Table(title=f"Weight History (last {days} entries)")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Body fat", justify="right")
    table.add_column("Muscle", justify="right")
    table.add_column("", justify="right")

    prev = None
    for entry in history:
        delta = f"{entry.weight_kg - prev:+.1f}" if prev is not None else ""
        prev = entry.weight_kg
        table.add_row(
            entry.measured_at.isoformat(),
            f"{entry.weight_kg:.1f}",
            f"{entry.body_fat_percentage:.1f}" if entry.body_fat_percentage is not None else "-",
            f"{entry.muscle_percentage:.1f}" if entry.muscle_percentage is not None else "-",
            delta,
        )
    console.print(table)


@measure_app.command("add")
def measure_add(
    belly: float = typer.Argument(..., help="Belly circumference in cm"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Optional notes"),
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Add a belly measurement."""
    measured_at = parse_date(date_str, "--date") or date.today()
    try:
        entry = BodyMeasurementEntry(
            log_id=None, user_id=user_id, measured_at=measured_at, belly_cm=belly, notes=notes
        )
    except ValueError as e:
        fail("measure add", str(e), json_output)

    with get_db().get_connection() as conn:
        require_profile(conn, user_id, "measure add", json_output)
        MeasurementQueries.add_body_measurement(conn, entry)

    if json_output:
        output_json({
            "success": True,
            "command": "measure add",
            "data": {"belly_cm": entry.belly_cm, "measured_at": measured_at.isoformat()},
            "human_summary": f"Logged belly {belly:.1f} cm on {measured_at}",
        })
    else:
        console.print(f"[green]Logged:[/green] belly {belly:.1f} cm on {measured_at}")


# ============================================================================
# Progress
# ============================================================================


@app.command()
def progress(
    user_id: int = typer.Option(DEFAULT_USER_ID, "--user", help="User ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show progress towards each goal metric."""
    ensure_tables()
    with get_db().get_connection() as conn:
        dashboard = load_dashboard(conn, user_id)

    if dashboard is None:
        fail("progress", "No profile found", json_output, "Create one with: goalfit profile set ...")

    if json_output:
        output_json({
            "success": True,
            "command": "progress",
            "data": dashboard.to_dict(),
            "human_summary": ", ".join(
                f"{m.value} {s.percent_complete:.0f}%" for m, s in dashboard.snapshots.items()
            )
            or "No metrics with start, current and target values",
        })
        return

    if not dashboard.snapshots:
        console.print("No metrics with start, current and target values yet")
    else:
        table = Table(title="Progress")
        table.add_column("Metric", style="cyan")
        table.add_column("Start", justify="right")
        table.add_column("Current", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("Done", justify="right", style="green")
        for metric, snap in dashboard.snapshots.items():
            table.add_row(
                metric.value,
                f"{snap.start_value:.1f}",
                f"{snap.current_value:.1f}",
                f"{snap.target_value:.1f}",
                f"{snap.percent_complete:.0f}%",
            )
        console.print(table)

    if dashboard.days_remaining is not None:
        console.print(f"Days remaining: {dashboard.days_remaining}")
    if dashboard.current_bmi is not None:
        console.print(f"BMI: {dashboard.current_bmi:.1f} ({dashboard.current_bmi_category})")


# ============================================================================
# Config
# ============================================================================


@config_app.command("show")
def config_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the effective configuration."""
    data = get_settings().to_dict()
    if json_output:
        output_json({
            "success": True,
            "command": "config show",
            "data": data,
            "human_summary": f"Database: {data['database']['path']}",
        })
    else:
        console.print(yaml.dump(data, default_flow_style=False, sort_keys=False))


if __name__ == "__main__":
    app()
