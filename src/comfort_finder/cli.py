"""CLI entry point for scoring venues and testing follow-up filtering locally."""

from __future__ import annotations

import argparse
import json
import random
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from comfort_finder.config import configure_logging, load_config
from comfort_finder.enrichment import enhance_venues, enrich_with_reviews
from comfort_finder.followup import analyze_follow_up, filter_venues, generate_filter_response
from comfort_finder.models import Outing, Stop, UserPreferences, Venue
from comfort_finder.outings import calculate_outing_comfort, calculate_total_duration, format_duration, suggested_stop_types
from comfort_finder.preferences import load_preferences
from comfort_finder.sensory_match import calculate_sensory_match
from comfort_finder.tables import comfort_label
from comfort_finder.time_comfort import get_hourly_comfort, get_time_recommendation

console = Console()

_LEVEL_COLORS = {"quiet": "green", "moderate": "yellow", "busy": "red"}
_MATCH_COLORS = {"excellent": "green", "good": "green", "moderate": "yellow", "poor": "red"}


def main():
    parser = argparse.ArgumentParser(description="Comfort Finder: sensory-friendly venue scoring")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # --- serve command ---
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")

    # --- score command ---
    score_parser = subparsers.add_parser("score", help="Score and rank venues from a JSON file")
    score_parser.add_argument("venues", help="JSON file with a venue or a list of venues")
    _add_common_args(score_parser)
    score_parser.add_argument("--limit", type=int, default=0, help="Max venues to show (0 = all)")

    # --- details command ---
    details_parser = subparsers.add_parser("details", help="Full comfort breakdown for one venue")
    details_parser.add_argument("venue", help="JSON file with a venue (may include 'reviews')")
    _add_common_args(details_parser)
    details_parser.add_argument("--weekend", action="store_true", help="Predict weekend crowd levels")

    # --- follow-up command ---
    followup_parser = subparsers.add_parser("follow-up", help="Classify a chat message against previous results")
    followup_parser.add_argument("message", help="The user's follow-up message")
    followup_parser.add_argument("--results", help="JSON file with the previous venue results")
    followup_parser.add_argument("--json-out", help="Save results to JSON file")

    # --- outing command ---
    outing_parser = subparsers.add_parser("outing", help="Comfort summary for an outing JSON file")
    outing_parser.add_argument("outing", help="JSON file with an outing or a list of stops")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    configure_logging(config.log_level)

    try:
        if args.command == "serve":
            from comfort_finder.api import start_server
            start_server(host=args.host, port=args.port)
        elif args.command == "score":
            _handle_score(args)
        elif args.command == "details":
            _handle_details(args)
        elif args.command == "follow-up":
            _handle_follow_up(args)
        elif args.command == "outing":
            _handle_outing(args)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]❌ Could not read input: {e}[/red]")
        sys.exit(1)


def _add_common_args(parser: argparse.ArgumentParser):
    parser.add_argument("--preferences", help="JSON file with saved user preferences")
    parser.add_argument("--noise", type=int, help="Noise sensitivity 1-5 (overrides file)")
    parser.add_argument("--light", type=int, help="Light sensitivity 1-5 (overrides file)")
    parser.add_argument("--space", type=int, help="Spaciousness preference 1-5 (overrides file)")
    parser.add_argument("--seed", type=int, help="Seed for recommendation text")
    parser.add_argument("--json-out", help="Save results to JSON file")


def _read_json(path: str):
    return json.loads(Path(path).read_text())


def _preferences_from_args(args) -> UserPreferences:
    data = _read_json(args.preferences) if args.preferences else {}
    overrides = {
        "noiseSensitivity": args.noise,
        "lightSensitivity": args.light,
        "spaciousnessPreference": args.space,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return load_preferences(data)


def _rng(args) -> random.Random | None:
    return random.Random(args.seed) if args.seed is not None else None


def _save_json(path: str, payload):
    with open(path, "w") as f:
        json.dump(payload, f, indent=2, default=str)
    console.print(f"\n💾 Results saved to {path}")


def _handle_score(args):
    raw = _read_json(args.venues)
    venues = [Venue.model_validate(v) for v in (raw if isinstance(raw, list) else [raw])]
    preferences = _preferences_from_args(args)

    ranked = enhance_venues(venues, preferences, _rng(args), args.limit or None)
    _display_venues(ranked)

    if args.json_out:
        _save_json(args.json_out, [v.model_dump(mode="json", by_alias=True, exclude_none=True) for v in ranked])


def _display_venues(venues: list[Venue]):
    """Pretty-print ranked venues to the console."""
    if not venues:
        console.print("\n[yellow]No venues to score.[/yellow]")
        return

    console.print(f"\n[bold green]Scored {len(venues)} venue(s), calmest first:[/bold green]\n")

    for i, v in enumerate(venues, 1):
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Field", style="bold cyan", width=16)
        table.add_column("Value")

        score = v.comfort_score or 0
        color = "green" if score >= 65 else "yellow" if score >= 50 else "red"
        table.add_row("Comfort", f"[{color}]{score} — {comfort_label(score)}[/]")
        if v.categories:
            table.add_row("Categories", ", ".join(c.title or c.alias or "" for c in v.categories))
        if v.price:
            table.add_row("Price", v.price)
        if v.noise_level:
            table.add_row("Noise", v.noise_level.replace("_", " "))
        if v.comfort_attributes:
            table.add_row("Attributes", " · ".join(a.label for a in v.comfort_attributes))
        if v.recommendation_reason:
            table.add_row("Why", v.recommendation_reason)

        console.print(Panel(table, title=f"[bold]{i}. {v.name}[/bold]", border_style="green"))


def _handle_details(args):
    raw = _read_json(args.venue)
    venue = Venue.model_validate(raw)
    preferences = _preferences_from_args(args)

    enriched = enrich_with_reviews(venue, venue.reviews, preferences, _rng(args))
    match = calculate_sensory_match(enriched, preferences)
    hourly = get_hourly_comfort(enriched, args.weekend)

    _display_venues([enriched])

    if enriched.review_comfort_summary:
        console.print(Panel(enriched.review_comfort_summary, title="🗒️  What reviewers say", border_style="dim"))

    match_table = Table(title=f"Sensory match: {match.overall}/100")
    match_table.add_column("Category", style="bold cyan")
    match_table.add_column("Score", justify="right")
    match_table.add_column("Match")
    match_table.add_column("Notes")
    for name, cat in match.breakdown.items():
        match_table.add_row(name, str(cat.score), f"[{_MATCH_COLORS[cat.match]}]{cat.match}[/]", cat.description)
    console.print(match_table)

    time_table = Table(title="Crowd levels" + (" (weekend)" if args.weekend else ""))
    time_table.add_column("Hour", style="bold cyan")
    time_table.add_column("Level")
    time_table.add_column("Score", justify="right")
    for h in hourly:
        time_table.add_row(h.label, f"[{_LEVEL_COLORS[h.level]}]{h.level}[/]", str(h.score))
    console.print(time_table)
    console.print(f"\n⏰ {get_time_recommendation(enriched)}")

    for quote in enriched.comfort_quotes:
        icon = "👍" if quote.sentiment == "positive" else "⚠️ "
        console.print(f'  {icon} "{quote.text}" — {quote.user}')

    if args.json_out:
        _save_json(args.json_out, {
            "venue": enriched.model_dump(mode="json", by_alias=True, exclude_none=True),
            "sensory_match": match.model_dump(mode="json", by_alias=True),
            "hourly_comfort": [h.model_dump(mode="json") for h in hourly],
        })


def _handle_follow_up(args):
    previous = [Venue.model_validate(v) for v in _read_json(args.results)] if args.results else []
    classification = analyze_follow_up(args.message, bool(previous))

    kind = "[green]filter[/green]" if classification.is_filter else "[blue]new search[/blue]"
    console.print(Panel(
        f"[bold]Intent:[/bold] {kind}\n"
        f"[bold]Confidence:[/bold] {classification.confidence.value}\n"
        f"[bold]Filters:[/bold] {', '.join(classification.detected_filters) or 'none'}",
        title="💬 Follow-up",
        border_style="blue",
    ))

    payload = {"classification": classification.model_dump(mode="json", by_alias=True)}
    if classification.is_filter:
        result = filter_venues(previous, classification.detected_filters)
        if result.applied:
            console.print(generate_filter_response(result.filtered, result.applied, previous))
        else:
            console.print("[yellow]None of the detected filters changed the results.[/yellow]")
        _display_venues(result.filtered)
        payload["result"] = result.model_dump(mode="json", by_alias=True, exclude_none=True)

    if args.json_out:
        _save_json(args.json_out, payload)


def _handle_outing(args):
    raw = _read_json(args.outing)
    if isinstance(raw, list):
        stops = [Stop.model_validate(s) for s in raw]
        name = "Outing"
    else:
        outing = Outing.model_validate({"id": raw.get("id", "local"), "date": raw.get("date", ""), **raw})
        stops, name = outing.stops, outing.name

    total = calculate_outing_comfort(stops)
    duration = calculate_total_duration(stops)

    table = Table(show_header=True)
    table.add_column("Time", style="bold cyan")
    table.add_column("Stop")
    table.add_column("Type")
    table.add_column("Comfort", justify="right")
    for stop in stops:
        score = (stop.venue.comfort_score if stop.venue else None) or stop.comfort_score
        table.add_row(
            stop.time or "—",
            stop.venue.name if stop.venue else "—",
            stop.type or "—",
            str(score) if score else "—",
        )

    console.print(Panel(table, title=f"[bold]{name}[/bold]", border_style="cyan"))
    console.print(f"Overall comfort: [bold]{total}[/bold] ({comfort_label(total)}) · {format_duration(duration)}")
    console.print(f"[dim]Could add: {', '.join(suggested_stop_types(stops))}[/dim]")


if __name__ == "__main__":
    main()
