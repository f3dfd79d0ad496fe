"""CLI entry point: generate or look up a briefing without the web server."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from avybrief.config import list_centers
from avybrief.db.engine import SessionLocal, get_engine, init_db
from avybrief.digest.llm_config import ChatModelOracle, load_briefing_config
from avybrief.digest.prompt_builder import danger_text
from avybrief.errors import BriefingError
from avybrief.fetch.avalanche_org import AvalancheOrgClient
from avybrief.fetch.open_meteo import OpenMeteoClient
from avybrief.models import BriefingEnvelope
from avybrief.pipeline import BriefingSynthesizer
from avybrief.storage.briefings import SqlBriefingStore
from avybrief.storage.caches import SqlForecastCache, SqlWeatherCache

logger = logging.getLogger(__name__)

_SEPARATOR = "=" * 55


def format_briefing(envelope: BriefingEnvelope) -> str:
    """Format a briefing envelope for the terminal."""
    briefing = envelope.briefing
    if briefing is None:
        return "No briefing for today."

    lines = [
        _SEPARATOR,
        f"  {briefing.zone}, {briefing.center}",
        f"  {briefing.forecast_date}  Danger: {danger_text(briefing.danger_level)}",
        f"  {'Cached' if envelope.cached else 'Generated'} {briefing.created_at:%Y-%m-%d %H:%M} UTC",
        _SEPARATOR,
    ]
    if envelope.staleness_warning:
        lines += ["", f"WARNING: {envelope.staleness_warning}"]
    lines += ["", briefing.briefing_text]

    if briefing.problems:
        lines += ["", "PROBLEMS:"]
        for n, problem in enumerate(briefing.problems, start=1):
            lines.append(f"  {n}. {problem.name} ({problem.likelihood}, {problem.size})")
            if problem.description:
                lines.append(f"     {problem.description}")

    if briefing.field_observation_prompts:
        lines += ["", "LOOK FOR:"]
        lines += [f"  - {p}" for p in briefing.field_observation_prompts]

    if briefing.source_url:
        lines += ["", f"Source: {briefing.source_center or briefing.center} {briefing.source_url}"]
    if briefing.disclaimer:
        lines += ["", briefing.disclaimer]
    lines.append(_SEPARATOR)
    return "\n".join(lines)


def run_briefing(center: str, zone: str, regenerate: bool, config_name: str | None) -> int:
    """Generate (or fetch the cached) briefing and print it. Returns an exit code."""
    config = load_briefing_config(config_name)
    engine = get_engine()
    init_db(engine)

    print(f"Config: {config.name} ({config.llm.provider}/{config.llm.model}, {config.contract.value})")

    with SessionLocal() as session:
        synthesizer = BriefingSynthesizer(
            AvalancheOrgClient(),
            OpenMeteoClient(),
            ChatModelOracle(config),
            SqlBriefingStore(session),
            config=config,
            forecast_cache=SqlForecastCache(session),
            weather_cache=SqlWeatherCache(session),
        )
        try:
            if regenerate:
                print(synthesizer.regenerate_briefing(center, zone))
            envelope = synthesizer.get_or_create_briefing(center, zone)
        except BriefingError as e:
            print(f"Error ({e.kind.value}): {e.message}")
            return 1

    print()
    print(format_briefing(envelope))
    return 0


def main() -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="avybrief",
        description="Plain-language avalanche briefings from official forecasts",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    briefing_parser = subparsers.add_parser(
        "briefing", help="Print today's briefing for a zone, generating it if needed"
    )
    briefing_parser.add_argument("center", help='Avalanche center, e.g. "Sierra Avalanche Center"')
    briefing_parser.add_argument("zone", help='Forecast zone, e.g. "Central Sierra"')
    briefing_parser.add_argument(
        "--regenerate", action="store_true",
        help="Discard today's stored briefing and generate a new one",
    )
    briefing_parser.add_argument(
        "--config", default=None,
        help="Briefing config name (default: env AVYBRIEF_BRIEFING_CONFIG or 'default')",
    )

    subparsers.add_parser("centers", help="List known avalanche centers")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if args.command == "centers":
        for name in list_centers():
            print(f"  {name}")
    elif args.command == "briefing":
        sys.exit(run_briefing(args.center, args.zone, args.regenerate, args.config))


if __name__ == "__main__":
    main()
