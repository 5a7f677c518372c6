"""Management command to build an observation report using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from meteo.services import build_observation_report
from meteo_api.views import QueryError, get_orchestrator, parse_observation_query, serialize_report, station_name


class Command(BaseCommand):
    help = "Fetch observations for a station and print the report as JSON"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--station", required=True, help="Station identifier, e.g. X4")
        parser.add_argument("--from", dest="date_from", help="First day, YYYY-MM-DD")
        parser.add_argument("--to", dest="date_to", help="Last day, YYYY-MM-DD")
        parser.add_argument("--days", type=int, help="Whole days before today (7, 14 or 30), instead of --from/--to")
        parser.add_argument("--granularity", default="daily", help="30min, hourly or daily")
        parser.add_argument("--provider", help="Use only this provider")
        parser.add_argument("--threshold", help="Exceedance threshold in m/s")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        query = {
            "stationId": options["station"],
            "from": options["date_from"],
            "to": options["date_to"],
            "days": options.get("days"),
            "granularity": options["granularity"],
            "threshold": options.get("threshold"),
        }
        try:
            station_id, date_range, aggregation, threshold = parse_observation_query(query)
        except QueryError as exc:
            raise CommandError(str(exc)) from exc

        provider = options.get("provider")
        orchestrator = get_orchestrator()
        result = build_observation_report(
            orchestrator,
            station_id,
            date_range,
            aggregation,
            station_name=station_name(orchestrator, station_id, provider),
            threshold=threshold,
            provider=provider,
        )
        if not result.ok:
            raise CommandError(f"{result.error.code.value}: {result.error.message}")
        self.stdout.write(json.dumps(serialize_report(result.data), cls=DjangoJSONEncoder))
