from django.core.management.base import BaseCommand, CommandError

from countries import services, utils
from countries.exceptions import CountryCacheError


class Command(BaseCommand):
    help = "Fetch countries and exchange rates and refresh the country cache."

    def add_arguments(self, parser):
        parser.add_argument("--seed", type=int, default=None,
                            help="Seed the GDP multiplier for reproducible figures.")

    def handle(self, *args, **options):
        rng = None
        if options["seed"] is not None:
            rng = utils.make_rng(options["seed"])
        try:
            result = services.run_refresh(rng=rng)
        except CountryCacheError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(
            f"Cached {result.total_countries} countries at "
            f"{result.last_refreshed_at.isoformat()} ({result.duration_seconds}s)"
        ))
        for rejected in result.rejected:
            self.stdout.write(self.style.WARNING(f"Rejected {rejected['name']!r}: {rejected['details']}"))
