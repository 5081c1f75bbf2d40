from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Run the development server on the port configured by $PORT."

    def handle(self, *args, **options):
        call_command("runserver", f"0.0.0.0:{settings.PORT}")
