"""Create or update the hybrid pages matching the Django URL configuration."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from apps.cms.exceptions import ConfigurationError
from apps.cms.models import Site
from apps.cms.routes import RoutePageGenerator


class Command(BaseCommand):
    help = "Synchronise CMS hybrid pages with the named URL routes (and create error pages)."

    def add_arguments(self, parser):
        parser.add_argument("--site", type=int, help="Only update the site with this id (default: every enabled site).")
        parser.add_argument(
            "--clean",
            action="store_true",
            help="Delete hybrid pages whose route does not exist anymore.",
        )

    def handle(self, *args, **options):
        site_id = options.get("site")
        if site_id:
            sites = list(Site.objects.filter(pk=site_id))
            if not sites:
                raise CommandError(f"Site {site_id} does not exist")
        else:
            sites = list(Site.objects.filter(enabled=True)) or [None]

        generator = RoutePageGenerator()
        for site in sites:
            label = site.name if site is not None else "(no site)"
            self.stdout.write(f"Site: {label}")
            try:
                summary = generator.update(site, self.stdout, clean=options.get("clean", False))
            except ConfigurationError as exc:
                raise CommandError(str(exc)) from exc
            counts = ", ".join(f"{k.lower()}={v}" for k, v in summary.items())
            self.stdout.write(self.style.SUCCESS(f"Routes synchronised: {counts}"))
