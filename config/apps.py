from django.apps import AppConfig
from django.db.models.signals import post_migrate

import logging
logger = logging.getLogger(__name__)


def sync_site(sender, **kwargs):
    """
    Point the default Site at SITE_DOMAIN / SITE_NAME once the sites app has migrated.
    allauth builds the links in its account emails from this row.
    """
    if sender.name != 'django.contrib.sites':
        return

    from django.conf import settings
    from django.contrib.sites.models import Site

    site, created = Site.objects.update_or_create(
        pk=settings.SITE_ID,
        defaults={
            'domain': settings.SITE_DOMAIN,
            'name': settings.SITE_NAME,
        }
    )
    logger.info("Site %s %s", site.domain, "created" if created else "updated")


class ConfigConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'config'

    def ready(self):
        post_migrate.connect(sync_site)
