"""Service provider for wiring ExpeditionService with a source.

``get_expedition_service`` returns the HTTP-backed service when
``settings.USE_HTTP_ADAPTERS`` is truthy. Otherwise it serves the
recorded payload named by ``settings.EXPEDITIONS_FIXTURE``, or an empty
one when no fixture is configured.
"""

from shopping import settings
from shopping.expeditions.adapters import StaticExpeditionSource
from shopping.expeditions.http_client import LaunchLibraryClient
from shopping.expeditions.service import ExpeditionService


def get_expedition_service() -> ExpeditionService:
    if settings.USE_HTTP_ADAPTERS:
        return ExpeditionService(LaunchLibraryClient())
    if settings.EXPEDITIONS_FIXTURE:
        return ExpeditionService(StaticExpeditionSource.from_file(settings.EXPEDITIONS_FIXTURE))
    return ExpeditionService(StaticExpeditionSource())
