"""In-process expedition sources.

``StaticExpeditionSource`` implements the ``ExpeditionSource`` port
without network calls. It serves a fixed payload, either given directly
or loaded from a JSON file shaped like the upstream ``/expeditions/``
response, which makes it suitable for tests and offline development.
"""

import json
from pathlib import Path
from typing import Union

from shopping.expeditions.schemas import Expedition, ExpeditionResponse


class StaticExpeditionSource:
    """Serve expeditions from a fixed ``ExpeditionResponse`` payload."""

    def __init__(self, payload: Union[dict, ExpeditionResponse, None] = None):
        if payload is None:
            payload = ExpeditionResponse()
        elif not isinstance(payload, ExpeditionResponse):
            payload = ExpeditionResponse.model_validate(payload)
        self._response = payload

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticExpeditionSource":
        """Load a recorded upstream response from ``path``."""
        with open(path, encoding="utf-8") as fh:
            return cls(json.load(fh))

    def fetch_active_expeditions(self) -> list[Expedition]:
        return list(self._response.results)
