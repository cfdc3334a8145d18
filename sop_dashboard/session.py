"""
Session-level collection of parsed scenario batches.

One ParseResult is held per scenario name. Loading a scenario again
replaces its previous batch wholesale.
"""

import logging

from .loaders.utils import sort_weeks
from .models import AlertRecord, Observation, ParseResult

logger = logging.getLogger(__name__)


class ScenarioStore:
    """Loaded scenarios, keyed by name, in load order.

    `load` builds a new mapping and swaps it in with one assignment, so a
    reader never sees a half-replaced scenario. Two loads racing on the
    same scenario name must be serialised by the caller.
    """

    def __init__(self, results: list[ParseResult] | None = None):
        self._batches: dict[str, ParseResult] = {}
        # scenario -> id of the last upload handled for it
        self._upload_ids: dict[str, str] = {}
        for result in results or []:
            self.load(result)

    def load(self, result: ParseResult) -> None:
        replaced = result.scenario in self._batches
        batches = dict(self._batches)
        batches[result.scenario] = result
        self._batches = batches
        logger.info(
            "%s scenario %s (%d observations, %d alerts)",
            "Replaced" if replaced else "Loaded",
            result.scenario, len(result.observations), len(result.alerts),
        )

    def remove(self, scenario: str) -> None:
        batches = dict(self._batches)
        batches.pop(scenario, None)
        self._batches = batches

    def clear(self) -> None:
        self._batches = {}
        self._upload_ids = {}

    def claim_upload(self, scenario: str, upload_id: str) -> bool:
        """Mark an upload as handled for a scenario.

        Returns False when `upload_id` is already the last upload handled
        for `scenario`, so a file still sitting in an upload widget is not
        parsed and loaded again on every rerun.
        """
        if self._upload_ids.get(scenario) == upload_id:
            return False
        self._upload_ids[scenario] = upload_id
        return True

    def get(self, scenario: str) -> ParseResult | None:
        return self._batches.get(scenario)

    def __contains__(self, scenario: str) -> bool:
        return scenario in self._batches

    def __len__(self) -> int:
        return len(self._batches)

    @property
    def scenario_names(self) -> list[str]:
        return list(self._batches)

    @property
    def observations(self) -> tuple[Observation, ...]:
        return tuple(obs for batch in self._batches.values() for obs in batch.observations)

    @property
    def alerts(self) -> tuple[AlertRecord, ...]:
        return tuple(alert for batch in self._batches.values() for alert in batch.alerts)

    @property
    def categories(self) -> list[str]:
        return list(dict.fromkeys(obs.category for obs in self.observations))

    @property
    def weeks(self) -> list[str]:
        return sort_weeks(obs.week for obs in self.observations)
