"""Shared fixtures for advancement tests."""

import pytest

from heroforge.models.changes import apply_changes
from heroforge.models.sources import CreatureSource


@pytest.fixture
def commit():
    """Apply a change set to a source the way a store would."""

    def _commit(source: CreatureSource, changes) -> CreatureSource:
        document = apply_changes(source.model_dump(mode="json"), changes.to_json())
        return CreatureSource.model_validate(document)

    return _commit
