"""Shared fixtures for item tests."""

import copy

import pytest


@pytest.fixture
def sword():
    return {
        "kind": "weapon",
        "name": "Longsword",
        "type": {"value": "melee", "category": "basic"},
        "properties": ["versatile"],
        "damage": {"number": 1, "denomination": 8, "type": "slashing"},
    }


@pytest.fixture
def dagger():
    return {
        "kind": "weapon",
        "name": "Dagger",
        "type": {"value": "melee", "category": "basic"},
        "properties": ["finesse", "lightweight", "thrown"],
        "damage": {"number": 1, "denomination": 4, "type": "piercing"},
    }


@pytest.fixture
def rifle():
    return {
        "kind": "weapon",
        "name": "Assault Rifle",
        "type": {"value": "ranged", "category": "military"},
        "properties": ["fullAuto"],
        "penetration_value": 2,
        "rounds": {"spent": 5, "capacity": 30, "burst": 3},
        "damage": {"number": 2, "denomination": 8, "type": "ballistic"},
    }


@pytest.fixture
def ammunition():
    return {
        "kind": "ammunition",
        "name": "Armor-Piercing Rounds",
        "type": "ap",
        "penetration_value": 1,
        "quantity": 60,
    }


@pytest.fixture
def armed(derive):
    """Derive a fighter (STR 16, DEX 14, basic equipment) carrying the given items."""

    def _armed(items, **data):
        return derive(
            {
                "name": "Fighter",
                "abilities": {"str": {"value": 16}, "dex": {"value": 14}},
                "traits": {"equipment": ["basic"]},
                "items": copy.deepcopy(items),
                **data,
            }
        )

    return _armed
