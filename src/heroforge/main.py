"""Command-line entry point for heroforge."""

import argparse
import sys
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from heroforge.catalog import Catalog, CatalogLoadError, CatalogValidationError, get_catalog, load_catalog
from heroforge.dice import DiceRoller, attack_roll, damage_roll
from heroforge.formula import FormulaError
from heroforge.log import configure_logging
from heroforge.models.sources import build_creature_source
from heroforge.pipeline import Creature, DerivationError, DerivationPipeline, WeaponState

logger = structlog.get_logger(__name__)


def load_creature_file(path: Path) -> dict[str, Any]:
    """
    Read a creature document from YAML.

    Raises:
        ValueError: If the file does not hold a mapping
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data


def summarize(creature: Creature) -> dict[str, Any]:
    """Plain-data summary of a resolved creature."""
    return {
        "name": creature.source.name,
        "level": creature.level,
        "prof": creature.prof,
        "hp_max": creature.hp_max,
        "abilities": {
            key: {"value": a.value, "mod": a.mod, "check": a.check, "save": a.save, "dc": a.dc}
            for key, a in creature.abilities.items()
        },
        "skills": {key: {"mod": s.mod, "passive": s.passive} for key, s in creature.skills.items()},
        "scale": creature.scale,
        "weapons": {
            weapon.id: {
                "mode": weapon.mode,
                "modes": weapon.modes,
                "attack": weapon.attack_mod,
                "damage": weapon.damage.formula,
                "damage_mod": weapon.damage_mod,
                "critical_threshold": weapon.critical_threshold,
                "penetration_value": weapon.penetration_value,
                "ammunition": weapon.ammunition.id if weapon.ammunition else None,
            }
            for weapon in creature.weapons()
        },
    }


def derive_creature(path: Path, catalog: Catalog) -> Creature:
    source = build_creature_source(load_creature_file(path), catalog)
    return DerivationPipeline(catalog).prepare(source)


def cmd_derive(args: argparse.Namespace, catalog: Catalog) -> int:
    creature = derive_creature(args.creature, catalog)
    yaml.safe_dump(summarize(creature), sys.stdout, sort_keys=False)
    return 0


def cmd_attack(args: argparse.Namespace, catalog: Catalog) -> int:
    creature = derive_creature(args.creature, catalog)
    weapon = creature.items.get(args.weapon)
    if not isinstance(weapon, WeaponState):
        print(f"No weapon '{args.weapon}' on {creature.source.name}", file=sys.stderr)
        return 1

    attack = attack_roll(weapon, creature)
    output: dict[str, Any] = {"weapon": weapon.id, "mode": weapon.mode, "attack": attack.formula}

    critical = args.critical
    if args.roll:
        roller = DiceRoller(args.seed)
        result = roller.roll(attack.formula)
        critical = critical or (result.natural is not None and result.natural >= weapon.critical_threshold)
        output["attack_total"] = result.total
        output["critical"] = critical

    damage = damage_roll(weapon, creature, critical=critical)
    output["damage"] = damage.formula
    if args.roll:
        output["damage_total"] = roller.roll(damage.formula).total

    yaml.safe_dump(output, sys.stdout, sort_keys=False)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="heroforge", description=__doc__)
    parser.add_argument("--catalog", type=Path, help="Rules catalog YAML (defaults to settings)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    derive = subparsers.add_parser("derive", help="Print the derived statistics of a creature")
    derive.add_argument("creature", type=Path, help="Creature YAML file")
    derive.set_defaults(handler=cmd_derive)

    attack = subparsers.add_parser("attack", help="Build (and optionally roll) a weapon attack")
    attack.add_argument("creature", type=Path, help="Creature YAML file")
    attack.add_argument("weapon", help="Weapon item id")
    attack.add_argument("--critical", action="store_true", help="Build critical damage")
    attack.add_argument("--roll", action="store_true", help="Roll the attack and damage")
    attack.add_argument("--seed", type=int, default=None, help="Seed for reproducible rolls")
    attack.set_defaults(handler=cmd_attack)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Run the heroforge CLI.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        catalog = load_catalog(args.catalog) if args.catalog else get_catalog()
        return args.handler(args, catalog)
    except (CatalogLoadError, CatalogValidationError) as e:
        logger.error("catalog_load_failed", error=str(e))
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        logger.error("creature_load_failed", error=str(e))
    except (DerivationError, FormulaError) as e:
        logger.error("derivation_failed", error=str(e))
    return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
