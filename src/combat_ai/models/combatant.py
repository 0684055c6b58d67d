"""Pydantic V2 schemas for combatants and their equipment.

Host applications describe fighters in many shapes: ``PE`` at the top
level, ``attributes.pe``, ``stats.PE`` and so on. ``Combatant.from_raw``
normalizes all of those into one canonical record once, so the engine never
branches on attribute-name variants.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from combat_ai.core.exceptions import ValidationError
from combat_ai.models.enums import SizeCategory
from combat_ai.models.grid import Cell
from combat_ai.models.state import FatigueState, GrappleState, SprintFatigueState


ATTRIBUTE_NAMES = ("PS", "PP", "PE", "ME", "IQ", "Spd")
"""Canonical attribute keys."""

_ATTRIBUTE_ALIASES = {
    "ps": "PS",
    "strength": "PS",
    "pp": "PP",
    "prowess": "PP",
    "pe": "PE",
    "endurance": "PE",
    "me": "ME",
    "iq": "IQ",
    "spd": "Spd",
    "speed": "Spd",
}


class Attributes(BaseModel):
    """Canonical physical and mental attributes.

    Attributes:
        PS: Physical strength.
        PP: Physical prowess.
        PE: Physical endurance.
        ME: Mental endurance.
        IQ: Intelligence.
        Spd: Speed.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    PS: int = Field(default=10, ge=0)
    PP: int = Field(default=10, ge=0)
    PE: int = Field(default=10, ge=0)
    ME: int = Field(default=10, ge=0)
    IQ: int = Field(default=10, ge=0)
    Spd: int = Field(default=10, ge=0)

    @staticmethod
    def bonus(score: int) -> int:
        """Attribute bonus: floor((score - 10) / 2)."""
        return (score - 10) // 2


class WeaponBonuses(BaseModel):
    """Bonuses granted by a specific weapon."""

    model_config = ConfigDict(extra="forbid")

    strike: int = 0
    parry: int = 0
    damage: int = 0


class Weapon(BaseModel):
    """A weapon as seen by the evaluator and the grapple system.

    Attributes:
        name: Display name; also used to infer the weapon type.
        damage: Damage dice expression.
        length: Blade or haft length in feet, when known.
        reach: Reach in feet, when known.
        bonuses: Weapon-specific bonuses.
        two_handed: Weapon is wielded in both hands.
        weapon_type: Explicit type keyword (e.g. "dagger"), overriding inference.
        range_ft: Effective range for ranged weapons.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    damage: str = Field(default="1d6")
    length: float | None = Field(default=None, ge=0)
    reach: float | None = Field(default=None, ge=0)
    bonuses: WeaponBonuses = Field(default_factory=WeaponBonuses)
    two_handed: bool = False
    weapon_type: str | None = None
    range_ft: float | None = Field(default=None, ge=0)

    @property
    def is_dagger(self) -> bool:
        """True for daggers and knives, which excel inside a grapple."""
        keyword = (self.weapon_type or self.name).lower()
        return "dagger" in keyword or "knife" in keyword


class InventoryItem(BaseModel):
    """A carried item. Weapons may be given by name only and resolved later."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    item_type: Literal["weapon", "consumable", "gear"] = "gear"
    quantity: int = Field(default=1, ge=0)
    weapon: Weapon | None = None


class ArmorPiece(BaseModel):
    """Worn armor with its own structural damage capacity.

    Attributes:
        name: Display name.
        ar: Armor rating; attack rolls below it strike the armor.
        sdc: Maximum armor S.D.C.
        current_sdc: Remaining armor S.D.C.
        weight: Weight used for encumbrance.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = "Armor"
    ar: int = Field(default=0, ge=0)
    sdc: int = Field(default=0, ge=0)
    current_sdc: int = Field(default=0, ge=0)
    weight: float = Field(default=0.0, ge=0)


class CombatBonuses(BaseModel):
    """Hand-to-hand bonuses."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    strike: int = 0
    parry: int = 0
    dodge: int = 0
    damage: int = 0
    grapple: int = 0


class Combatant(BaseModel):
    """A fighter participating in an encounter.

    The engine reads everything here, but only mutates the three lazily
    created sub-states, hit points, S.D.C., position and the prone flag.

    Attributes:
        id: Unique combatant identifier.
        name: Display name.
        attributes: Canonical attribute record.
        current_hp: Current hit points.
        max_hp: Maximum hit points.
        current_sdc: Current character S.D.C.
        max_sdc: Maximum character S.D.C.
        level: Experience level.
        position: Grid cell.
        equipped_weapons: Weapons in hand, primary first.
        inventory: Carried items.
        skills: Skill names (e.g. "Combat Maneuvers").
        armor: Worn armor.
        bonuses: Hand-to-hand bonuses.
        race: Race or species name.
        size: Explicit size category.
        height_ft: Height, used to infer size when none is given.
        weight: Body weight.
        is_animal: Animals default to SMALL when size is unknown.
        occ: Occupational character class.
        carried_weight: Total weight carried besides armor.
        has_ranged_attack: Can attack at range.
        can_cast_magic: Has spells.
        weapon_range_ft: Range of the primary attack.
        fearless: Never retreats.
        is_fleeing: Currently running from the fight.
        role: Tactical role (e.g. "bodyguard").
        has_death_blow: Can deliver a death blow on a natural maximum.
        status_effects: Transient tags such as "casting" or "wounded".
        is_prone: Knocked to the ground.
        personality: Personality profile key.
        fatigue_state: Melee-round stamina state.
        sprint_state: Sprint-duration fatigue state.
        grapple_state: Grapple state.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(min_length=1, description="Unique combatant ID")
    name: str = Field(min_length=1, max_length=100, description="Display name")
    attributes: Attributes = Field(default_factory=Attributes)
    current_hp: int = Field(default=10, ge=0)
    max_hp: int = Field(default=10, ge=1)
    current_sdc: int = Field(default=0, ge=0)
    max_sdc: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=0)
    position: Cell = Field(default_factory=Cell)
    equipped_weapons: list[Weapon] = Field(default_factory=list)
    inventory: list[InventoryItem] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    armor: ArmorPiece | None = None
    bonuses: CombatBonuses = Field(default_factory=CombatBonuses)
    race: str | None = None
    size: SizeCategory | None = None
    height_ft: float | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, ge=0)
    is_animal: bool = False
    occ: str | None = None
    carried_weight: float = Field(default=0.0, ge=0)
    has_ranged_attack: bool = False
    can_cast_magic: bool = False
    weapon_range_ft: float | None = Field(default=None, ge=0)
    fearless: bool = False
    is_fleeing: bool = False
    role: str | None = None
    has_death_blow: bool = False
    status_effects: list[str] = Field(default_factory=list)
    is_prone: bool = False
    personality: str | None = None
    fatigue_state: FatigueState | None = None
    sprint_state: SprintFatigueState | None = None
    grapple_state: GrappleState | None = None

    @field_validator("size", mode="before")
    @classmethod
    def coerce_size(cls, value: Any) -> SizeCategory | None:
        """Accept size names in any case."""
        if value is None:
            return None
        return SizeCategory.parse(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hp_ratio(self) -> float:
        """Current HP as a share of maximum."""
        return self.current_hp / self.max_hp if self.max_hp else 0.0

    @property
    def primary_weapon(self) -> Weapon | None:
        """First equipped weapon, if any."""
        return self.equipped_weapons[0] if self.equipped_weapons else None

    @property
    def is_melee_only(self) -> bool:
        return not self.has_ranged_attack and not self.can_cast_magic

    @property
    def is_casting(self) -> bool:
        return "casting" in self.status_effects

    @property
    def is_wounded(self) -> bool:
        return "wounded" in self.status_effects

    @property
    def armor_weight(self) -> float:
        return self.armor.weight if self.armor else 0.0

    @property
    def is_engaged(self) -> bool:
        """True while in any grapple position."""
        return self.grapple_state is not None and self.grapple_state.is_engaged

    @classmethod
    def from_raw(cls, data: Mapping[str, Any]) -> Combatant:
        """Build a combatant from loosely shaped host data.

        Attribute values are looked up at the top level, then under
        ``attributes``, then under ``stats``, in any spelling listed in
        ``_ATTRIBUTE_ALIASES``. Common camelCase keys are renamed.

        Args:
            data: Host record.

        Returns:
            A validated Combatant.

        Raises:
            ValidationError: If the record lacks an id or name, or an
                attribute is not a number.

        Example:
            >>> Combatant.from_raw({"id": "orc-1", "name": "Orc", "pe": 12}).attributes.PE
            12
        """
        if "id" not in data or "name" not in data:
            raise ValidationError(
                "Combatant record requires 'id' and 'name'",
                details={"keys": sorted(data)},
            )

        attributes: dict[str, int] = {}
        sources = [data, data.get("attributes") or {}, data.get("stats") or {}]
        for source in sources:
            if not isinstance(source, Mapping):
                continue
            for key, value in source.items():
                canonical = _ATTRIBUTE_ALIASES.get(str(key).lower())
                if canonical is None or canonical in attributes or value is None:
                    continue
                try:
                    attributes[canonical] = int(value)
                except (TypeError, ValueError) as exc:
                    raise ValidationError(
                        f"Attribute {canonical} must be numeric",
                        field_name=canonical,
                        invalid_value=value,
                    ) from exc

        renames = {
            "currentHP": "current_hp",
            "maxHP": "max_hp",
            "currentSDC": "current_sdc",
            "maxSDC": "max_sdc",
            "equippedWeapons": "equipped_weapons",
            "hasRangedAttack": "has_ranged_attack",
            "isFearless": "fearless",
            "isFleeing": "is_fleeing",
            "weaponRange": "weapon_range_ft",
            "statusEffects": "status_effects",
            "sizeCategory": "size",
            "hasDeathBlow": "has_death_blow",
            "carriedWeight": "carried_weight",
            "magic": "can_cast_magic",
            "species": "race",
        }
        known = set(cls.model_fields)
        payload: dict[str, Any] = {}
        for key, value in data.items():
            field_name = renames.get(key, key)
            if field_name == "can_cast_magic":
                value = bool(value)
            if field_name in known and field_name != "attributes":
                payload[field_name] = value
        if isinstance(payload.get("position"), Mapping):
            position = payload["position"]
            payload["position"] = {"x": position.get("x", 0), "y": position.get("y", 0)}
        payload["attributes"] = Attributes(**attributes)
        payload["id"] = str(payload["id"])
        return cls.model_validate(payload)


__all__ = [
    "ATTRIBUTE_NAMES",
    "Attributes",
    "WeaponBonuses",
    "Weapon",
    "InventoryItem",
    "ArmorPiece",
    "CombatBonuses",
    "Combatant",
]
