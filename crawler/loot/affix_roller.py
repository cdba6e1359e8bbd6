"""
Affix roller module for the rules engine.

Rolls prefixes, suffixes and implicit affixes onto generated equipment.
"""

import random
from typing import Optional

from catchery import log_warning
from core.constants import AFFIX_COUNTS, AffixKind, EquipmentSlot, ItemRarity
from core.logging import log_debug
from core.utils import round_half_up, weighted_choice
from items.affix import AffixDefinition, AffixInstance, AffixTier
from items.equipment import EquipmentItem


class AffixRoller:
    """
    Picks affixes from the loaded affix tables.

    Attributes:
        affixes (dict[str, AffixDefinition]): Every known affix, by id.
        rng (random.Random): The random generator used for every roll.

    """

    def __init__(
        self,
        affixes: list[AffixDefinition],
        rng: Optional[random.Random] = None,
    ) -> None:
        self.affixes: dict[str, AffixDefinition] = {a.id: a for a in affixes}
        self.rng: random.Random = rng or random.Random()

    def get_affix(self, affix_id: str) -> Optional[AffixDefinition]:
        return self.affixes.get(affix_id)

    def available_affixes(
        self, kind: AffixKind, player_level: int, slot: EquipmentSlot
    ) -> list[AffixDefinition]:
        """
        Lists the affixes of a kind that can roll on a slot at a level.

        Args:
            kind (AffixKind): Prefix or suffix.
            player_level (int): The level unlocking affix tiers.
            slot (EquipmentSlot): The slot of the item being rolled.

        Returns:
            list[AffixDefinition]: The candidates, in table order.

        """
        return [
            affix
            for affix in self.affixes.values()
            if affix.kind == kind
            and affix.allows_slot(slot)
            and affix.tiers_for_level(player_level)
        ]

    def roll_tier(self, tiers: list[AffixTier]) -> AffixTier:
        """Picks a tier by spawn weight."""
        index = weighted_choice(
            self.rng, {index: tier.weight for index, tier in enumerate(tiers)}
        )
        return tiers[index]

    def roll_value(self, tier: AffixTier) -> float:
        """Rolls a tier's value, ranges uniformly, rounded to 2 decimals."""
        if isinstance(tier.value, tuple):
            low, high = tier.value
            return round_half_up(self.rng.uniform(low, high), 2)
        return tier.value

    def instantiate(
        self, affix: AffixDefinition, player_level: int
    ) -> Optional[AffixInstance]:
        """
        Rolls a concrete instance of an affix.

        Args:
            affix (AffixDefinition): The affix to roll.
            player_level (int): The level unlocking affix tiers.

        Returns:
            Optional[AffixInstance]: None if no tier is unlocked at the level.

        """
        tiers = affix.tiers_for_level(player_level)
        if not tiers:
            return None
        tier = self.roll_tier(tiers)
        return AffixInstance(
            id=affix.id,
            name=affix.name,
            kind=affix.kind,
            description=f"{affix.name} T{tier.tier}",
            stats={tier.stat: self.roll_value(tier)},
            tier=tier.tier,
            weight=tier.weight,
        )

    def roll_affix(
        self, kind: AffixKind, player_level: int, slot: EquipmentSlot
    ) -> Optional[AffixInstance]:
        """Picks a random eligible affix of a kind and rolls it."""
        candidates = self.available_affixes(kind, player_level, slot)
        if not candidates:
            return None
        return self.instantiate(self.rng.choice(candidates), player_level)

    def roll_implicit(
        self, affix_id: str, player_level: int
    ) -> Optional[AffixInstance]:
        """
        Rolls the implicit affix named by a base item.

        Implicit affixes are inherent to the base item, so when the level
        unlocks none of their tiers the lowest tier is used.
        """
        affix = self.affixes.get(affix_id)
        if affix is None:
            log_warning(
                f"Unknown implicit affix '{affix_id}'",
                {"affix_id": affix_id, "context": "implicit_affix"},
            )
            return None
        return self.instantiate(
            affix, max(player_level, min(t.required_level for t in affix.tiers))
        )

    def apply_affixes(
        self, item: EquipmentItem, rarity: ItemRarity, player_level: int
    ) -> None:
        """
        Rolls the prefixes and suffixes a rarity grants onto an item.

        The number of rolls is drawn from the rarity's affix count ranges; a
        roll that lands on an affix already on the item is skipped.

        Args:
            item (EquipmentItem): The item to modify in place.
            rarity (ItemRarity): The rarity deciding the affix counts.
            player_level (int): The level unlocking affix tiers.

        """
        (min_prefixes, max_prefixes), (min_suffixes, max_suffixes) = AFFIX_COUNTS[
            rarity
        ]
        for kind, bucket, low, high in (
            (AffixKind.PREFIX, item.prefixes, min_prefixes, max_prefixes),
            (AffixKind.SUFFIX, item.suffixes, min_suffixes, max_suffixes),
        ):
            for _ in range(self.rng.randint(low, high)):
                affix = self.roll_affix(kind, player_level, item.slot_type)
                if affix is None:
                    continue
                if item.has_affix(affix.id):
                    log_debug(
                        f"Skipping duplicate affix {affix.id}",
                        {"item": item.name, "affix": affix.id},
                    )
                    continue
                bucket.append(affix)
