"""
Combat engine module for the rules engine.

Runs a dungeon fight between the player and a group of enemies as a state
machine over turn phases. Every animation window is a timer on the injected
scheduler; timers remember the encounter they were scheduled in and do
nothing once that encounter is over.
"""

import random
from collections import deque
from typing import Callable, Optional

from catchery import log_debug, log_warning
from core.constants import (
    COMBAT_LOG_LIMIT,
    DEFAULT_TIER,
    DEFAULT_TOTAL_FIGHTS,
    PLAYER_ENTITY_ID,
    ProgressResult,
    TurnPhase,
)
from core.error_handling import ErrorHandler, ensure_int_in_range
from core.event_system import EventEmitter, EventType, StateChangeListener
from core.scheduler import Scheduler
from enemies.enemy_generator import EnemyGenerator
from loot.loot_generator import LootResult
from pydantic import BaseModel, Field
from stats.combat_stats import CombatStats
from stats.stat_aggregator import CombatStatsProvider

from combat.combat_entity import CombatEntity, DamageResult
from combat.damage import apply_damage, calculate_damage
from combat.npc_ai import refresh_intents


class CombatTimings(BaseModel):
    """Lengths of the animation windows, in milliseconds."""

    hit_delay: int = Field(
        default=300, ge=0, description="From the player's attack to the hit landing."
    )
    return_delay: int = Field(
        default=600, ge=0, description="From the hit landing to the end of the attack."
    )
    block_delay: int = Field(
        default=500, ge=0, description="From the player's block to the enemy phase."
    )
    enemy_attack_delay: int = Field(
        default=600, ge=0, description="From an enemy's attack to the hit landing."
    )
    enemy_pause: int = Field(
        default=400, ge=0, description="Pause between two enemies' attacks."
    )


class CombatEngine:
    """
    Resolves turn-based fights and tracks a dungeon run.

    The player acts first each round (attack or block), then every living
    enemy attacks in order. Only one player action can be in flight: requests
    made while `is_processing_turn` is set, outside the player phase, or
    without a living target are ignored.

    Attributes:
        turn_phase (TurnPhase): The current phase.
        player (Optional[CombatEntity]): The player, None outside combat.
        enemies (list[CombatEntity]): The enemies of the current fight.
        selected_target_id (Optional[str]): The enemy the player will attack.
        fight_rewards (Optional[LootResult]): The loot of the last won fight.
        show_reward_modal (bool): Whether the rewards are waiting to be seen.
        is_in_combat (bool): Whether a dungeon run is in progress.
        current_fight (int): The 1-based index of the current fight.
        total_fights (int): The number of fights in the dungeon.
        is_processing_turn (bool): Whether a player action is resolving.

    """

    def __init__(
        self,
        enemy_generator: EnemyGenerator,
        stats_provider: Optional[CombatStatsProvider] = None,
        scheduler: Optional[Scheduler] = None,
        timings: Optional[CombatTimings] = None,
        rng: Optional[random.Random] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.enemy_generator = enemy_generator
        self.stats_provider = stats_provider
        self.scheduler: Scheduler = scheduler or Scheduler()
        self.timings: CombatTimings = timings or CombatTimings()
        self.rng: random.Random = rng or random.Random()
        self._events = EventEmitter(error_handler)
        self._epoch: int = 0
        self._reset_state()

    def _reset_state(self) -> None:
        self.turn_phase: TurnPhase = TurnPhase.PLAYER
        self.player: Optional[CombatEntity] = None
        self.enemies: list[CombatEntity] = []
        self.selected_target_id: Optional[str] = None
        self._combat_log: deque[str] = deque(maxlen=COMBAT_LOG_LIMIT)
        self.fight_rewards: Optional[LootResult] = None
        self.show_reward_modal: bool = False
        self.is_in_combat: bool = False
        self.current_fight: int = 1
        self.total_fights: int = DEFAULT_TOTAL_FIGHTS
        self.is_processing_turn: bool = False
        self.current_enemy_index: int = 0
        self.tier: int = DEFAULT_TIER
        self.player_level: int = 1

    # ============================================================================
    # OBSERVABLE STATE
    # ============================================================================

    def on_state_change(self, handler: StateChangeListener) -> Callable[[], None]:
        """Registers a listener and returns the function that removes it."""
        return self._events.on_state_change(handler)

    @property
    def combat_log(self) -> list[str]:
        """The most recent log entries, oldest first."""
        return list(self._combat_log)

    @property
    def epoch(self) -> int:
        """Counter identifying the current encounter."""
        return self._epoch

    @property
    def living_enemies(self) -> list[CombatEntity]:
        return [enemy for enemy in self.enemies if enemy.is_alive]

    @property
    def selected_target(self) -> Optional[CombatEntity]:
        return self.get_enemy(self.selected_target_id)

    def get_enemy(self, enemy_id: Optional[str]) -> Optional[CombatEntity]:
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def _log(self, message: str) -> None:
        self._combat_log.append(message)
        log_debug(message, {"fight": self.current_fight})
        self._events.emit(EventType.LOG_UPDATED, message=message)

    def _set_phase(self, phase: TurnPhase) -> None:
        if self.turn_phase == phase:
            return
        previous, self.turn_phase = self.turn_phase, phase
        self._events.emit(
            EventType.PHASE_CHANGED, previous=previous.value, phase=phase.value
        )

    # ============================================================================
    # TIMERS
    # ============================================================================

    def _bump_epoch(self) -> None:
        self._epoch += 1

    def _schedule(self, delay_ms: int, callback: Callable[[], None]) -> None:
        """Schedules a callback that only runs if the encounter is still current."""
        epoch = self._epoch

        def guarded() -> None:
            if epoch != self._epoch:
                log_debug(
                    "Ignoring timer from a finished encounter",
                    {"timer_epoch": epoch, "current_epoch": self._epoch},
                )
                return
            callback()

        self.scheduler.schedule(delay_ms, guarded)

    # ============================================================================
    # ENCOUNTER LIFECYCLE
    # ============================================================================

    def initialize(
        self,
        player_combat_stats: Optional[CombatStats] = None,
        tier: int = DEFAULT_TIER,
        *,
        player_level: int = 1,
        total_fights: int = DEFAULT_TOTAL_FIGHTS,
    ) -> bool:
        """
        Starts a dungeon run with its first fight.

        The player's stats are snapshotted with every pool restored to full.
        When no stats are given they are read from the stats provider.

        Args:
            player_combat_stats (Optional[CombatStats]): The player's stats.
            tier (int): The dungeon tier, deciding the enemies and their count.
            player_level (int): The player's level, used for loot.
            total_fights (int): The number of fights in the dungeon.

        Returns:
            bool: False, with a warning, if no player stats are available.

        """
        if player_combat_stats is None and self.stats_provider is not None:
            player_combat_stats = self.stats_provider.get_combat_stats()
        if player_combat_stats is None:
            log_warning(
                "Cannot start combat without player stats",
                {"context": "combat_initialize"},
            )
            return False

        self._bump_epoch()
        self._reset_state()
        self.tier = tier
        self.player_level = ensure_int_in_range(player_level, "player level", 1)
        self.total_fights = ensure_int_in_range(
            total_fights, "total fights", 1, default=DEFAULT_TOTAL_FIGHTS
        )
        self.player = CombatEntity(
            id=PLAYER_ENTITY_ID,
            name="Player",
            stats=player_combat_stats.restored(),
        )
        self.is_in_combat = True
        self._start_fight()
        return True

    def _start_fight(self) -> None:
        self.enemies = self.enemy_generator.dungeon_encounter(self.tier)
        self._set_phase(TurnPhase.PLAYER)
        self.current_enemy_index = 0
        self.is_processing_turn = False
        self.selected_target_id = None
        self.select_next_valid_target()
        names = ", ".join(enemy.name for enemy in self.enemies)
        self._log(f"Fight {self.current_fight} begins! Enemies: {names}")
        self._events.emit(
            EventType.COMBAT_STARTED,
            fight=self.current_fight,
            tier=self.tier,
            enemies=[enemy.id for enemy in self.enemies],
        )
        # An empty encounter is won on the spot.
        self._check_victory()

    def next_fight(self) -> ProgressResult:
        """
        Moves on after a fight.

        Returns:
            ProgressResult: DEFEATED, after ending combat, if the player is
            dead; DUNGEON_COMPLETE, after ending combat, if that was the last
            fight; NEXT_FIGHT, with a new encounter at the same tier,
            otherwise. The player's pools carry over between fights.

        """
        player = self.player
        if self.turn_phase == TurnPhase.DEFEAT or (
            player is not None and not player.is_alive
        ):
            self.end_combat()
            return ProgressResult.DEFEATED
        if self.current_fight >= self.total_fights:
            self.end_combat()
            return ProgressResult.DUNGEON_COMPLETE

        self._bump_epoch()
        self.current_fight += 1
        self.fight_rewards = None
        self.show_reward_modal = False
        if self.player is not None:
            self.player.is_blocking = False
        self._start_fight()
        return ProgressResult.NEXT_FIGHT

    def end_combat(self) -> None:
        """Leaves combat, dropping every pending timer and all state."""
        self._bump_epoch()
        self._reset_state()
        self._events.emit(EventType.COMBAT_ENDED)

    def close_reward_modal(self) -> None:
        self.show_reward_modal = False

    # ============================================================================
    # TARGETING
    # ============================================================================

    def select_target(self, enemy_id: str) -> bool:
        """
        Chooses the enemy the player attacks.

        Args:
            enemy_id (str): The id of the enemy.

        Returns:
            bool: False if the id is unknown or the enemy is dead.

        """
        enemy = self.get_enemy(enemy_id)
        if enemy is None or not enemy.is_alive:
            log_debug(
                f"Ignoring invalid target {enemy_id}",
                {"enemy_id": enemy_id, "known": enemy is not None},
            )
            return False
        self._change_target(enemy.id)
        return True

    def select_next_valid_target(self) -> Optional[str]:
        """Targets the first living enemy, or nothing if every enemy is dead."""
        living = self.living_enemies
        self._change_target(living[0].id if living else None)
        return self.selected_target_id

    def _change_target(self, target_id: Optional[str]) -> None:
        if self.selected_target_id == target_id:
            return
        self.selected_target_id = target_id
        self._events.emit(EventType.TARGET_CHANGED, target_id=target_id)

    def _ensure_valid_target(self) -> None:
        target = self.selected_target
        if target is None or not target.is_alive:
            self.select_next_valid_target()

    # ============================================================================
    # PLAYER ACTIONS
    # ============================================================================

    def _acting_player(self) -> Optional[CombatEntity]:
        """Returns the player if a new action may start now, None otherwise."""
        player = self.player
        if (
            self.turn_phase != TurnPhase.PLAYER
            or self.is_processing_turn
            or player is None
            or not player.is_alive
        ):
            return None
        return player

    def player_attack(self) -> bool:
        """
        Attacks the selected target.

        The damage lands after the hit delay; once the return delay is over
        victory is checked, a dead target is replaced by the first living
        enemy, and the enemies take their turn.

        Returns:
            bool: False if the action was ignored.

        """
        player = self._acting_player()
        if player is None:
            return False
        target = self.selected_target
        if target is None or not target.is_alive:
            return False

        self.is_processing_turn = True
        result = calculate_damage(player, target, self.rng)
        self._schedule(
            self.timings.hit_delay,
            lambda: self._land_player_hit(target.id, result),
        )
        return True

    def _land_player_hit(self, target_id: str, result: DamageResult) -> None:
        target = self.get_enemy(target_id)
        if target is None:
            return
        apply_damage(target, result)
        self._events.emit(
            EventType.DAMAGE_APPLIED,
            source=PLAYER_ENTITY_ID,
            target=target.id,
            result=result.model_dump(),
        )
        self._log(f"Player attacks {target.name}: {result.describe()}")
        if not target.is_alive:
            self._log(f"{target.name} is defeated!")
        self._schedule(self.timings.return_delay, self._finish_player_attack)

    def _finish_player_attack(self) -> None:
        if self._check_victory():
            self.is_processing_turn = False
            return
        self._ensure_valid_target()
        self.is_processing_turn = False
        if self.living_enemies:
            self._start_enemy_phase()

    def player_block(self) -> bool:
        """
        Braces for the enemies' attacks.

        Until the next round the player's armor is doubled and physical
        damage taken is reduced by a quarter.

        Returns:
            bool: False if the action was ignored.

        """
        player = self._acting_player()
        if player is None:
            return False
        self.is_processing_turn = True
        player.is_blocking = True
        self._log("Player blocks, doubling armor and reducing damage by 25%")
        self._schedule(self.timings.block_delay, self._finish_block)
        return True

    def _finish_block(self) -> None:
        self.is_processing_turn = False
        self._start_enemy_phase()

    # ============================================================================
    # ENEMY PHASE
    # ============================================================================

    def _start_enemy_phase(self) -> None:
        self._set_phase(TurnPhase.ENEMY)
        self.current_enemy_index = 0
        self._process_next_enemy()

    def _process_next_enemy(self) -> None:
        if self.player is None:
            return
        while self.current_enemy_index < len(self.enemies):
            enemy = self.enemies[self.current_enemy_index]
            if enemy.is_alive:
                result = calculate_damage(enemy, self.player, self.rng)
                self._schedule(
                    self.timings.enemy_attack_delay,
                    lambda: self._land_enemy_hit(enemy.id, result),
                )
                return
            self.current_enemy_index += 1

        if self._check_victory():
            return
        self._start_new_round()

    def _land_enemy_hit(self, enemy_id: str, result: DamageResult) -> None:
        enemy = self.get_enemy(enemy_id)
        if self.player is None or enemy is None:
            return
        apply_damage(self.player, result)
        self._events.emit(
            EventType.DAMAGE_APPLIED,
            source=enemy.id,
            target=PLAYER_ENTITY_ID,
            result=result.model_dump(),
        )
        self._log(f"{enemy.name} attacks: {result.describe()}")

        if not self.player.is_alive:
            self._set_phase(TurnPhase.DEFEAT)
            self._log("Player has been defeated!")
            return

        self.current_enemy_index += 1
        self._schedule(self.timings.enemy_pause, self._process_next_enemy)

    def _start_new_round(self) -> None:
        self._set_phase(TurnPhase.PLAYER)
        self.current_enemy_index = 0
        if self.player is not None:
            self.player.is_blocking = False
        for enemy in self.enemies:
            enemy.is_blocking = False
        refresh_intents(self.rng, self.enemies)
        self._ensure_valid_target()

    # ============================================================================
    # VICTORY
    # ============================================================================

    def _check_victory(self) -> bool:
        """Ends the fight in victory, collecting loot, once every enemy is dead."""
        if self.turn_phase == TurnPhase.VICTORY:
            return True
        if self.living_enemies:
            return False

        rewards = LootResult()
        for enemy in self.enemies:
            rewards.merge(
                self.enemy_generator.generate_enemy_loot(enemy, self.player_level)
            )
        self.fight_rewards = rewards
        self.show_reward_modal = True
        self._set_phase(TurnPhase.VICTORY)
        self._log("All enemies defeated!")
        self._events.emit(
            EventType.REWARDS_COLLECTED,
            gold=rewards.gold,
            items=[drop.item.id for drop in rewards.items],
        )
        return True
