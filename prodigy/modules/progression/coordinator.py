"""
Progression Coordinator

Purpose
-------
Single owner of the player aggregate and the knowledge tree. Every game
operation that mutates either goes through here, serialized behind one
``asyncio.Lock`` so multi-step read-modify-write sequences never interleave.

Mission Completion
------------------
``complete_mission`` runs these steps, in order:

1. Idempotence guard: a mission whose rewards were applied, or that is
   already archived as completed, is a logged no-op.
2. Remove the mission from the timer, clearing the active slot.
3. Apply the Pomodoro cycle bonus when the mission was finished for it,
   then the monster mood, to the mission's quoted rewards.
4. Credit gold and XP to the player.
5. Update the check-in streak.
6. If study time was recorded, credit the branch with the final XP scaled by
   the subject's permanent boost, then re-check topic and branch unlocks.
7. Feed achievements: mission completed, gold earned, streak reached, one
   topic-unlocked event per new topic, login time.
8. Advance the dungeon for dungeon missions.
9. Archive the mission.
10. Release the lock, then publish the domain events collected along the
    way, awaited in order.

Player total XP and branch XP can diverge because the permanent boost only
applies to the branch credit.

Design Notes
------------
- The clock is injectable; completion dates, streak days and login hours
  all read it.
- Lookups inside mutation paths log and no-op; user-facing lookups
  (mission creation, mastery goals, reviews) raise ``NotFoundError``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional

from prodigy.core.config.config_manager import ConfigManager
from prodigy.core.logging.logger import LogContext, get_logger
from prodigy.domain.models.mission import Mission, MissionStatus, StudyType
from prodigy.modules.achievements.events import (
    GameEvent,
    GoldEarned,
    LoginTime,
    MissionCompleted,
    StreakReached,
    TopicUnlocked,
)
from prodigy.modules.achievements.tracker import AchievementTracker
from prodigy.modules.boss_battle.service import BossBattle, BossBattleService
from prodigy.modules.dungeons.catalog import DungeonCatalog, DungeonReward
from prodigy.modules.dungeons.service import DungeonService
from prodigy.modules.knowledge.unlock_engine import UnlockEngine
from prodigy.modules.mastery.policy import MasteryPolicy
from prodigy.modules.missions.factory import DailyMissionSettings, MissionFactory
from prodigy.modules.missions.timer import MissionTimer, TickResult
from prodigy.modules.rewards.calculator import RewardCalculator, RewardQuote, apply_cycle_bonus
from prodigy.modules.rewards.mood import MonsterMood, apply_mood, mood_for
from prodigy.modules.shared.base_service import BaseService
from prodigy.modules.shared.exceptions import (
    InvalidOperationError,
    NotFoundError,
    ProdigyDomainException,
    ValidationError,
    get_error_severity,
)

if TYPE_CHECKING:
    from logging import Logger

    from prodigy.core.event_bus import EventBus
    from prodigy.domain.models.base import DomainEvent
    from prodigy.domain.models.knowledge import Branch, KnowledgeTree
    from prodigy.domain.models.player import MasteryLevel, Player


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CompletionResult:
    """Outcome of one ``complete_mission`` call."""

    mission: Mission
    applied: bool
    mood: Optional[MonsterMood] = None
    xp: float = 0.0
    gold: int = 0
    branch_xp: float = 0.0
    streak: int = 0
    unlocked_topics: List[str] = field(default_factory=list)
    unlocked_branches: List[str] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    dungeon_reward: Optional[DungeonReward] = None


class ProgressionCoordinator(BaseService):
    def __init__(
        self,
        player: "Player",
        tree: "KnowledgeTree",
        config_manager: "type[ConfigManager]" = ConfigManager,
        event_bus: Optional["EventBus"] = None,
        logger: Optional["Logger"] = None,
        *,
        timer: Optional[MissionTimer] = None,
        calculator: Optional[RewardCalculator] = None,
        policy: Optional[MasteryPolicy] = None,
        achievements: Optional[AchievementTracker] = None,
        dungeons: Optional[DungeonService] = None,
        factory: Optional[MissionFactory] = None,
        boss_battles: Optional[BossBattleService] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(config_manager, event_bus, logger or get_logger(__name__))
        self.player = player
        self.tree = tree
        self._clock = clock
        self._lock = asyncio.Lock()

        self.timer = timer or MissionTimer(config_manager, clock=clock)
        self.calculator = calculator or RewardCalculator(config_manager)
        self.policy = policy or MasteryPolicy(config_manager)
        self.engine = UnlockEngine(tree, self.policy)
        self.achievements = achievements or AchievementTracker(tree=tree)
        self.dungeons = dungeons or DungeonService(
            DungeonCatalog(), config_manager, event_bus, self.log
        )
        self.factory = factory or MissionFactory(
            tree, self.calculator, config_manager, clock=clock
        )
        self.boss_battles = boss_battles or BossBattleService(config_manager, event_bus, self.log)
        self.last_completion: Optional[CompletionResult] = None

    # ========================================================================
    # HELPERS
    # ========================================================================

    @property
    def active_mission(self) -> Optional[Mission]:
        return self.timer.active_mission

    def _context(self, operation: str, mission_id: Optional[str] = None) -> LogContext:
        return LogContext(
            player_id=self.player.id,
            mission_id=mission_id,
            component="progression",
            operation=operation,
        )

    def _drain_pending(self) -> List["DomainEvent"]:
        """Take the player and tree events, oldest first."""
        pending = self.player.clear_domain_events() + self.tree.clear_domain_events()
        pending.sort(key=lambda e: e.occurred_at)
        return pending

    async def _run(self, operation: str, action: Callable[[], Any], mission_id: Optional[str] = None) -> Any:
        """
        Run a synchronous mutation under the lock, then publish its events.

        Events are drained while the lock is held and published after it is
        released, so a listener may call back into the coordinator.
        """
        pending: List["DomainEvent"] = []
        async with self._context(operation, mission_id):
            try:
                async with self._lock:
                    try:
                        return action()
                    finally:
                        pending = self._drain_pending()
            except ProdigyDomainException as exc:
                self.log.log(
                    logging.getLevelName(get_error_severity(exc).value.upper()),
                    f"Operation rejected: {operation}: {exc.message}",
                    extra={"error_code": exc.error_code},
                )
                raise
            finally:
                for event in pending:
                    await self.emit_event(event.event_name, event.payload)

    def _require_branch(self, branch_id: str) -> "Branch":
        branch = self.tree.find_branch(branch_id)
        if branch is None:
            raise NotFoundError("Branch", branch_id)
        return branch

    # ========================================================================
    # MISSION CREATION
    # ========================================================================

    async def add_mission(self, mission: Mission) -> Mission:
        return await self._run("add_mission", lambda: self.timer.add(mission), mission.id)

    async def create_mission(
        self,
        subject_name: str,
        branch_name: str,
        topic_name: str,
        study_type: StudyType,
        duration: float,
        is_pomodoro: bool = False,
        scheduled_date: Optional[datetime] = None,
    ) -> Mission:
        """Create a manual mission and start tracking it."""

        def action() -> Mission:
            mission = self.factory.create_manual(
                self.player,
                subject_name,
                branch_name,
                topic_name,
                study_type,
                duration,
                is_pomodoro=is_pomodoro,
                scheduled_date=scheduled_date,
                existing=self.timer.missions,
            )
            return self.timer.add(mission)

        return await self._run("create_mission", action)

    async def create_quick_mission(self) -> Optional[Mission]:
        def action() -> Optional[Mission]:
            mission = self.factory.create_quick(self.player)
            if mission is not None:
                self.timer.add(mission)
            return mission

        return await self._run("create_quick_mission", action)

    async def create_dungeon_mission(self, dungeon_id: str) -> Mission:
        def action() -> Mission:
            mission = self.dungeons.create_stage_mission(self.player, dungeon_id, self.factory)
            return self.timer.add(mission)

        return await self._run("create_dungeon_mission", action)

    async def create_familiar_mission(self, familiar_name: str) -> Mission:
        return await self._run(
            "create_familiar_mission",
            lambda: self.timer.add(self.factory.create_familiar(familiar_name)),
        )

    async def generate_daily_missions(
        self, settings: DailyMissionSettings, today: Optional[date] = None
    ) -> List[Mission]:
        def action() -> List[Mission]:
            missions = self.factory.generate_daily(settings, today or self._clock().date())
            for mission in missions:
                self.timer.add(mission)
            return missions

        return await self._run("generate_daily_missions", action)

    # ========================================================================
    # MISSION LIFECYCLE
    # ========================================================================

    def _start_locked(self, mission_id: str) -> Mission:
        mission = self.timer.start(mission_id)
        relief = float(self.get_config("missions.procrastination_relief", 0.5))
        self.player.relieve_procrastination(relief)
        return mission

    async def start_mission(self, mission_id: str) -> Mission:
        """Start or resume a mission; starting eases the procrastination meter."""
        return await self._run("start_mission", lambda: self._start_locked(mission_id), mission_id)

    async def pause_mission(self, mission_id: str) -> bool:
        return await self._run("pause_mission", lambda: self.timer.pause(mission_id), mission_id)

    async def fail_mission(self, mission_id: str) -> Mission:
        """Give up on a mission. Failing feeds the procrastination monster."""

        def action() -> Mission:
            mission = self.timer.fail(mission_id)
            penalty = float(self.get_config("missions.procrastination_penalty", 1.0))
            self.player.feed_procrastination_monster(penalty)
            return mission

        return await self._run("fail_mission", action, mission_id)

    async def retry_mission(self, mission_id: str) -> Mission:
        return await self._run("retry_mission", lambda: self.timer.retry(mission_id), mission_id)

    async def finish_for_bonus(self, mission_id: str) -> Mission:
        """
        Opt a Pomodoro mission into the cycle bonus and keep it running.

        When the mission completes its quoted rewards are multiplied by
        ``missions.pomodoro.cycle_bonus`` before the mood is applied.
        """

        def action() -> Mission:
            mission = self.timer.get(mission_id)
            if mission is None:
                raise NotFoundError("Mission", mission_id)
            if not mission.is_pomodoro:
                raise InvalidOperationError("finish_for_bonus", "Only Pomodoro missions earn the cycle bonus")
            if mission.is_terminal:
                raise InvalidOperationError("finish_for_bonus", f"Mission is already {mission.status.value}")
            mission.finishing_for_bonus = True
            return self.timer.start(mission_id)

        return await self._run("finish_for_bonus", action, mission_id)

    async def tick(self) -> Optional[TickResult]:
        """
        One clock second: start any due scheduled missions, then advance
        the running one. A finished mission is completed in the same step.
        """

        def action() -> Optional[TickResult]:
            for mission in self.timer.start_due_scheduled(self._clock()):
                self.player.relieve_procrastination(
                    float(self.get_config("missions.procrastination_relief", 0.5))
                )
                self.log.info(f"Scheduled mission started: {mission.topic_name}")
            result = self.timer.tick()
            if result is not None and result.completed:
                self.last_completion = self._complete_locked(result.mission)
            return result

        return await self._run("tick", action)

    async def run_clock(
        self,
        stop_event: asyncio.Event,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> int:
        """Tick once per second until ``stop_event`` is set. Returns ticks run."""
        ticks = 0
        self.log.info("Mission clock started")
        while not stop_event.is_set():
            await sleep(1)
            if stop_event.is_set():
                break
            await self.tick()
            ticks += 1
        self.log.info("Mission clock stopped", extra={"ticks": ticks})
        return ticks

    # ========================================================================
    # COMPLETION
    # ========================================================================

    async def complete_mission(self, mission: Mission) -> CompletionResult:
        return await self._run(
            "complete_mission", lambda: self._complete_locked(mission), mission.id
        )

    def _complete_locked(self, mission: Mission) -> CompletionResult:
        player = self.player

        if mission.rewards_applied or player.has_completed(mission.id):
            self.log.debug(f"Completion ignored, rewards already applied: {mission.id}")
            return CompletionResult(mission=mission, applied=False)
        if mission.status is MissionStatus.FAILED:
            raise InvalidOperationError("complete_mission", "Mission has failed; retry it first")

        now = self._clock()

        # Active slot
        self.timer.remove(mission.id)
        mission.status = MissionStatus.COMPLETED
        mission.time_remaining = 0.0
        mission.completion_date = mission.completion_date or now

        # Mood and credit
        mood = mood_for(player.procrastination_monster_value, self._config)
        quote = RewardQuote(xp=mission.xp_reward, gold=mission.gold_reward)
        if mission.finishing_for_bonus:
            quote = apply_cycle_bonus(quote, self._config)
        quote = apply_mood(quote, mood, self._config)
        player.add_gold(quote.gold, reason="mission_completed")
        player.add_xp(quote.xp, reason="mission_completed")
        mission.rewards_applied = True
        mission.credited_xp = quote.xp
        mission.credited_gold = quote.gold

        streak = player.record_mission_completion(now.date())
        result = CompletionResult(
            mission=mission, applied=True, mood=mood, xp=quote.xp, gold=quote.gold, streak=streak
        )

        # Knowledge tree
        branch = None
        if mission.actual_time_spent > 0:
            result.branch_xp = quote.xp * (1 + player.xp_boost_for(mission.subject_name))
            branch = self.tree.apply_progress(
                mission.branch_name, mission.subject_name, result.branch_xp, mission.actual_time_spent
            )
            if branch is not None:
                topics = self.engine.check_topic_unlocks(branch, player.mastery_for(branch.name))
                result.unlocked_topics = [t.name for t in topics]
                result.unlocked_branches = [b.name for b in self.engine.check_branch_unlocks(player)]

        # Achievements
        events: List[GameEvent] = [
            MissionCompleted(),
            GoldEarned(total_amount=player.gold),
            StreakReached(days=streak),
        ]
        if branch is not None:
            events.extend(TopicUnlocked(branch_name=branch.name) for _ in result.unlocked_topics)
        events.append(LoginTime(hour=now.hour))
        for event in events:
            result.achievements.extend(self.achievements.process_event(event, player))

        result.dungeon_reward = self.dungeons.record_stage_completion(player, mission)
        player.archive_mission(mission)

        self.log.info(
            f"Mission completed: {mission.topic_name}",
            extra={
                "xp": quote.xp,
                "gold": quote.gold,
                "mood": mood.value,
                "streak": streak,
                "unlocked_topics": len(result.unlocked_topics),
            },
        )
        return result

    # ========================================================================
    # KNOWLEDGE TREE
    # ========================================================================

    async def set_mastery_goal(self, branch_id: str, level: "MasteryLevel") -> List["Branch"]:
        """
        Record a mastery goal for a branch.

        A mastered branch is remastered first. Returns branches unlocked by
        the follow-up unlock check.
        """

        def action() -> List["Branch"]:
            branch = self._require_branch(branch_id)
            if branch.is_mastered:
                subject = self.tree.subject_for_branch(branch)
                self.policy.remaster(branch, subject.name, self.player, self.tree)
            self.player.set_mastery_goal(branch.name, branch.id, level)
            return self.engine.check_branch_unlocks(self.player)

        return await self._run("set_mastery_goal", action)

    async def unlock_branch(self, branch_id: str, is_auto: bool = False) -> List["Branch"]:
        """
        Unlock a branch on request.

        Without ``is_auto`` the branch must pass ``can_unlock``; with it the
        branch, its topics and its prerequisites are unlocked unconditionally.
        """

        def action() -> List["Branch"]:
            branch = self._require_branch(branch_id)
            if not is_auto and not branch.is_unlocked and not self.engine.can_unlock(branch, self.player):
                raise InvalidOperationError("unlock_branch", f"Requirements for {branch.name} are not met")
            changed = self.engine.unlock_branch(branch, is_auto=is_auto)
            self.engine.check_topic_unlocks(branch, self.player.mastery_for(branch.name))
            return changed

        return await self._run("unlock_branch", action)

    async def unlock_initial_skills(self) -> List["Branch"]:
        return await self._run(
            "unlock_initial_skills", lambda: self.engine.unlock_initial_skills(self.player)
        )

    async def reset_branch(self, branch_id: str) -> bool:
        return await self._run("reset_branch", lambda: self.tree.reset_branch(branch_id))

    async def reset_topic(self, topic_id: str) -> bool:
        return await self._run("reset_topic", lambda: self.tree.reset_topic(topic_id))

    # ========================================================================
    # PLAYER
    # ========================================================================

    async def review_mission(self, mission_id: str, rating: int, notes: Optional[str] = None) -> Mission:
        """Attach a 1-5 rating and notes to an archived mission."""

        def action() -> Mission:
            mission = self.player.find_archived(mission_id)
            if mission is None:
                raise NotFoundError("Mission", mission_id)
            if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
                raise ValidationError("rating", f"rating must be between 1 and 5, got {rating}")
            mission.review_rating = rating
            mission.review_notes = notes
            self.player.archive_mission(mission)
            return mission

        return await self._run("review_mission", action, mission_id)

    async def spend_gold(self, amount: int, reason: str) -> int:
        """Debit gold for a store purchase or similar sink. Returns the new balance."""

        def action() -> int:
            self.validate_positive_int(amount, "amount")
            self.player.spend_gold(amount, reason=reason)
            return self.player.gold

        return await self._run("spend_gold", action)

    async def declare_boss_battle(self, name: str, wager: int) -> BossBattle:
        """Declare a boss battle; the wager is debited immediately."""
        return await self._run(
            "declare_boss_battle", lambda: self.boss_battles.declare(self.player, name, wager)
        )

    async def report_boss_victory(self) -> BossBattle:
        return await self._run(
            "report_boss_victory", lambda: self.boss_battles.report_victory(self.player)
        )

    async def report_boss_defeat(self) -> BossBattle:
        return await self._run(
            "report_boss_defeat", lambda: self.boss_battles.report_defeat(self.player)
        )

    async def refresh_streak(self, today: Optional[date] = None) -> bool:
        return await self._run(
            "refresh_streak", lambda: self.player.refresh_streak(today or self._clock().date())
        )

    def preview_rewards(
        self,
        subject_name: str,
        branch_name: str,
        study_type: StudyType,
        duration: float,
    ) -> RewardQuote:
        """
        Quote what a mission would pay right now, mood included.

        Read-only, so it does not take the lock.
        """
        subject = self.tree.find_subject(subject_name)
        if subject is None:
            raise NotFoundError("Subject", subject_name)
        branch = self.tree.find_branch_by_name(branch_name, subject_name)
        if branch is None:
            raise NotFoundError("Branch", branch_name)
        quote = self.calculator.calculate(subject, branch, study_type, duration, self.player.stats)
        mood = mood_for(self.player.procrastination_monster_value, self._config)
        return apply_mood(quote, mood, self._config)
