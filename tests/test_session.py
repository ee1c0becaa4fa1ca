"""Tests for keepsake.session — composition, phase, stepping, and the ending."""

from __future__ import annotations

import pytest

from keepsake.config import IdentityConfig, KeepsakeConfig
from keepsake.echoes import EchoSource
from keepsake.ending import EndingState
from keepsake.identity import NEUTRAL
from keepsake.narrator import PassageStage, gather_snapshot
from keepsake.session import KeepsakeSession
from keepsake.types import MemoryCategory, MemoryDefinition, Position, SessionPhase, Trait


def _definition(title: str, **kwargs) -> MemoryDefinition:
    kwargs.setdefault("category", MemoryCategory.NATURE)
    return MemoryDefinition(title=title, **kwargs)


@pytest.fixture()
def session(keepsake_config, bus) -> KeepsakeSession:
    return KeepsakeSession(config=keepsake_config, bus=bus)


class TestComposition:
    def test_starts_playing(self, session) -> None:
        assert session.phase == SessionPhase.PLAYING
        assert not session.ended

    def test_records_stamped_with_clock_time(self, session) -> None:
        session.step(90.0)  # one and a half game hours
        record = session.memory.keep(_definition("Hill"))
        assert record.acquired_at == pytest.approx(1.5)

    def test_echoes_stamped_with_clock_time(self, session) -> None:
        session.step(60.0)
        session.echoes.report_position(Position())
        session.memory.keep(_definition("Hill"))
        echoes = session.echoes.echoes()
        assert len(echoes) == 1
        assert echoes[0].created_at == pytest.approx(1.0)
        assert echoes[0].source == EchoSource.MEMORY_FORMED

    def test_long_still_frame_lingers_before_memory(self, session) -> None:
        session.step(60.0, player_position=Position())
        session.memory.keep(_definition("Hill"))
        echoes = session.echoes.echoes()
        assert len(echoes) == 1
        assert echoes[0].source == EchoSource.LINGERED

    def test_core_updates_before_presentation_subscriber(self, session) -> None:
        seen: list[tuple[float, int]] = []
        session.bus.subscribe(
            "memory.kept",
            lambda e: seen.append(
                (session.identity.value(Trait.WARM), len(session.echoes.echoes()))
            ),
        )
        session.echoes.report_position(Position())
        session.memory.keep(_definition("Bread", emotional_weight=0.4, reinforced_traits=(Trait.WARM,)))
        assert seen == [(pytest.approx(0.6), 1)]

    def test_echo_pushes_reach_atmosphere(self, session) -> None:
        here = Position(1.0, 0.0, 1.0)
        session.step(0.1, player_position=here)
        session.memory.keep(_definition("Hill"))
        session.step(0.5, player_position=here)
        assert session.atmosphere.active_pushes >= 1

    def test_hourly_decay_reaches_memories(self, session) -> None:
        record = session.memory.keep(_definition("Hill"))
        session.step(60.0 * 3)
        assert record.vividness == pytest.approx(1.0 - 3 * 0.02)


class TestPhase:
    def test_set_phase_emits_on_change(self, session) -> None:
        events = []
        session.bus.subscribe("session.phase.changed", events.append)

        session.set_phase(SessionPhase.REFLECTING)
        session.set_phase(SessionPhase.REFLECTING)

        assert len(events) == 1
        assert events[0].previous == SessionPhase.PLAYING
        assert events[0].current == SessionPhase.REFLECTING

    def test_clock_runs_while_reflecting(self, session) -> None:
        session.set_phase(SessionPhase.REFLECTING)
        session.step(60.0)
        assert session.clock.hour == pytest.approx(9.0)

    def test_echo_map_idle_while_reflecting(self, session) -> None:
        session.set_phase(SessionPhase.REFLECTING)
        for _ in range(20):
            session.step(1.0, player_position=Position())
        assert session.echoes.count(EchoSource.LINGERED) == 0


class TestEnding:
    def test_trigger_ending_freezes_and_composes(self, session) -> None:
        session.memory.keep(_definition("Hill"))
        passages = session.trigger_ending()

        assert session.phase == SessionPhase.ENDING
        assert session.ended
        assert passages[0].stage == PassageStage.OPENING
        assert passages[0].text.startswith("You were here until Day 1, 08:00.")
        assert session.ending.state == EndingState.FADING_IN

    def test_trigger_ending_is_one_shot(self, session) -> None:
        first = session.trigger_ending()
        session.memory.keep(_definition("Late"))
        second = session.trigger_ending()
        assert [p.text for p in first] == [p.text for p in second]

    def test_clock_paused_after_ending(self, session) -> None:
        session.trigger_ending()
        session.step(600.0)
        assert session.clock.hour == 8.0

    def test_stepping_plays_out_the_ending(self, session, recorder) -> None:
        passages = session.trigger_ending()
        for _ in range(200):
            session.step(1.0)
        assert session.ending.is_done
        completed = recorder.of_type("ending.completed")
        assert [e.passage_count for e in completed] == [len(passages)]

    def test_full_playthrough(self, session) -> None:
        here = Position()
        for i in range(3):
            session.step(1.0, player_position=Position(i * 10.0, 0.0, 0.0))
            session.memory.offer(
                _definition(
                    f"Edge {i}",
                    category=MemoryCategory.RISK,
                    emotional_weight=0.9,
                    reinforced_traits=(Trait.FEARLESS,),
                )
            )
        for _ in range(10):
            session.step(1.0, player_position=here)

        passages = session.trigger_ending()
        texts = {p.stage: p.text for p in passages}

        assert "You lived in this place. Really lived in it." in texts[PassageStage.OPENING]
        assert "  Someone who went to the edges\n" in texts[PassageStage.IDENTITY]
        assert texts[PassageStage.CLOSING] == (
            "You lived a life worth having.\n\nThat's the whole point, isn't it."
        )


class TestSnapshot:
    def test_gather_from_live_services(self, session) -> None:
        session.memory.keep(_definition("Hill", emotional_weight=0.4))
        snapshot = gather_snapshot(
            memory=session.memory,
            identity=session.identity,
            echoes=session.echoes,
            clock=session.clock,
        )
        assert [r.title for r in snapshot.records] == ["Hill"]
        assert snapshot.total_weight == pytest.approx(0.4)
        assert snapshot.trait_profile[Trait.CALM] == NEUTRAL
        assert snapshot.formatted_time == "Day 1, 08:00"

    def test_gather_without_identity_is_neutral(self, session) -> None:
        snapshot = gather_snapshot(memory=session.memory)
        assert snapshot.dominant_traits == []
        assert snapshot.trait_profile == {}

    def test_dominant_set_follows_configured_threshold(self, bus) -> None:
        config = KeepsakeConfig(
            identity=IdentityConfig(dominant_threshold=0.9, neutral_drift_rate=0.0)
        )
        session = KeepsakeSession(config=config, bus=bus)
        session.memory.keep(
            _definition("Tide pools", emotional_weight=0.8, reinforced_traits=(Trait.CURIOUS,))
        )
        assert session.identity.value(Trait.CURIOUS) == pytest.approx(0.7)

        snapshot = gather_snapshot(memory=session.memory, identity=session.identity)
        assert snapshot.dominant_traits == session.identity.dominant_traits() == []

        texts = {p.stage: p.text for p in session.trigger_ending()}
        assert "Someone who kept looking" not in texts[PassageStage.IDENTITY]
        assert texts[PassageStage.IDENTITY].startswith("You didn't settle")

    def test_default_threshold_includes_strong_trait(self, session) -> None:
        session.memory.keep(
            _definition("Tide pools", emotional_weight=0.8, reinforced_traits=(Trait.CURIOUS,))
        )
        texts = {p.stage: p.text for p in session.trigger_ending()}
        assert "  Someone who kept looking\n" in texts[PassageStage.IDENTITY]
