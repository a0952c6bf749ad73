"""Tests for configuration and the console entry point."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest

from umpire.config import RebowlConfig, StorageConfig, UmpireConfig
from umpire.data.delivery import DeliveryKind
from umpire.engine.spell_engine import SpellEngine
from umpire.orchestrator import (
    apply_command,
    build_engine,
    format_snapshot,
    format_status,
    group_script,
    main,
    run_commands,
    run_demo,
    run_interactive,
)


class TestUmpireConfig:
    def test_defaults(self):
        config = UmpireConfig()
        assert config.history_limit == 10
        assert config.rebowl.wides_rebowled
        assert config.rebowl.no_balls_rebowled
        assert config.storage.persist

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("UMPIRE_STORE_PATH", "/tmp/elsewhere.json")
        monkeypatch.setenv("UMPIRE_PERSIST", "false")
        monkeypatch.setenv("UMPIRE_WIDES_REBOWLED", "off")
        monkeypatch.setenv("UMPIRE_NOBALLS_REBOWLED", "")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        config = UmpireConfig.from_env()
        assert config.storage.store_path == Path("/tmp/elsewhere.json")
        assert not config.storage.persist
        assert not config.rebowl.wides_rebowled
        assert config.rebowl.no_balls_rebowled
        assert config.log_level == "DEBUG"

    def test_build_engine_applies_first_run_policy(self, tmp_path):
        config = UmpireConfig(
            storage=StorageConfig(store_path=tmp_path / "s.json"),
            rebowl=RebowlConfig(wides_rebowled=False),
        )
        engine = build_engine(config)
        assert engine.policy.consumes_ball(DeliveryKind.WIDE)
        assert not engine.policy.consumes_ball(DeliveryKind.NO_BALL)


class TestCommands:
    @pytest.fixture
    def cli_engine(self) -> SpellEngine:
        return SpellEngine()

    def test_delivery_aliases(self, cli_engine: SpellEngine):
        for cmd in ["legal", "l", "wide", "w", "noball", "nb", "wicket", "x"]:
            apply_command(cli_engine, cmd)
        state = cli_engine.state
        assert [d.kind for d in state.current_over_deliveries] == [
            DeliveryKind.LEGAL, DeliveryKind.LEGAL,
            DeliveryKind.WIDE, DeliveryKind.WIDE,
            DeliveryKind.NO_BALL, DeliveryKind.NO_BALL,
            DeliveryKind.WICKET, DeliveryKind.WICKET,
        ]
        assert state.balls_in_over == 4
        assert state.wickets == 2

    def test_over_flow(self, cli_engine: SpellEngine):
        out = apply_command(cli_engine, "l")
        assert "Legal delivery" in out
        for _ in range(5):
            out = apply_command(cli_engine, "l")
        assert "OVER COMPLETE" in out

        out = apply_command(cli_engine, "l")
        assert "confirm or undo first" in out

        out = apply_command(cli_engine, "c")
        assert "Overs 1.0" in out

    def test_undo_and_reset(self, cli_engine: SpellEngine):
        apply_command(cli_engine, "wicket")
        assert "Wicket undone" in apply_command(cli_engine, "undo")
        assert "Nothing to undo" in apply_command(cli_engine, "u")
        assert "Counters reset" in apply_command(cli_engine, "reset")

    def test_policy_command(self, cli_engine: SpellEngine):
        out = apply_command(cli_engine, "policy off on")
        assert "Wides: Count as ball" in out
        assert "No-balls: Re-bowled" in out
        assert cli_engine.policy.wides_consume_ball
        assert not cli_engine.policy.no_balls_consume_ball

    def test_policy_command_usage(self, cli_engine: SpellEngine):
        assert apply_command(cli_engine, "policy maybe").startswith("Usage")
        assert apply_command(cli_engine, "policy on sometimes").startswith("Usage")

    def test_unknown_and_quit(self, cli_engine: SpellEngine):
        assert "Unknown command" in apply_command(cli_engine, "bouncer")
        assert apply_command(cli_engine, "quit") is None
        assert apply_command(cli_engine, "   ") == ""

    def test_status(self, cli_engine: SpellEngine):
        apply_command(cli_engine, "w")
        apply_command(cli_engine, "l")
        text = apply_command(cli_engine, "status")
        assert "Balls:   1 (5 remaining)" in text
        assert "Wickets: 0 (10 remaining)" in text
        assert "Sequence: W •" in text
        assert "Wides: Re-bowled" in text

    def test_run_commands_stops_at_quit(self, cli_engine: SpellEngine):
        out = io.StringIO()
        snap = run_commands(cli_engine, ["l", "l", "quit", "l"], out=out)
        assert snap.balls_in_over == 2

    def test_group_script_keeps_policy_arguments(self):
        assert group_script(["policy", "off", "on", "w", "status"]) == [
            "policy off on", "w", "status",
        ]
        assert group_script(["l", "policy on off"]) == ["l", "policy on off"]
        # Short tail still reaches apply_command, which prints usage
        assert group_script(["x", "policy", "on"]) == ["x", "policy on"]

    def test_interactive(self, cli_engine: SpellEngine):
        stdin = io.StringIO("l\nw\nstatus\nq\nl\n")
        out = io.StringIO()
        run_interactive(cli_engine, stdin=stdin, out=out)
        assert cli_engine.state.balls_in_over == 1
        assert "Sequence: • W" in out.getvalue()


class TestFormatting:
    def test_snapshot_line(self):
        engine = SpellEngine()
        snap = engine.record_delivery(DeliveryKind.NO_BALL)
        line = format_snapshot(snap)
        assert line.startswith("No-ball (re-bowled)")
        assert "Overs 0.0 (6 left)" in line
        assert "[NB]" in line

    def test_status_counts_extras(self):
        engine = SpellEngine()
        for kind in [DeliveryKind.WIDE, DeliveryKind.NO_BALL, DeliveryKind.LEGAL]:
            engine.record_delivery(kind)
        text = format_status(engine.snapshot())
        assert "3 deliveries, 1 legal, 2 extras (1 wd, 1 nb)" in text


class TestDemoAndMain:
    def test_demo_confirms_each_over(self):
        engine = SpellEngine()
        out = io.StringIO()
        final = run_demo(engine, overs=2, seed=7, out=out)
        assert final.completed_overs == 2
        assert final.balls_in_over == 0
        assert "DEMO RESULTS" in out.getvalue()

    def test_main_run_persists(self, tmp_path, capsys):
        store = tmp_path / "spell.json"
        main(["--run", "l", "x", "w", "--store", str(store)])
        assert "Wicket!" in capsys.readouterr().out

        main(["--run", "status", "--store", str(store)])
        out = capsys.readouterr().out
        assert "Balls:   2" in out
        assert "Wickets: 1" in out

    def test_main_run_policy_split_by_shell(self, tmp_path, capsys):
        main(["--run", "policy", "off", "on", "w", "status", "--store", str(tmp_path / "s.json")])
        out = capsys.readouterr().out
        assert "Wides: Count as ball | No-balls: Re-bowled" in out
        assert "Balls:   1" in out
        assert "Unknown command" not in out

    def test_main_unknown_log_level_falls_back_to_info(self, tmp_path, capsys, caplog, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        main(["--run", "status", "--store", str(tmp_path / "s.json")])
        assert "Balls:   0" in capsys.readouterr().out
        assert "Unknown LOG_LEVEL 'verbose'" in caplog.text
        assert logging.getLogger().level == logging.INFO

    def test_main_requires_mode(self):
        with pytest.raises(SystemExit):
            main([])
