"""
Umpire Spell Counter - console entry point.

Wires config, storage and the SpellEngine together and drives them from
text commands.

Supports three modes:
1. Interactive: read commands from stdin, one per line
2. Run: apply a scripted list of commands and exit
3. Demo: bowl a short synthetic spell

Usage:
    python -m umpire.orchestrator --interactive
    python -m umpire.orchestrator --run legal wide legal wicket undo status
    python -m umpire.orchestrator --run policy off on wide status
    python -m umpire.orchestrator --demo --no-persist
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional, TextIO

from umpire.config import StorageConfig, UmpireConfig
from umpire.data.delivery import DeliveryKind
from umpire.engine.spell_engine import SpellEngine, SpellSnapshot
from umpire.state.rebowl_policy import RebowlPolicy
from umpire.storage.kv_store import JsonFileStore, MemoryStore, SpellStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("umpire.orchestrator")

DELIVERY_COMMANDS = {
    "legal": DeliveryKind.LEGAL,
    "l": DeliveryKind.LEGAL,
    "wide": DeliveryKind.WIDE,
    "w": DeliveryKind.WIDE,
    "noball": DeliveryKind.NO_BALL,
    "no-ball": DeliveryKind.NO_BALL,
    "nb": DeliveryKind.NO_BALL,
    "wicket": DeliveryKind.WICKET,
    "x": DeliveryKind.WICKET,
}

HELP_TEXT = """Commands:
  legal | l        legal delivery
  wide | w         wide
  noball | nb      no-ball
  wicket | x       wicket
  undo | u         undo last action
  confirm | c      confirm the completed over
  decline | d      dismiss the over-complete prompt
  reset            zero all counters (undoable)
  policy W N       wides / no-balls re-bowled: on|off, e.g. 'policy on off'
  status | s       show the current spell
  help | h         this text
  quit | q         exit"""

_ON = ("on", "true", "yes", "1")
_OFF = ("off", "false", "no", "0")


def build_engine(config: UmpireConfig) -> SpellEngine:
    """Create an engine backed by the configured store."""
    if config.storage.persist:
        store = JsonFileStore(config.storage.store_path)
        logger.info("Using store: %s", config.storage.store_path)
    else:
        store = MemoryStore()
        logger.info("Persistence disabled, spell kept in memory")

    default_policy = RebowlPolicy(
        wides_consume_ball=not config.rebowl.wides_rebowled,
        no_balls_consume_ball=not config.rebowl.no_balls_rebowled,
    )
    return SpellEngine(
        store=SpellStore(store),
        policy=default_policy,
        history_limit=config.history_limit,
    )


def format_snapshot(snap: SpellSnapshot) -> str:
    """One status line: feedback, overs.balls, wickets, over sequence."""
    parts = []
    if snap.message:
        parts.append(snap.message)
    parts.append(f"Overs {snap.overs_notation} ({snap.balls_remaining} left)")
    parts.append(f"Wkts {snap.wickets}")
    if snap.deliveries:
        parts.append(f"[{snap.sequence}]")
    if snap.over_complete:
        parts.append("OVER COMPLETE - confirm (c) or decline (d)")
    return " | ".join(parts)


def format_status(snap: SpellSnapshot) -> str:
    """Multi-line read-out of the spell and settings."""
    summary = snap.over_summary
    wides = snap.policy.describe(DeliveryKind.WIDE)
    no_balls = snap.policy.describe(DeliveryKind.NO_BALL)
    lines = [
        f"Balls:   {snap.balls_in_over} ({snap.balls_remaining} remaining)",
        f"Overs:   {snap.completed_overs} ({snap.overs_notation})",
        f"Wickets: {snap.wickets} ({snap.wickets_remaining} remaining)",
        f"Phase:   {snap.phase.value}",
        f"This over: {summary.get('total_deliveries', 0)} deliveries, "
        f"{summary.get('legal', 0)} legal, {summary.get('extras', 0)} extras "
        f"({summary.get('wides', 0)} wd, {summary.get('no_balls', 0)} nb), "
        f"{summary.get('wickets', 0)} wkts",
        f"Sequence: {snap.sequence or '-'}",
        f"Wides: {wides} | No-balls: {no_balls}",
        f"Undo available: {snap.history_depth}",
    ]
    return "\n".join(lines)


def _parse_switch(value: str) -> Optional[bool]:
    value = value.lower()
    if value in _ON:
        return True
    if value in _OFF:
        return False
    return None


def apply_command(engine: SpellEngine, line: str) -> Optional[str]:
    """Run one text command against the engine.

    Returns the text to show, or None for 'quit'. Unknown commands are
    reported, never raised.
    """
    words = line.strip().split()
    if not words:
        return ""
    cmd, args = words[0].lower(), words[1:]

    if cmd in ("quit", "q", "exit"):
        return None
    if cmd in ("help", "h", "?"):
        return HELP_TEXT
    if cmd in DELIVERY_COMMANDS:
        return format_snapshot(engine.record_delivery(DELIVERY_COMMANDS[cmd]))
    if cmd in ("undo", "u"):
        return format_snapshot(engine.undo())
    if cmd in ("confirm", "c"):
        return format_snapshot(engine.confirm_over_complete())
    if cmd in ("decline", "d"):
        return format_snapshot(engine.decline_over_complete())
    if cmd == "reset":
        return format_snapshot(engine.reset())
    if cmd in ("status", "s"):
        return format_status(engine.snapshot())
    if cmd == "policy":
        if len(args) != 2:
            return "Usage: policy <wides-rebowled on|off> <noballs-rebowled on|off>"
        wides_rebowled, noballs_rebowled = (_parse_switch(a) for a in args)
        if wides_rebowled is None or noballs_rebowled is None:
            return "Usage: policy <wides-rebowled on|off> <noballs-rebowled on|off>"
        snap = engine.set_rebowl_policy(
            wides_consume_ball=not wides_rebowled,
            no_balls_consume_ball=not noballs_rebowled,
        )
        return f"{snap.message} | Wides: {snap.policy.describe(DeliveryKind.WIDE)} | No-balls: {snap.policy.describe(DeliveryKind.NO_BALL)}"
    return f"Unknown command: {cmd!r} (try 'help')"


def group_script(tokens: Iterable[str]) -> list[str]:
    """Join shell-split --run tokens back into command lines.

    'policy' takes its next two tokens as arguments, so
    `--run policy off on w` runs 'policy off on' then 'w'.
    """
    tokens = list(tokens)
    commands = []
    i = 0
    while i < len(tokens):
        if tokens[i].lower() == "policy":
            commands.append(" ".join(tokens[i:i + 3]))
            i += 3
        else:
            commands.append(tokens[i])
            i += 1
    return commands


def run_commands(engine: SpellEngine, commands: Iterable[str], out: Optional[TextIO] = None) -> SpellSnapshot:
    """Apply commands in order, stopping early on 'quit'."""
    out = out or sys.stdout
    for command in commands:
        result = apply_command(engine, command)
        if result is None:
            break
        if result:
            print(result, file=out)
    return engine.snapshot()


def run_interactive(engine: SpellEngine, stdin: Optional[TextIO] = None, out: Optional[TextIO] = None) -> None:
    stdin = stdin or sys.stdin
    out = out or sys.stdout
    print("Cricket Umpire - type 'help' for commands", file=out)
    print(format_snapshot(engine.snapshot()), file=out)
    for line in stdin:
        result = apply_command(engine, line)
        if result is None:
            break
        if result:
            print(result, file=out)


def run_demo(engine: SpellEngine, overs: int = 3, seed: Optional[int] = None, out: Optional[TextIO] = None) -> SpellSnapshot:
    """Bowl a synthetic spell of ``overs`` overs, confirming each one."""
    out = out or sys.stdout
    rng = random.Random(seed)

    logger.info("=" * 60)
    logger.info("UMPIRE SPELL COUNTER - DEMO MODE")
    logger.info("=" * 60)

    engine.reset()
    for _ in range(overs):
        while engine.snapshot().can_record:
            r = rng.random()
            if r < 0.80:
                kind = DeliveryKind.LEGAL
            elif r < 0.88:
                kind = DeliveryKind.WIDE
            elif r < 0.93:
                kind = DeliveryKind.NO_BALL
            else:
                kind = DeliveryKind.WICKET
            snap = engine.record_delivery(kind)
            print(format_snapshot(snap), file=out)

            # Umpire occasionally corrects a call
            if rng.random() < 0.05:
                print(format_snapshot(engine.undo()), file=out)

        print(format_snapshot(engine.confirm_over_complete()), file=out)

    final = engine.snapshot()
    print("\n" + "=" * 60, file=out)
    print("DEMO RESULTS", file=out)
    print("=" * 60, file=out)
    print(format_status(final), file=out)
    return final


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Cricket Umpire Spell Counter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m umpire.orchestrator --interactive
  python -m umpire.orchestrator --run legal legal wide wicket status
  python -m umpire.orchestrator --run policy off on wide status

--run: 'policy' consumes the two tokens after it.
  python -m umpire.orchestrator --demo --no-persist
        """,
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--interactive", action="store_true", help="Read commands from stdin")
    mode.add_argument("--run", nargs="+", metavar="CMD", help="Apply the given commands and exit")
    mode.add_argument("--demo", action="store_true", help="Bowl a synthetic spell")

    parser.add_argument("--store", type=str, help="Path of the JSON state file")
    parser.add_argument("--no-persist", action="store_true", help="Keep the spell in memory only")
    parser.add_argument("--overs", type=int, default=3, help="Overs to bowl in demo mode")
    parser.add_argument("--seed", type=int, help="Random seed for demo mode")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    config = UmpireConfig.from_env()
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        logger.warning("Unknown LOG_LEVEL %r, using INFO", config.log_level)
        level = logging.INFO
    logging.getLogger().setLevel(level)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = replace(
        config,
        storage=StorageConfig(
            store_path=Path(args.store) if args.store else config.storage.store_path,
            persist=config.storage.persist and not args.no_persist,
        ),
    )
    engine = build_engine(config)

    if args.demo:
        run_demo(engine, overs=args.overs, seed=args.seed)
    elif args.run:
        run_commands(engine, group_script(args.run))
    elif args.interactive:
        run_interactive(engine)


if __name__ == "__main__":
    main()
