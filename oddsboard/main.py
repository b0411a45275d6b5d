# main.py
from __future__ import annotations
import asyncio
import json
import signal
import sys
import time
from typing import List, Optional

from oddsboard.core.config import describe_env
from oddsboard.core.logger import get_logger, log_event
from oddsboard.core.markets import market_label_from_key
from oddsboard.core.models import GOAL_LINE, ExtractionResult, MatchOddsDetail, MatchRecord, MatchStatus
from oddsboard.core.settings import Settings, load_settings
from oddsboard.scrapers.orchestrator import ExtractionService
from oddsboard.utils.match_utils import filter_matches, group_by_date, sort_by_date, truncate_label

LOG = get_logger("oddsboard.main")

# -------------------------
# graceful shutdown
# -------------------------
_STOP = False
def _handle_sig(signum, frame):
    global _STOP
    _STOP = True
    log_event(LOG, "signal_received", signum=signum, message="will stop after this cycle")

# -------------------------
# CLI
# -------------------------
def _parse_args(argv: Optional[List[str]] = None):
    import argparse
    ap = argparse.ArgumentParser(description="Football odds board poller")
    ap.add_argument("--date", type=str, default=None, help="Board date YYYY-MM-DD (default: today).")
    ap.add_argument("--match-id", type=str, default=None, help="Fetch BTTS / Over-Under odds for one match.")
    ap.add_argument("--competition-id", type=str, default=None, help="Competition id for --match-id.")
    ap.add_argument("--enrich", action="store_true", help="Fill BTTS / Over-Under from each match's detail endpoint.")
    ap.add_argument("--json", action="store_true", help="Print JSON instead of a text board.")
    ap.add_argument("--loop", action="store_true", help="Poll continuously.")
    ap.add_argument("--interval", type=int, default=None, help="Poll interval seconds (default: settings.poll_interval).")
    ap.add_argument("--allow-synthetic-odds", action="store_true", help="Fill missing odds with placeholders (flagged).")
    ap.add_argument("--league", type=str, default=None, help="Only leagues containing this text.")
    ap.add_argument("--status", choices=(MatchStatus.UPCOMING, MatchStatus.LIVE), default=None,
                    help="Only matches in this state. Finished matches are never shown.")
    ap.add_argument("--search", type=str, default=None, help="Only matches with a team containing this text.")
    args = ap.parse_args(argv)
    if args.match_id and not args.competition_id:
        ap.error("--match-id needs --competition-id")
    return args

# -------------------------
# rendering
# -------------------------
def _fmt(value: Optional[float]) -> str:
    return f"{value:.2f}" if value is not None else "-"


def render_record(r: MatchRecord) -> str:
    state = r.kickoff or "--:--"
    if r.status == MatchStatus.LIVE:
        score = f"{r.home_score}-{r.away_score}" if r.home_score is not None else ""
        state = f"LIVE {r.minute}'" if r.minute is not None else "LIVE"
        state = f"{state} {score}".strip()
    line = (
        f"  {state:<12} {truncate_label(r.label, 44):<44} "
        f"1:{_fmt(r.home_odds)} X:{_fmt(r.draw_odds)} 2:{_fmt(r.away_odds)}"
    )
    if r.over_under:
        line += f" | {market_label_from_key('ou:2.5', str(GOAL_LINE))} {_fmt(r.over_under.over)}/{_fmt(r.over_under.under)}"
    if r.both_teams_score:
        line += f" | {market_label_from_key('btts', None)} {_fmt(r.both_teams_score.yes)}/{_fmt(r.both_teams_score.no)}"
    if r.synthetic_odds:
        line += " [synthetic]"
    return line


def render_board(records: List[MatchRecord], stale: bool = False) -> str:
    if not records:
        return "No matches available."
    lines: List[str] = []
    if stale:
        lines.append("(showing cached board; upstream unavailable)")
    for day, day_records in group_by_date(records).items():
        lines.append(day)
        for league in dict.fromkeys(r.league for r in day_records):
            lines.append(f" {league}")
            lines.extend(render_record(r) for r in day_records if r.league == league)
    return "\n".join(lines)


def render_detail(detail: Optional[MatchOddsDetail]) -> str:
    if detail is None:
        return "No BTTS / Over-Under odds available."
    return (
        f"Match {detail.match_id}: "
        f"{market_label_from_key('btts', None)} {_fmt(detail.btts_yes)}/{_fmt(detail.btts_no)} | "
        f"{market_label_from_key('ou:2.5', str(GOAL_LINE))} {_fmt(detail.over25)}/{_fmt(detail.under25)}"
    )

# -------------------------
# One cycle
# -------------------------
def _select(result: ExtractionResult, args) -> List[MatchRecord]:
    records = filter_matches(result.matches, league=args.league, status=args.status, search=args.search)
    return sort_by_date(records)


async def _run_once(service: ExtractionService, args) -> int:
    if args.match_id:
        detail = await service.extract_match_detail(args.match_id, args.competition_id)
        print(json.dumps(detail.to_dict() if detail else None, indent=2) if args.json else render_detail(detail))
        return 1 if detail else 0

    result = await service.get_matches(args.date, enrich=args.enrich)
    records = _select(result, args)
    if args.json:
        print(json.dumps({
            "stale": result.stale,
            "fetched_at": result.fetched_at,
            "error": result.error,
            "matches": [r.to_dict() for r in records],
        }, indent=2, default=str))
    else:
        print(render_board(records, stale=result.stale))
    return len(records)


async def _run(settings: Settings, args) -> None:
    interval = int(args.interval) if args.interval is not None else settings.poll_interval
    async with ExtractionService(settings=settings) as service:
        if not args.loop:
            n = await _run_once(service, args)
            log_event(LOG, "one_shot_complete", records=n)
            return

        while not _STOP:
            cycle_start = time.monotonic()
            n = await _run_once(service, args)
            log_event(LOG, "poll_cycle_done", records=n)

            # sleep to next tick, but remain responsive to signals
            end_at = cycle_start + max(1.0, float(interval))
            while time.monotonic() < end_at and not _STOP:
                await asyncio.sleep(1)

# -------------------------
# Main
# -------------------------
def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = load_settings(allow_synthetic_odds=True if args.allow_synthetic_odds else None)

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handle_sig)

    log_event(LOG, "oddsboard_start", env=describe_env(), loop=bool(args.loop), enrich=bool(args.enrich))
    try:
        asyncio.run(_run(settings, args))
    finally:
        log_event(LOG, "oddsboard_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
