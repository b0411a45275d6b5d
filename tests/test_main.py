import pytest

from oddsboard.core.models import BothTeamsScore, ExtractionResult, MatchOddsDetail, MatchRecord, MatchStatus, OverUnder
from oddsboard.main import _parse_args, _select, render_board, render_detail, render_record


def _rec(**kw):
    values = dict(id="1", home_team="Alpha", away_team="Beta", league="Spain - LaLiga", date="2025-08-26",
                  kickoff="20:30", home_odds=2.10, draw_odds=3.40, away_odds=3.20)
    values.update(kw)
    return MatchRecord(**values)


def test_render_record_with_markets():
    line = render_record(_rec(over_under=OverUnder(1.85, 1.95), both_teams_score=BothTeamsScore(1.70, 2.10)))

    assert "20:30" in line
    assert "Alpha v Beta" in line
    assert "1:2.10 X:3.40 2:3.20" in line
    assert "Over/Under 2.5 1.85/1.95" in line
    assert "Both Teams to Score 1.70/2.10" in line


def test_render_record_live_and_synthetic():
    line = render_record(_rec(status=MatchStatus.LIVE, minute=67, home_score=2, away_score=1, synthetic_odds=True))

    assert "LIVE 67' 2-1" in line
    assert line.endswith("[synthetic]")


def test_render_board_groups_by_date_and_league():
    text = render_board([
        _rec(id="1"),
        _rec(id="2", home_team="Gamma", away_team="Delta", league="England - EFL Cup"),
        _rec(id="3", home_team="Eps", away_team="Zeta", date="2025-08-27"),
    ], stale=True)

    lines = text.splitlines()
    assert lines[0].startswith("(showing cached board")
    assert lines[1] == "2025-08-26"
    assert " Spain - LaLiga" in lines
    assert " England - EFL Cup" in lines
    assert "2025-08-27" in lines


def test_render_empty_board_and_detail():
    assert render_board([]) == "No matches available."
    assert render_detail(None).startswith("No BTTS")
    detail = MatchOddsDetail("777", "50", btts_yes=1.7, btts_no=2.1)
    assert "1.70/2.10" in render_detail(detail)
    assert "-/-" in render_detail(detail)


def test_parse_args_requires_competition_for_match_detail():
    with pytest.raises(SystemExit):
        _parse_args(["--match-id", "777"])

    args = _parse_args(["--match-id", "777", "--competition-id", "50", "--json"])
    assert args.match_id == "777"
    assert args.json is True


def test_status_filter_runs_before_sorting_and_finished_is_not_offered():
    result = ExtractionResult([
        _rec(id="1", kickoff="21:00", status=MatchStatus.LIVE),
        _rec(id="2", home_team="Gamma", away_team="Delta", kickoff="18:00"),
        _rec(id="3", home_team="Eta", away_team="Theta", kickoff="19:00", status=MatchStatus.LIVE),
        _rec(id="4", home_team="Iota", away_team="Kappa", status=MatchStatus.FINISHED),
    ])

    live = _select(result, _parse_args(["--status", "live"]))
    assert [r.id for r in live] == ["3", "1"]
    assert [r.id for r in _select(result, _parse_args([]))] == ["2", "3", "1"]

    with pytest.raises(SystemExit):
        _parse_args(["--status", "finished"])
