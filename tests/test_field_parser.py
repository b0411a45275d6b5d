import json
from datetime import datetime

from oddsboard.core.models import MatchStatus
from oddsboard.scrapers.field_parser import (
    FieldParser,
    FlatMatchString,
    HtmlFragment,
    NestedMarketJson,
    detect_payload,
    parse_match_detail,
)

FLAT_RECORD = "1;50;TeamA v TeamB;26 Aug 20:30;;;TeamA;2.10;Draw;3.40;TeamB;3.20"

DETAIL_PAYLOAD = {
    "competitions": [{
        "id": 50,
        "name": "International Clubs - UEFA Champions League",
        "matches": [{
            "id": "777",
            "homeTeam": "TeamA",
            "awayTeam": "TeamB",
            "markets": [
                {
                    "marketDisplayName": "Both Team To Score ",
                    # labels are deliberately swapped: position decides
                    "selectionList": [
                        {"name": "No", "companyOdds": "1.70"},
                        {"name": "Yes", "companyOdds": "2.10"},
                    ],
                },
                {
                    "marketDisplayName": "Both Teams To Score",
                    "selectionList": [{"companyOdds": "9.99"}, {"companyOdds": "9.99"}],
                },
                {
                    "marketDisplayName": "Total Goals +2.5",
                    "selectionList": [{"companyOdds": "1.85"}, {"companyOdds": "1.95"}],
                },
            ],
        }],
    }],
}


def test_delimited_record_scenario():
    outcome = FieldParser().parse({"matchData": FLAT_RECORD})

    assert outcome.strategy == "delimited"
    assert len(outcome.fields) == 1
    pf = outcome.fields[0]
    assert (pf.home_team, pf.away_team) == ("TeamA", "TeamB")
    assert pf.kickoff == "20:30"
    assert pf.date == f"{datetime.now().year}-08-26"
    assert (pf.home_odds, pf.draw_odds, pf.away_odds) == (2.10, 3.40, 3.20)
    assert pf.upstream_id == "1"
    assert pf.competition_id == "50"


def test_delimited_integer_tokens_are_not_odds():
    raw = "2;50;Alpha v Beta;20:30;150;2.10;3.40;3.20"
    pf = FieldParser().parse(raw).fields[0]

    assert (pf.home_odds, pf.draw_odds, pf.away_odds) == (2.10, 3.40, 3.20)


def test_delimited_fewer_than_three_odds_leaves_1x2_unset():
    pf = FieldParser().parse("3;50;Alpha v Beta;20:30;2.10;3.40").fields[0]

    assert pf.home_odds is None and pf.draw_odds is None and pf.away_odds is None


def test_records_without_a_date_take_the_board_date():
    pf = FieldParser().parse("2;50;Alpha v Beta;20:30;2.10;3.40;3.20", default_date="2025-08-26").fields[0]

    assert pf.date == "2025-08-26"
    assert FieldParser().parse({"matchData": FLAT_RECORD}, default_date="2025-01-01").fields[0].date.endswith("-08-26")


def test_delimited_skips_records_without_teams():
    raw = "|".join([FLAT_RECORD, "9;50;no teams here;20:30;2.10;3.40;3.20", ""])
    outcome = FieldParser().parse({"matchData": raw})

    assert len(outcome.fields) == 1


def test_btts_exact_label_and_positional_selections():
    detail = parse_match_detail(DETAIL_PAYLOAD, "777", "50")

    assert detail.btts_yes == 1.70
    assert detail.btts_no == 2.10
    assert detail.over25 == 1.85
    assert detail.under25 == 1.95
    assert detail.competition_id == "50"
    assert "Both Teams To Score" in detail.markets


def test_detail_single_match_with_other_id_is_none():
    assert parse_match_detail(DETAIL_PAYLOAD, "123", 50) is None


def test_detail_without_tracked_markets_is_none():
    payload = {"matches": [{"id": 5, "markets": [{"marketDisplayName": "Both Team To Score", "selectionList": []}]}]}
    assert parse_match_detail(payload, 5) is None


def test_detail_unknown_match_among_many_is_none():
    payload = {"matches": [{"id": 1, "markets": []}, {"id": 2, "markets": []}]}
    assert parse_match_detail(payload, 3) is None


def test_structured_json_board():
    payload = {"matches": [{
        "id": 10,
        "homeTeam": "Arsenal",
        "awayTeam": "Chelsea",
        "league": "England - Premier League",
        "time": "2025-08-26T20:30:00",
        "homeOdds": 2.1,
        "drawOdds": "3.40",
        "awayOdds": 150,
    }]}

    outcome = FieldParser().parse(payload)

    assert outcome.strategy == "json"
    pf = outcome.fields[0]
    assert pf.upstream_id == "10"
    assert pf.league == "England - Premier League"
    assert pf.kickoff == "20:30"
    assert pf.date == "2025-08-26"
    assert pf.status == MatchStatus.UPCOMING
    assert (pf.home_odds, pf.draw_odds, pf.away_odds) == (2.1, 3.4, None)


def test_structured_json_markets_and_competition_context():
    outcome = FieldParser().parse(json.dumps(DETAIL_PAYLOAD))
    pf = outcome.fields[0]

    assert pf.competition_id == "50"
    assert pf.league == "International Clubs - UEFA Champions League"
    assert (pf.btts_yes, pf.btts_no) == (1.70, 2.10)
    assert (pf.over, pf.under) == (1.85, 1.95)


def test_structured_json_team_names_from_label():
    payload = [{"matchName": "Porto vs Benfica", "odds": {"home": "1.90", "draw": "3.30", "away": "4.20"}, "status": "LIVE"}]
    pf = FieldParser().parse(payload).fields[0]

    assert (pf.home_team, pf.away_team) == ("Porto", "Benfica")
    assert (pf.home_odds, pf.draw_odds, pf.away_odds) == (1.90, 3.30, 4.20)
    assert pf.status == MatchStatus.LIVE


def test_html_table_rows():
    html = (
        "<table><thead><tr><th>Time</th><th>Match</th><th>1</th><th>X</th><th>2</th></tr></thead>"
        "<tbody><tr><td>20:30</td><td>Arsenal v Chelsea</td><td>2.10</td><td>3.40</td><td>3.20</td></tr></tbody>"
        "</table>"
    )
    outcome = FieldParser().parse(html)

    assert outcome.strategy == "html"
    assert len(outcome.fields) == 1
    pf = outcome.fields[0]
    assert (pf.home_team, pf.away_team) == ("Arsenal", "Chelsea")
    assert pf.kickoff == "20:30"
    assert (pf.home_odds, pf.draw_odds, pf.away_odds) == (2.10, 3.40, 3.20)


def test_html_match_containers_with_adjacent_team_names():
    html = (
        '<div class="board"><div class="match-row"><span>Juventus</span><span>Milan</span>'
        "<span>1.95</span><span>3.30</span><span>4.00</span></div></div>"
    )
    pf = FieldParser().parse(html).fields[0]

    assert (pf.home_team, pf.away_team) == ("Juventus", "Milan")
    assert (pf.home_odds, pf.draw_odds, pf.away_odds) == (1.95, 3.30, 4.00)


def test_html_live_row_reads_minute_and_score():
    html = "<table><tr><td>67'</td><td>Porto - Benfica</td><td>2-1</td><td>1.50</td><td>4.00</td><td>6.00</td></tr></table>"
    pf = FieldParser().parse(html).fields[0]

    assert pf.status == MatchStatus.LIVE
    assert pf.minute == 67
    assert (pf.home_score, pf.away_score) == (2, 1)


def test_embedded_script_json_wins_over_html_scan():
    html = (
        "<html><body><script>var matches = "
        '[{"homeTeam": "Alpha FC", "awayTeam": "Beta FC", "homeOdds": "1.50", "drawOdds": "4.00", "awayOdds": "6.00"}];'
        "</script></body></html>"
    )
    outcome = FieldParser().parse(html)

    assert outcome.strategy == "json"
    assert outcome.fields[0].home_team == "Alpha FC"


def test_detect_payload_shapes():
    assert isinstance(detect_payload(FLAT_RECORD).variants[0], FlatMatchString)
    assert isinstance(detect_payload("<table></table>").variants[0], HtmlFragment)
    assert isinstance(detect_payload(DETAIL_PAYLOAD).variants[0], NestedMarketJson)
    assert detect_payload("").variants == []
    assert detect_payload(None).variants == []


def test_detect_payload_competition_data_only():
    detected = detect_payload({"competitionData": "50;Champions League|126;EFL Cup"})

    assert detected.variants == []
    assert detected.competitions == {"50": "Champions League", "126": "EFL Cup"}


def test_parse_unusable_payload_is_empty():
    outcome = FieldParser().parse("nothing useful here")

    assert not outcome
    assert outcome.strategy is None
