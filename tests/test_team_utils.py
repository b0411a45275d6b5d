from oddsboard.utils.team_utils import (
    clean_team_name,
    find_team_pair,
    looks_like_league,
    looks_like_team_name,
    split_teams,
)


def test_split_teams_on_common_separators():
    assert split_teams("TeamA v TeamB") == ("TeamA", "TeamB")
    assert split_teams("Arsenal vs Chelsea") == ("Arsenal", "Chelsea")
    assert split_teams("Porto - Benfica") == ("Porto", "Benfica")


def test_split_teams_needs_exactly_two_parts():
    assert split_teams("A v B v C") is None
    assert split_teams("Arsenal") is None
    assert split_teams("") is None


def test_split_teams_ignores_scores():
    assert split_teams("2 - 1") is None


def test_clean_team_name():
    assert clean_team_name("  Real   Madrid ;") == "Real Madrid"
    assert clean_team_name("") == ""


def test_looks_like_team_name():
    assert looks_like_team_name("Arsenal")
    assert looks_like_team_name("Manchester United")
    assert not looks_like_team_name("Draw")
    assert not looks_like_team_name("2.10")
    assert not looks_like_team_name("67'")
    assert not looks_like_team_name("Premier League")
    assert not looks_like_team_name("20:30")


def test_looks_like_league():
    assert looks_like_league("Spain - LaLiga")
    assert looks_like_league("England - EFL Cup")
    assert not looks_like_league("Arsenal")


def test_find_team_pair_prefers_separator_field():
    fields = ["1", "Arsenal", "Chelsea v Spurs", "2.10"]
    assert find_team_pair(fields) == ("Chelsea", "Spurs")


def test_find_team_pair_adjacent_fields():
    fields = ["20:30", "Arsenal", "Chelsea", "2.10", "3.40", "3.20"]
    assert find_team_pair(fields) == ("Arsenal", "Chelsea")
    assert find_team_pair(fields, allow_adjacent=False) is None


def test_find_team_pair_skips_identical_neighbours():
    assert find_team_pair(["Arsenal", "arsenal"]) is None
