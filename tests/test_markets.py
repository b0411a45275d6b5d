from oddsboard.core.markets import BTTS_DISPLAY_NAME, classify_market, market_label_from_key


def test_btts_requires_exact_label_with_trailing_space():
    assert BTTS_DISPLAY_NAME == "Both Team To Score "
    assert classify_market("Both Team To Score ").market_key == "btts"
    assert classify_market("Both Team To Score").market_key != "btts"
    assert classify_market("Both Teams To Score").market_key != "btts"


def test_totals_need_goal_line_marker():
    spec = classify_market("Total Goals +2.5")
    assert spec.market_key == "ou:2.5"
    assert spec.line == "2.5"
    assert spec.outcomes == ["Over", "Under"]
    assert classify_market("Total Goals +3.5").market_key != "ou:2.5"


def test_1x2_labels():
    assert classify_market("1X2").market_key == "1x2"
    assert classify_market("  Match   Result ").market_key == "1x2"


def test_unknown_labels_pass_through():
    assert classify_market("Double Chance").market_key == "double chance"
    assert classify_market(None).market_key == "unknown"


def test_market_label_from_key():
    assert market_label_from_key("1x2", None) == "1X2"
    assert market_label_from_key("btts", None) == "Both Teams to Score"
    assert market_label_from_key("ou:2.5", "2.5") == "Over/Under 2.5"
