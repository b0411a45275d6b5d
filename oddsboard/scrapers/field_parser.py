# scrapers/field_parser.py
"""
Turns an upstream board payload into ParsedFields, one per raw match.

The payload shape is detected first (detect_payload), then the strategies run
in priority order and the first one that yields anything wins:

  1. StructuredJsonStrategy   matches / competitions[].matches[] objects with market lists
  2. DelimitedStringStrategy  matchData "rec|rec" with "field;field" records
  3. HtmlStrategy             table rows / match containers in a page
"""
from __future__ import annotations
import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

from oddsboard.core.competitions import parse_competition_data
from oddsboard.core.logger import get_logger, log_event
from oddsboard.core.markets import classify_market
from oddsboard.core.models import MatchOddsDetail, MatchStatus, ParsedFields
from oddsboard.utils.match_utils import (
    format_time,
    parse_date,
    parse_kickoff,
    parse_score,
    parse_status,
    scan_odds_tokens,
    to_odds,
)
from oddsboard.utils.team_utils import clean_team_name, find_team_pair, looks_like_league, split_teams

logger = get_logger("oddsboard.field_parser")

RECORD_SEPARATOR = "|"
FIELD_SEPARATOR = ";"


# ================================================================
# PAYLOAD SHAPES
# ================================================================
@dataclass(frozen=True)
class FlatMatchString:
    match_data: str


@dataclass(frozen=True)
class NestedMarketJson:
    # (match object, competition id, competition name) as found in the payload
    matches: Tuple[Tuple[Dict[str, Any], Optional[str], Optional[str]], ...]


@dataclass(frozen=True)
class HtmlFragment:
    html: str


UpstreamPayload = Union[FlatMatchString, NestedMarketJson, HtmlFragment]


@dataclass
class DetectedPayload:
    variants: List[UpstreamPayload] = field(default_factory=list)
    competitions: Dict[str, str] = field(default_factory=dict)


_EMBEDDED_JSON_PATTERNS = [
    re.compile(r"(?:var|const|let)\s+matches\s*=\s*(\[.*?\]);", re.S),
    re.compile(r"window\.(?:matchData|fixtures)\s*=\s*(\[.*?\]);", re.S),
    re.compile(r"\"matches\"\s*:\s*(\[.*?\])\s*[,}]", re.S),
    re.compile(r"__INITIAL_STATE__\s*=\s*(\{.*?\});", re.S),
]


def _str_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip()
    return s or None


def _competition_name(comp: Dict[str, Any]) -> Optional[str]:
    for k in ("competitionName", "name", "displayName", "competitionDisplayName"):
        v = comp.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _nested_from_json(data: Any) -> Optional[NestedMarketJson]:
    rows: List[Tuple[Dict[str, Any], Optional[str], Optional[str]]] = []
    if isinstance(data, list):
        rows.extend((m, None, None) for m in data if isinstance(m, dict))
    elif isinstance(data, dict):
        comps = data.get("competitions")
        if isinstance(comps, list):
            for comp in comps:
                if not isinstance(comp, dict) or not isinstance(comp.get("matches"), list):
                    continue
                cid = _str_id(comp.get("id") or comp.get("competitionId"))
                cname = _competition_name(comp)
                rows.extend((m, cid, cname) for m in comp["matches"] if isinstance(m, dict))
        if isinstance(data.get("matches"), list):
            rows.extend((m, None, None) for m in data["matches"] if isinstance(m, dict))
    return NestedMarketJson(tuple(rows)) if rows else None


def _embedded_json(html: str) -> Optional[NestedMarketJson]:
    for pattern in _EMBEDDED_JSON_PATTERNS:
        m = pattern.search(html)
        if not m:
            continue
        try:
            data = json.loads(m.group(1))
        except ValueError:
            log_event(logger, "embedded_json_decode_failed", level="debug", pattern=pattern.pattern[:40])
            continue
        nested = _nested_from_json(data)
        if nested:
            return nested
    return None


def detect_payload(raw: Any) -> DetectedPayload:
    """Classify a raw board body into the shapes it carries, most reliable first."""
    out = DetectedPayload()

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return out
        if text[0] in "[{":
            try:
                return detect_payload(json.loads(text))
            except ValueError:
                pass
        if "<" in text and ">" in text:
            nested = _embedded_json(text)
            if nested:
                out.variants.append(nested)
            out.variants.append(HtmlFragment(text))
        elif FIELD_SEPARATOR in text:
            out.variants.append(FlatMatchString(text))
        return out

    if isinstance(raw, list):
        nested = _nested_from_json(raw)
        if nested:
            out.variants.append(nested)
        return out

    if not isinstance(raw, dict):
        return out

    # some responses wrap everything one level down
    if isinstance(raw.get("data"), (dict, list)) and not any(k in raw for k in ("matches", "competitions", "matchData")):
        inner = detect_payload(raw["data"])
        inner.competitions.update(parse_competition_data(raw.get("competitionData")))
        return inner

    nested = _nested_from_json(raw)
    if nested:
        out.variants.append(nested)
    if isinstance(raw.get("matchData"), str) and raw["matchData"].strip():
        out.variants.append(FlatMatchString(raw["matchData"]))
    for key in ("html", "content"):
        if isinstance(raw.get(key), str) and "<" in raw[key]:
            out.variants.append(HtmlFragment(raw[key]))
    out.competitions = parse_competition_data(raw.get("competitionData"))
    return out


# ================================================================
# SHARED FIELD SCANNING
# ================================================================
@dataclass
class ParseContext:
    default_date: Optional[str] = None
    year: int = field(default_factory=lambda: datetime.now().year)


def _assign_1x2(pf: ParsedFields, odds: Sequence[Optional[float]]) -> None:
    if len(odds) >= 3:
        pf.home_odds, pf.draw_odds, pf.away_odds = odds[0], odds[1], odds[2]


def scan_fields(fields: Sequence[str], ctx: ParseContext, allow_adjacent: bool = False) -> Optional[ParsedFields]:
    """
    Field-position heuristics shared by flat strings and HTML rows:
    - teams: first field splitting on a separator (or adjacent names, HTML only)
    - kickoff: first field that parses as a kickoff
    - odds: every decimal-odds token in field order; first three are home/draw/away
    """
    fields = [f.strip() for f in fields if f is not None]
    pair = find_team_pair(fields, allow_adjacent=allow_adjacent)
    if not pair:
        return None

    pf = ParsedFields(home_team=pair[0], away_team=pair[1])
    team_fields = set(pair)

    for f in fields:
        if not f or f in team_fields:
            continue
        info = parse_kickoff(f, ctx.year)
        if not info:
            continue
        if info.kickoff and pf.kickoff is None:
            pf.kickoff = info.kickoff
            if info.date:
                pf.date = info.date
        if info.status and pf.status is None:
            pf.status = info.status
            if info.minute is not None:
                pf.minute = info.minute

    if pf.status == MatchStatus.LIVE:
        for f in fields:
            score = parse_score(f)
            if score:
                pf.home_score, pf.away_score = score
                break

    _assign_1x2(pf, scan_odds_tokens(fields))
    return pf


# ================================================================
# STRATEGIES
# ================================================================
class ParseStrategy:
    name = "base"
    shape: type = object

    def accepts(self, payload: UpstreamPayload) -> bool:
        return isinstance(payload, self.shape)

    def try_parse(self, payload: UpstreamPayload, ctx: ParseContext) -> Optional[List[ParsedFields]]:
        raise NotImplementedError


_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _first(obj: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if "." in k:
            head, tail = k.split(".", 1)
            inner = obj.get(head)
            v = _first(inner, tail) if isinstance(inner, dict) else None
        else:
            v = obj.get(k)
        if v not in (None, ""):
            return v
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _team_name(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("name") or value.get("displayName")
    if isinstance(value, str) and value.strip():
        return clean_team_name(value)
    return None


def _selections(market: Dict[str, Any]) -> List[Dict[str, Any]]:
    for k in ("selectionList", "selections", "outcomes"):
        v = market.get(k)
        if isinstance(v, list):
            return [s for s in v if isinstance(s, dict)]
    return []


def _selection_odds(sel: Dict[str, Any]) -> Optional[float]:
    return to_odds(_first(sel, "companyOdds", "odds", "price", "value"))


def positional_odds(market: Dict[str, Any], n: int) -> List[Optional[float]]:
    """Odds of the first `n` selections by position; label text is ignored."""
    sels = _selections(market)[:n]
    return [_selection_odds(s) for s in sels] + [None] * (n - len(sels))


def _market_name(market: Dict[str, Any]) -> Optional[str]:
    for k in ("marketDisplayName", "displayName", "marketName", "name"):
        v = market.get(k)
        if isinstance(v, str):
            return v
    return None


def apply_markets(markets: Iterable[Any], pf: ParsedFields) -> List[str]:
    """Fill 1X2 / BTTS / totals from a market list. Returns the market names seen."""
    seen: List[str] = []
    for market in markets or []:
        if not isinstance(market, dict):
            continue
        display = _market_name(market)
        if display is not None:
            seen.append(display)
        spec = classify_market(display)
        if spec.market_key == "btts" and pf.btts_yes is None and pf.btts_no is None:
            pf.btts_yes, pf.btts_no = positional_odds(market, len(spec.outcomes))
        elif spec.line is not None and pf.over is None and pf.under is None:
            pf.over, pf.under = positional_odds(market, len(spec.outcomes))
        elif spec.market_key == "1x2" and pf.home_odds is None:
            _assign_1x2(pf, positional_odds(market, len(spec.outcomes)))
    return seen


class StructuredJsonStrategy(ParseStrategy):
    name = "json"
    shape = NestedMarketJson

    def parse_match(
        self,
        obj: Dict[str, Any],
        ctx: ParseContext,
        competition_id: Optional[str] = None,
        competition_name: Optional[str] = None,
    ) -> Optional[ParsedFields]:
        home = _team_name(_first(obj, "homeTeam", "home", "team1", "homeTeamName", "homeName"))
        away = _team_name(_first(obj, "awayTeam", "away", "team2", "awayTeamName", "awayName"))
        if not (home and away):
            label = _first(obj, "matchName", "eventName", "name", "description")
            pair = split_teams(label) if isinstance(label, str) else None
            if not pair:
                return None
            home, away = pair

        pf = ParsedFields(
            upstream_id=_str_id(_first(obj, "id", "matchId", "eventId")),
            competition_id=_str_id(_first(obj, "competitionId", "competition_id")) or competition_id,
            home_team=home,
            away_team=away,
        )

        league = _first(obj, "league", "competitionName", "competition", "tournament")
        if isinstance(league, dict):
            league = _competition_name(league)
        pf.league = league if isinstance(league, str) else competition_name

        raw_time = _first(obj, "kickoff", "time", "matchTime", "start", "startTime")
        if isinstance(raw_time, str):
            info = parse_kickoff(raw_time, ctx.year)
            if info and info.date:
                pf.date = info.date
        pf.kickoff = format_time(raw_time)
        raw_date = _first(obj, "date", "matchDate", "startDate")
        if pf.date is None and raw_date is not None:
            pf.date = parse_date(raw_date)
        if pf.date is None and (isinstance(raw_time, (int, float)) or _ISO_DATE_RE.match(str(raw_time or ""))):
            pf.date = parse_date(raw_time)

        pf.status = parse_status(_first(obj, "status", "state", "matchStatus"))
        if obj.get("isLive") is True:
            pf.status = MatchStatus.LIVE

        _assign_1x2(pf, [
            to_odds(_first(obj, "homeOdds", "odds.home", "odds.1")),
            to_odds(_first(obj, "drawOdds", "odds.draw", "odds.X", "odds.x")),
            to_odds(_first(obj, "awayOdds", "odds.away", "odds.2")),
        ])
        pf.over = to_odds(_first(obj, "overOdds", "odds.over"))
        pf.under = to_odds(_first(obj, "underOdds", "odds.under"))
        pf.btts_yes = to_odds(_first(obj, "bttsYes", "odds.bttsYes"))
        pf.btts_no = to_odds(_first(obj, "bttsNo", "odds.bttsNo"))

        markets = _first(obj, "markets", "marketList")
        if isinstance(markets, list):
            apply_markets(markets, pf)

        pf.home_score = _as_int(_first(obj, "homeScore", "score.home"))
        pf.away_score = _as_int(_first(obj, "awayScore", "score.away"))
        pf.minute = _as_int(_first(obj, "minute", "matchMinute"))
        return pf

    def try_parse(self, payload: NestedMarketJson, ctx: ParseContext) -> Optional[List[ParsedFields]]:
        out: List[ParsedFields] = []
        for obj, cid, cname in payload.matches:
            pf = self.parse_match(obj, ctx, cid, cname)
            if pf:
                out.append(pf)
        return out or None


class DelimitedStringStrategy(ParseStrategy):
    name = "delimited"
    shape = FlatMatchString

    def parse_record(self, record: str, ctx: ParseContext) -> Optional[ParsedFields]:
        fields = [f.strip() for f in record.split(FIELD_SEPARATOR)]
        if len(fields) < 3:
            return None
        pf = scan_fields(fields, ctx, allow_adjacent=False)
        if not pf:
            return None
        # leading numeric fields are the match id and the competition id
        if fields[0].isdigit():
            pf.upstream_id = fields[0]
        if fields[1].isdigit():
            pf.competition_id = fields[1]
        return pf

    def try_parse(self, payload: FlatMatchString, ctx: ParseContext) -> Optional[List[ParsedFields]]:
        out: List[ParsedFields] = []
        for record in payload.match_data.split(RECORD_SEPARATOR):
            if not record.strip():
                continue
            pf = self.parse_record(record, ctx)
            if pf:
                out.append(pf)
        return out or None


_CONTAINER_CLASS_RE = re.compile(r"match|fixture|game|event|bet", re.I)


class HtmlStrategy(ParseStrategy):
    name = "html"
    shape = HtmlFragment

    def _row_fields(self, tr) -> List[str]:
        return [td.get_text(" ", strip=True) for td in tr.find_all("td") if td.get_text(strip=True)]

    def _with_league(self, pf: ParsedFields, fields: Sequence[str]) -> ParsedFields:
        for f in fields:
            if looks_like_league(f) and f not in (pf.home_team, pf.away_team):
                pf.league = f
                break
        return pf

    def try_parse(self, payload: HtmlFragment, ctx: ParseContext) -> Optional[List[ParsedFields]]:
        soup = BeautifulSoup(payload.html, "html.parser")
        out: List[ParsedFields] = []

        for tr in soup.find_all("tr"):
            if tr.find("th") or tr.find_parent("thead"):
                continue
            fields = self._row_fields(tr)
            if len(fields) < 3:
                continue
            pf = scan_fields(fields, ctx, allow_adjacent=True)
            if pf:
                out.append(self._with_league(pf, fields))

        for node in soup.find_all(["div", "li", "article"], class_=_CONTAINER_CLASS_RE):
            # only innermost containers; outer ones fuse several matches together
            if node.find(["div", "li", "article"], class_=_CONTAINER_CLASS_RE):
                continue
            if node.find_parent("tr"):
                continue
            fields = list(node.stripped_strings)
            pf = scan_fields(fields, ctx, allow_adjacent=True)
            if pf:
                out.append(self._with_league(pf, fields))

        return out or None


DEFAULT_STRATEGIES: Tuple[ParseStrategy, ...] = (
    StructuredJsonStrategy(),
    DelimitedStringStrategy(),
    HtmlStrategy(),
)


# ================================================================
# PARSER
# ================================================================
@dataclass
class ParseOutcome:
    fields: List[ParsedFields] = field(default_factory=list)
    strategy: Optional[str] = None
    competitions: Dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.fields)


class FieldParser:
    def __init__(self, strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES):
        self.strategies = list(strategies)

    def parse(self, raw: Any, default_date: Optional[str] = None, year: Optional[int] = None) -> ParseOutcome:
        detected = detect_payload(raw)
        ctx = ParseContext(default_date=default_date)
        if year:
            ctx.year = year
        outcome = ParseOutcome(competitions=detected.competitions)

        for strategy in self.strategies:
            for variant in detected.variants:
                if not strategy.accepts(variant):
                    continue
                try:
                    fields = strategy.try_parse(variant, ctx)
                except (ValueError, TypeError, AttributeError, KeyError) as e:
                    log_event(logger, "strategy_failed", level="warning", strategy=strategy.name, error=str(e))
                    continue
                if fields:
                    for f in fields:
                        if f.date is None:
                            f.date = ctx.default_date
                    outcome.fields = fields
                    outcome.strategy = strategy.name
                    log_event(logger, "parse_complete", strategy=strategy.name, records=len(fields))
                    return outcome

        log_event(
            logger, "parse_empty", level="warning",
            shapes=[type(v).__name__ for v in detected.variants],
            competitions=len(detected.competitions),
        )
        return outcome


# ================================================================
# MATCH DETAIL (GetMatch)
# ================================================================
def _find_target_match(payload: Any, match_id: str) -> Optional[Dict[str, Any]]:
    nested = _nested_from_json(payload) if isinstance(payload, (dict, list)) else None
    if not nested:
        return None
    for obj, _, _ in nested.matches:
        if _str_id(obj.get("id")) == match_id or _str_id(obj.get("matchId")) == match_id:
            return obj
    return None


def parse_match_detail(payload: Any, match_id, competition_id=None) -> Optional[MatchOddsDetail]:
    """BTTS and Over/Under 2.5 odds for one match from a GetMatch body."""
    mid = str(match_id)
    target = _find_target_match(payload, mid)
    if target is None:
        log_event(logger, "detail_match_not_found", level="warning", match_id=mid)
        return None

    pf = ParsedFields()
    markets = target.get("markets") if isinstance(target.get("markets"), list) else []
    seen = apply_markets(markets, pf)
    detail = MatchOddsDetail(
        match_id=mid,
        competition_id=_str_id(competition_id),
        btts_yes=pf.btts_yes,
        btts_no=pf.btts_no,
        over25=pf.over,
        under25=pf.under,
        markets=seen,
    )
    return detail if detail.has_odds else None
