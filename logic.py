"""
Bazi Logic Module.
Four Pillars chart, weighted element balance, Day Master strength and
lucky/unlucky elements with their colors.
"""
import os
import re
import time
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from dotenv import load_dotenv
from lunar_python import Solar

from elements import (
    CONTROLLED_BY,
    CONTROLS,
    ELEMENTS,
    GENERATED_BY,
    GENERATES,
    ColorRecommendation,
    Element,
    get_element_colors,
)
from errors import BaziError, BaziLookupError, InvalidInputError, UnsupportedDateError
from bazi_utils import DirectionalAnalysis, DirectionalRecommender

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

PERF_LOG = os.getenv("PERF_LOG") == "1"


def log_perf(message: str) -> None:
    if PERF_LOG:
        print(message, flush=True)


# --- 天干地支 ---

@dataclass(frozen=True)
class Stem:
    symbol: str
    pinyin: str
    element: Element


@dataclass(frozen=True)
class Branch:
    symbol: str
    pinyin: str
    element: Element
    # 藏干: ((天干, 权重), ...) 本气在前, 权重合计 10
    hidden_stems: Tuple[Tuple[str, int], ...]


STEMS = MappingProxyType({s.symbol: s for s in (
    Stem("甲", "Jia", Element.WOOD),
    Stem("乙", "Yi", Element.WOOD),
    Stem("丙", "Bing", Element.FIRE),
    Stem("丁", "Ding", Element.FIRE),
    Stem("戊", "Wu", Element.EARTH),
    Stem("己", "Ji", Element.EARTH),
    Stem("庚", "Geng", Element.METAL),
    Stem("辛", "Xin", Element.METAL),
    Stem("壬", "Ren", Element.WATER),
    Stem("癸", "Gui", Element.WATER),
)})

BRANCHES = MappingProxyType({b.symbol: b for b in (
    Branch("子", "Zi", Element.WATER, (("癸", 10),)),
    Branch("丑", "Chou", Element.EARTH, (("己", 6), ("癸", 3), ("辛", 1))),
    Branch("寅", "Yin", Element.WOOD, (("甲", 6), ("丙", 3), ("戊", 1))),
    Branch("卯", "Mao", Element.WOOD, (("乙", 10),)),
    Branch("辰", "Chen", Element.EARTH, (("戊", 6), ("乙", 3), ("癸", 1))),
    Branch("巳", "Si", Element.FIRE, (("丙", 6), ("庚", 3), ("戊", 1))),
    Branch("午", "Wu", Element.FIRE, (("丁", 6), ("己", 4))),
    Branch("未", "Wei", Element.EARTH, (("己", 6), ("丁", 3), ("乙", 1))),
    Branch("申", "Shen", Element.METAL, (("庚", 6), ("壬", 3), ("戊", 1))),
    Branch("酉", "You", Element.METAL, (("辛", 10),)),
    Branch("戌", "Xu", Element.EARTH, (("戊", 6), ("辛", 3), ("丁", 1))),
    Branch("亥", "Hai", Element.WATER, (("壬", 6), ("甲", 4))),
)})

# 月令当旺五行 (春木 夏火 秋金 冬水)
SEASON_ELEMENTS = MappingProxyType({
    "寅": Element.WOOD, "卯": Element.WOOD, "辰": Element.WOOD,
    "巳": Element.FIRE, "午": Element.FIRE, "未": Element.FIRE,
    "申": Element.METAL, "酉": Element.METAL, "戌": Element.METAL,
    "亥": Element.WATER, "子": Element.WATER, "丑": Element.WATER,
})

STEM_WEIGHT = 5


def get_stem(symbol: str) -> Stem:
    try:
        return STEMS[symbol]
    except KeyError:
        raise BaziLookupError(f"Unknown heavenly stem: {symbol!r}") from None


def get_branch(symbol: str) -> Branch:
    try:
        return BRANCHES[symbol]
    except KeyError:
        raise BaziLookupError(f"Unknown earthly branch: {symbol!r}") from None


# --- 排盘 ---

@dataclass(frozen=True)
class Pillar:
    stem: str
    stem_pinyin: str
    branch: str
    branch_pinyin: str
    stem_element: Element
    branch_element: Element

    @classmethod
    def from_symbols(cls, stem: str, branch: str) -> "Pillar":
        s = get_stem(stem)
        b = get_branch(branch)
        return cls(
            stem=s.symbol,
            stem_pinyin=s.pinyin,
            branch=b.symbol,
            branch_pinyin=b.pinyin,
            stem_element=s.element,
            branch_element=b.element,
        )

    def to_dict(self) -> dict:
        return {
            "stem": self.stem,
            "stemPinyin": self.stem_pinyin,
            "branch": self.branch,
            "branchPinyin": self.branch_pinyin,
            "stemElement": self.stem_element.value,
            "branchElement": self.branch_element.value,
        }


@dataclass(frozen=True)
class BaziChart:
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Optional[Pillar] = None

    @property
    def pillars(self) -> Tuple[Pillar, ...]:
        """Present pillars in Year, Month, Day, Hour order (hour only if known)."""
        if self.hour is None:
            return (self.year, self.month, self.day)
        return (self.year, self.month, self.day, self.hour)

    def to_dict(self) -> dict:
        return {
            "year": self.year.to_dict(),
            "month": self.month.to_dict(),
            "day": self.day.to_dict(),
            "hour": self.hour.to_dict() if self.hour else None,
        }


class LunarOracle:
    """
    公历 -> 八字 换算 (lunar_python)。
    Returns stem/branch characters; the calendar arithmetic lives in the library.
    """

    @staticmethod
    def _date_chars(eight_char) -> Dict[str, str]:
        return {
            "year_stem": eight_char.getYearGan(),
            "year_branch": eight_char.getYearZhi(),
            "month_stem": eight_char.getMonthGan(),
            "month_branch": eight_char.getMonthZhi(),
            "day_stem": eight_char.getDayGan(),
            "day_branch": eight_char.getDayZhi(),
        }

    def solar_to_lunar(self, year: int, month: int, day: int) -> Dict[str, str]:
        eight_char = Solar.fromYmd(year, month, day).getLunar().getEightChar()
        return self._date_chars(eight_char)

    def solar_to_lunar_with_time(self, year: int, month: int, day: int, hour: int) -> Dict[str, str]:
        eight_char = Solar.fromYmdHms(year, month, day, hour, 0, 0).getLunar().getEightChar()
        chars = self._date_chars(eight_char)
        chars["hour_stem"] = eight_char.getTimeGan()
        chars["hour_branch"] = eight_char.getTimeZhi()
        return chars


_DEFAULT_ORACLE = LunarOracle()


def build_chart(year: int, month: int, day: int, hour: Optional[int] = None, oracle=None) -> BaziChart:
    """
    Build the Four Pillars chart for a Gregorian date.

    The hour pillar is only computed when ``hour`` is given; the time chart is
    a separate oracle call (minute fixed at 0, so 14:30 and 14:45 share a pillar).
    """
    oracle = oracle or _DEFAULT_ORACLE
    try:
        date(year, month, day)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid birth date: {year}-{month}-{day}") from e
    if hour is not None and not 0 <= hour <= 23:
        raise InvalidInputError(f"Invalid birth hour: {hour}")

    try:
        base = oracle.solar_to_lunar(year, month, day)
        timed = oracle.solar_to_lunar_with_time(year, month, day, hour) if hour is not None else None
    except BaziError:
        raise
    except Exception as e:
        # lunar_python raises bare Exception for dates it cannot convert
        raise UnsupportedDateError(f"Date {year:04d}-{month:02d}-{day:02d} is outside the supported calendar range") from e

    return BaziChart(
        year=Pillar.from_symbols(base["year_stem"], base["year_branch"]),
        month=Pillar.from_symbols(base["month_stem"], base["month_branch"]),
        day=Pillar.from_symbols(base["day_stem"], base["day_branch"]),
        hour=Pillar.from_symbols(timed["hour_stem"], timed["hour_branch"]) if timed else None,
    )


# --- 五行得分 (藏干加权) ---

ElementBalance = Mapping[Element, float]


def calculate_element_balance(chart: BaziChart) -> ElementBalance:
    """
    Score the five elements of a chart.
    Each stem adds 5 to its element; each branch adds its hidden stems'
    weights to the hidden stems' elements (not the branch's own element).
    """
    scores = {element: 0 for element in Element}
    for pillar in chart.pillars:
        scores[get_stem(pillar.stem).element] += STEM_WEIGHT
        for hidden_stem, weight in get_branch(pillar.branch).hidden_stems:
            scores[get_stem(hidden_stem).element] += weight
    return MappingProxyType(scores)


# --- 身强身弱 ---

class Strength(str, Enum):
    STRONG = "strong"
    WEAK = "weak"


@dataclass(frozen=True)
class StrengthReport:
    strength: Strength
    support_score: float
    drain_score: float
    season_element: Element

    @property
    def is_strong(self) -> bool:
        return self.strength is Strength.STRONG


class BaziStrengthCalculator:
    """日主强弱计算器 - 得令 + 生扶/克泄耗 加权打分法"""

    def __init__(self):
        # 月令加分
        self.in_season_bonus = 30        # 日主得令
        self.resource_season_bonus = 20  # 印星当令
        self.officer_season_drain = 20   # 官杀当令

        # 我党 (同我 + 生我)
        self.peer_weight = 2
        self.resource_weight = 1.5
        # 异党 (我克 + 克我 + 我生)
        self.wealth_weight = 1.5
        self.officer_weight = 2
        self.output_weight = 1

    def get_season_element(self, month_branch: str) -> Element:
        try:
            return SEASON_ELEMENTS[month_branch]
        except KeyError:
            raise BaziLookupError(f"Unknown month branch: {month_branch!r}") from None

    def calculate_strength(self, day_master_element: Element, month_branch: str,
                           balance: ElementBalance) -> StrengthReport:
        """
        计算身强身弱
        :param day_master_element: 日主五行
        :param month_branch: 月令地支 (如 '寅')
        :param balance: 五行得分
        :return: StrengthReport, support >= drain 为身强
        """
        dm = day_master_element
        resource = GENERATED_BY[dm]
        officer = CONTROLLED_BY[dm]
        wealth = CONTROLS[dm]
        output = GENERATES[dm]

        support_score = 0
        drain_score = 0

        season = self.get_season_element(month_branch)
        if season == dm:
            support_score += self.in_season_bonus
        elif season == resource:
            support_score += self.resource_season_bonus
        elif season == officer:
            drain_score += self.officer_season_drain

        support_score += balance[dm] * self.peer_weight
        support_score += balance[resource] * self.resource_weight

        drain_score += balance[wealth] * self.wealth_weight
        drain_score += balance[officer] * self.officer_weight
        drain_score += balance[output] * self.output_weight

        # 平局算身强
        strength = Strength.STRONG if support_score >= drain_score else Strength.WEAK
        return StrengthReport(
            strength=strength,
            support_score=support_score,
            drain_score=drain_score,
            season_element=season,
        )


_STRENGTH_CALC = BaziStrengthCalculator()


def is_day_master_strong(day_master_element: Element, month_branch: str, balance: ElementBalance) -> bool:
    return _STRENGTH_CALC.calculate_strength(day_master_element, month_branch, balance).is_strong


# --- 喜忌 ---

def derive_luck(day_master_element: Element, strength: Strength) -> Tuple[Tuple[Element, ...], Tuple[Element, ...]]:
    """
    Lucky and unlucky elements for a Day Master; the first lucky element is primary.

    Strong: lucky = wealth, officer, output; unlucky = resource, peer.
    Weak:   lucky = resource, peer;          unlucky = wealth, officer.
    """
    dm = day_master_element
    if strength is Strength.STRONG:
        lucky = (CONTROLS[dm], CONTROLLED_BY[dm], GENERATES[dm])
        unlucky = (GENERATED_BY[dm], dm)
    else:
        lucky = (GENERATED_BY[dm], dm)
        unlucky = (CONTROLS[dm], CONTROLLED_BY[dm])
    return lucky, unlucky


# --- 输入解析 ---

_TIME_RE = re.compile(r'^\s*(\d{1,2})(?::(\d{2}))?(?::(\d{2}))?\s*$')


def parse_date(value: Union[str, date, datetime, None], label: str = "birth date") -> date:
    """Parse an ISO ``YYYY-MM-DD`` string (or pass through a date)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise InvalidInputError(f"{label.capitalize()} is required")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise InvalidInputError(f"Invalid {label}: {value!r}") from e


def parse_hour(value: Union[str, dt_time, datetime, None]) -> Optional[int]:
    """Return the hour of a birth time, or None when no time was given."""
    if value is None:
        return None
    if isinstance(value, (dt_time, datetime)):
        return value.hour
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid birth time: {value!r}")
    if not value.strip():
        return None

    match = _TIME_RE.match(value)
    if not match:
        raise InvalidInputError(f"Invalid birth time: {value!r}")
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise InvalidInputError(f"Invalid birth time: {value!r}")
    return hour


# --- 综合分析 ---

@dataclass(frozen=True)
class BaziAnalysis:
    chart: BaziChart
    element_balance: ElementBalance
    strongest_element: Element
    weakest_element: Element
    day_master_strength: Strength
    strength_report: StrengthReport
    lucky_elements: Tuple[Element, ...]
    unlucky_elements: Tuple[Element, ...]
    lucky_colors: Tuple[ColorRecommendation, ...]
    unlucky_colors: Tuple[ColorRecommendation, ...]
    day_master: str
    day_master_element: Element
    directional_analysis: Optional[DirectionalAnalysis] = None

    def to_dict(self) -> dict:
        """JSON shape returned by the API (camelCase keys, hour is null when unknown)."""
        data = {
            "chart": self.chart.to_dict(),
            "elementBalance": {element.value: score for element, score in self.element_balance.items()},
            "strongestElement": self.strongest_element.value,
            "weakestElement": self.weakest_element.value,
            "dayMasterStrength": self.day_master_strength.value,
            "supportScore": self.strength_report.support_score,
            "drainScore": self.strength_report.drain_score,
            "luckyElements": [e.value for e in self.lucky_elements],
            "unluckyElements": [e.value for e in self.unlucky_elements],
            "luckyColors": [c.to_dict() for c in self.lucky_colors],
            "unluckyColors": [c.to_dict() for c in self.unlucky_colors],
            "dayMaster": self.day_master,
            "dayMasterElement": self.day_master_element.value,
        }
        if self.directional_analysis is not None:
            data["directionalAnalysis"] = self.directional_analysis.to_dict()
        return data


_DIRECTION_CALC = DirectionalRecommender()


def calculate_bazi(birth_date, birth_time=None, include_directions: bool = False, oracle=None) -> BaziAnalysis:
    """
    Calculate the Bazi profile for a birth date and optional birth time.

    Args:
        birth_date: ISO date string (YYYY-MM-DD) or ``datetime.date``
        birth_time: ``HH:MM`` string or ``datetime.time``; None/"" means unknown
        include_directions: also compute sitting/desk/wealth-corner directions
        oracle: lunar calendar converter (defaults to lunar_python)

    Raises:
        InvalidInputError: malformed or impossible date/time
        UnsupportedDateError: the calendar cannot convert the date
    """
    start_time = time.monotonic()
    born = parse_date(birth_date)
    hour = parse_hour(birth_time)

    chart = build_chart(born.year, born.month, born.day, hour, oracle=oracle)
    balance = calculate_element_balance(chart)

    # 稳定排序: 同分时保持 金木水火土 顺序
    ranked = sorted(balance.items(), key=lambda item: item[1], reverse=True)
    strongest_element = ranked[0][0]
    weakest_element = ranked[-1][0]

    day_master = chart.day.stem
    day_master_element = chart.day.stem_element

    report = _STRENGTH_CALC.calculate_strength(day_master_element, chart.month.branch, balance)
    lucky, unlucky = derive_luck(day_master_element, report.strength)

    directional = _DIRECTION_CALC.analyze(lucky, unlucky) if include_directions else None

    analysis = BaziAnalysis(
        chart=chart,
        element_balance=balance,
        strongest_element=strongest_element,
        weakest_element=weakest_element,
        day_master_strength=report.strength,
        strength_report=report,
        lucky_elements=lucky,
        unlucky_elements=unlucky,
        lucky_colors=tuple(get_element_colors(lucky)),
        unlucky_colors=tuple(get_element_colors(unlucky)),
        day_master=day_master,
        day_master_element=day_master_element,
        directional_analysis=directional,
    )
    log_perf(
        f"[PERF] bazi date={born.isoformat()} hour={hour} "
        f"strength={report.strength.value} total_ms={int((time.monotonic() - start_time) * 1000)}"
    )
    return analysis


# --- 每日穿搭建议 ---

@dataclass(frozen=True)
class DailyRecommendation:
    date: date
    day_element: Element
    recommendation: str
    lucky_colors: Tuple[ColorRecommendation, ...]
    unlucky_colors: Tuple[ColorRecommendation, ...]

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "dayElement": self.day_element.value,
            "recommendation": self.recommendation,
            "luckyColors": [c.to_dict() for c in self.lucky_colors],
            "unluckyColors": [c.to_dict() for c in self.unlucky_colors],
        }


def get_daily_recommendation(analysis: BaziAnalysis, target_date=None, oracle=None) -> DailyRecommendation:
    """Compare the target day's stem element (default: today) with the user's lucky elements."""
    oracle = oracle or _DEFAULT_ORACLE
    day = parse_date(target_date, label="target date") if target_date else date.today()
    try:
        chars = oracle.solar_to_lunar(day.year, day.month, day.day)
    except BaziError:
        raise
    except Exception as e:
        raise UnsupportedDateError(f"Date {day.isoformat()} is outside the supported calendar range") from e

    day_element = get_stem(chars["day_stem"]).element
    primary_color = ELEMENTS[analysis.lucky_elements[0]].colors[0]

    if day_element in analysis.lucky_elements:
        recommendation = f"Today aligns with your chart! Great day for {ELEMENTS[day_element].colors[0]}."
    elif day_element in analysis.unlucky_elements:
        recommendation = f"Balance today with {primary_color} colors."
    else:
        recommendation = f"Balanced day. Enhance with {primary_color}."

    return DailyRecommendation(
        date=day,
        day_element=day_element,
        recommendation=recommendation,
        lucky_colors=analysis.lucky_colors,
        unlucky_colors=analysis.unlucky_colors,
    )
