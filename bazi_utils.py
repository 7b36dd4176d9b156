"""
八字工具类 - 八方位推荐、配色图表
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import svgwrite

from elements import ELEMENTS, ColorRecommendation, Element, get_element_colors


@dataclass(frozen=True)
class Direction:
    code: str
    name: str
    trigram: str
    element: Element
    attributes: Tuple[str, ...]


# 后天八卦方位
DIRECTIONS: Tuple[Direction, ...] = (
    Direction("N", "North", "坎 Kan", Element.WATER, ("career", "life path")),
    Direction("NE", "Northeast", "艮 Gen", Element.EARTH, ("knowledge", "self-cultivation")),
    Direction("E", "East", "震 Zhen", Element.WOOD, ("growth", "family", "health")),
    Direction("SE", "Southeast", "巽 Xun", Element.WOOD, ("wealth", "prosperity")),
    Direction("S", "South", "离 Li", Element.FIRE, ("fame", "reputation")),
    Direction("SW", "Southwest", "坤 Kun", Element.EARTH, ("relationships", "partnership")),
    Direction("W", "West", "兑 Dui", Element.METAL, ("creativity", "children")),
    Direction("NW", "Northwest", "乾 Qian", Element.METAL, ("helpful people", "mentors", "travel")),
)

DIRECTIONS_BY_CODE: Dict[str, Direction] = {d.code: d for d in DIRECTIONS}


@dataclass(frozen=True)
class ScoredDirection:
    direction: Direction
    score: int
    category: str  # primary / lucky / unlucky / neutral


@dataclass(frozen=True)
class DirectionalRecommendation:
    primary_direction: Direction
    alternate_directions: Tuple[Direction, ...]
    element: Element
    strength: str  # excellent / good / moderate
    reason: str
    scores: Tuple[ScoredDirection, ...]

    def to_dict(self) -> dict:
        return {
            "primaryDirection": self.primary_direction.name,
            "alternateDirections": [d.name for d in self.alternate_directions],
            "element": self.element.value,
            "strength": self.strength,
            "reason": self.reason,
            "scores": {s.direction.code: s.score for s in self.scores},
        }


@dataclass(frozen=True)
class WealthCornerRecommendation:
    direction: Direction
    element: Element
    template: str  # wood / water / fire / generic
    enhancement_colors: Tuple[ColorRecommendation, ...]
    items: Tuple[str, ...]
    advice: str

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.name,
            "element": self.element.value,
            "template": self.template,
            "enhancementColors": [c.to_dict() for c in self.enhancement_colors],
            "items": list(self.items),
            "advice": self.advice,
        }


@dataclass(frozen=True)
class DirectionalAnalysis:
    sitting_direction: DirectionalRecommendation
    desk_position: DirectionalRecommendation
    wealth_corner: WealthCornerRecommendation

    def to_dict(self) -> dict:
        return {
            "sittingDirection": self.sitting_direction.to_dict(),
            "deskPosition": self.desk_position.to_dict(),
            "wealthCorner": self.wealth_corner.to_dict(),
        }


# 财位建议模板 (按喜用神优先级: 木 > 水 > 火 > 通用)
WEALTH_CORNER_TEMPLATES = {
    "wood": {
        "element": Element.WOOD,
        "items": ("Healthy green plants", "Lucky bamboo", "Wooden decor"),
        "advice": (
            "Wood is one of your lucky elements, so this corner already works in your favour. "
            "Keep lush green plants here and let them grow to grow your prosperity."
        ),
    },
    "water": {
        "element": Element.WATER,
        "items": ("Small water fountain", "Aquarium", "Blue or black accents"),
        "advice": (
            "Water nourishes Wood. A small fountain or aquarium feeds the wealth corner "
            "with your lucky Water energy. Keep the water clean and moving."
        ),
    },
    "fire": {
        "element": Element.FIRE,
        "items": ("Warm desk lamp", "Red or purple accents", "Candles"),
        "advice": (
            "Wood feeds Fire. Bright lighting and red or purple touches turn the corner's "
            "Wood energy into your lucky Fire element."
        ),
    },
    "generic": {
        "element": Element.WOOD,
        "items": ("A single healthy plant", "Clear, clutter-free surfaces", "Good lighting"),
        "advice": (
            "Keep this corner clean and bright with a healthy plant to activate its Wood energy "
            "without overwhelming your chart."
        ),
    },
}


class DirectionalRecommender:
    """
    八方位推荐器 - 坐向、办公桌方位、财位
    """

    def __init__(self):
        self.directions = DIRECTIONS

        # 基础分
        self.primary_score = 100
        self.lucky_score = 70
        self.unlucky_score = -50
        self.neutral_score = 30

        # 坐向: 事业/成长方位加分
        self.sitting_bonus = {"N": 20, "E": 20}
        # 办公桌: 靠山/掌控位加分
        self.desk_bonus = {"NW": 15, "NE": 15}

        self.alternate_count = 3
        self.wealth_corner = DIRECTIONS_BY_CODE["SE"]

    def get_strength_tier(self, score: int) -> str:
        if score >= 100:
            return "excellent"
        if score >= 70:
            return "good"
        return "moderate"

    def score_directions(self, lucky: Sequence[Element], unlucky: Sequence[Element],
                         bonuses: Optional[Dict[str, int]] = None) -> List[ScoredDirection]:
        """
        Score all 8 directions, highest first.
        Ties keep compass order (N, NE, E, SE, S, SW, W, NW).
        """
        bonuses = bonuses or {}
        scored = []
        for direction in self.directions:
            if lucky and direction.element == lucky[0]:
                score, category = self.primary_score, "primary"
            elif direction.element in lucky:
                score, category = self.lucky_score, "lucky"
            elif direction.element in unlucky:
                score, category = self.unlucky_score, "unlucky"
            else:
                score, category = self.neutral_score, "neutral"
            score += bonuses.get(direction.code, 0)
            scored.append(ScoredDirection(direction=direction, score=score, category=category))
        return sorted(scored, key=lambda s: s.score, reverse=True)

    def _describe(self, top: ScoredDirection) -> str:
        return {
            "primary": "your primary lucky element",
            "lucky": "one of your lucky elements",
            "unlucky": "an element to use sparingly",
            "neutral": "a neutral element for your chart",
        }[top.category]

    def recommend_sitting_direction(self, lucky, unlucky) -> DirectionalRecommendation:
        scored = self.score_directions(lucky, unlucky, self.sitting_bonus)
        top = scored[0]
        d = top.direction
        reason = (
            f"Facing {d.name} ({d.trigram}) draws on {d.element.value.title()} energy, "
            f"{self._describe(top)}, and supports {', '.join(d.attributes)}."
        )
        return self._build(scored, reason)

    def recommend_desk_position(self, lucky, unlucky) -> DirectionalRecommendation:
        scored = self.score_directions(lucky, unlucky, self.desk_bonus)
        top = scored[0]
        d = top.direction
        reason = (
            f"A desk in the {d.name} sector ({d.trigram}) sits in {d.element.value.title()} energy, "
            f"{self._describe(top)}. Keep a solid wall behind you and a clear view of the door."
        )
        return self._build(scored, reason)

    def _build(self, scored: List[ScoredDirection], reason: str) -> DirectionalRecommendation:
        top = scored[0]
        return DirectionalRecommendation(
            primary_direction=top.direction,
            alternate_directions=tuple(s.direction for s in scored[1:1 + self.alternate_count]),
            element=top.direction.element,
            strength=self.get_strength_tier(top.score),
            reason=reason,
            scores=tuple(scored),
        )

    def get_wealth_corner(self, lucky: Iterable[Element]) -> WealthCornerRecommendation:
        """财位固定在东南 (巽, 木)，建议按喜用神选择模板。"""
        lucky = tuple(lucky)
        if Element.WOOD in lucky:
            key = "wood"
        elif Element.WATER in lucky:
            key = "water"
        elif Element.FIRE in lucky:
            key = "fire"
        else:
            key = "generic"

        template = WEALTH_CORNER_TEMPLATES[key]
        return WealthCornerRecommendation(
            direction=self.wealth_corner,
            element=self.wealth_corner.element,
            template=key,
            enhancement_colors=tuple(get_element_colors([template["element"]])),
            items=template["items"],
            advice=template["advice"],
        )

    def analyze(self, lucky: Sequence[Element], unlucky: Sequence[Element]) -> DirectionalAnalysis:
        return DirectionalAnalysis(
            sitting_direction=self.recommend_sitting_direction(lucky, unlucky),
            desk_position=self.recommend_desk_position(lucky, unlucky),
            wealth_corner=self.get_wealth_corner(lucky),
        )


class PaletteChartGenerator:
    """幸运色 SVG 图表生成器 - 幸运色、忌用色色块 + 五行得分条"""

    def __init__(self):
        self.colors = {
            "text_dark": "#2C3E50",
            "text_light": "#7F8C8D",
            "border": "#C9B99A",
            "bar_bg": "#F8F4E8",
        }
        # 五行条形图配色 (取各五行第一个代表色，金用金色以便在白底上可见)
        self.bar_colors = {
            Element.METAL: ELEMENTS[Element.METAL].color_codes[1],
            Element.WOOD: ELEMENTS[Element.WOOD].color_codes[0],
            Element.WATER: ELEMENTS[Element.WATER].color_codes[0],
            Element.FIRE: ELEMENTS[Element.FIRE].color_codes[0],
            Element.EARTH: ELEMENTS[Element.EARTH].color_codes[1],
        }
        self.swatch_size = 36
        self.swatch_gap = 8

    def _draw_swatch_row(self, dwg, title, colors, y):
        dwg.add(dwg.text(title, insert=(20, y), font_size="14px", font_weight="bold",
                         fill=self.colors["text_dark"], font_family="sans-serif"))
        x = 20
        for rec in colors:
            dwg.add(dwg.rect(insert=(x, y + 10), size=(self.swatch_size, self.swatch_size), rx=6, ry=6,
                             fill=rec.code, stroke=self.colors["border"], stroke_width=1))
            dwg.add(dwg.text(rec.color, insert=(x + self.swatch_size / 2, y + self.swatch_size + 24),
                             text_anchor="middle", font_size="8px", fill=self.colors["text_light"],
                             font_family="sans-serif"))
            x += self.swatch_size + self.swatch_gap

    def generate_palette(self, analysis) -> str:
        """
        生成配色图 SVG
        :param analysis: BaziAnalysis (lucky_colors / unlucky_colors / element_balance)
        :return: SVG 字符串
        """
        count = max(len(analysis.lucky_colors), len(analysis.unlucky_colors), 1)
        width = max(40 + count * (self.swatch_size + self.swatch_gap), 360)
        height = 340
        dwg = svgwrite.Drawing(size=(f"{width}px", f"{height}px"))
        dwg["viewBox"] = f"0 0 {width} {height}"

        self._draw_swatch_row(dwg, "Lucky Colors", analysis.lucky_colors, 24)
        self._draw_swatch_row(dwg, "Colors to Avoid", analysis.unlucky_colors, 110)

        # 五行得分
        balance = analysis.element_balance
        top = max(balance.values()) or 1
        bar_max = width - 120
        y = 210
        for element in Element:
            score = balance[element]
            dwg.add(dwg.text(f"{ELEMENTS[element].chinese} {element.value.title()}", insert=(20, y + 11),
                             font_size="11px", fill=self.colors["text_dark"], font_family="sans-serif"))
            dwg.add(dwg.rect(insert=(90, y), size=(bar_max, 14), rx=3, ry=3, fill=self.colors["bar_bg"]))
            dwg.add(dwg.rect(insert=(90, y), size=(bar_max * score / top, 14), rx=3, ry=3,
                             fill=self.bar_colors[element]))
            dwg.add(dwg.text(f"{score:g}", insert=(95 + bar_max, y + 11), font_size="10px",
                             fill=self.colors["text_light"], font_family="sans-serif"))
            y += 24

        return dwg.tostring()
