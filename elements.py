"""
Five Elements (五行) catalog: display info, colors and the two cycles.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple


class Element(str, Enum):
    METAL = "metal"
    WOOD = "wood"
    WATER = "water"
    FIRE = "fire"
    EARTH = "earth"


@dataclass(frozen=True)
class ElementInfo:
    name: Element
    chinese: str
    symbol: str
    colors: Tuple[str, ...]
    color_codes: Tuple[str, ...]
    description_en: str
    description_zh: str


@dataclass(frozen=True)
class ColorRecommendation:
    color: str
    code: str
    element: Element

    def to_dict(self) -> dict:
        return {"color": self.color, "code": self.code, "element": self.element.value}


ELEMENTS = {
    Element.METAL: ElementInfo(
        name=Element.METAL,
        chinese="金",
        symbol="🪙",
        colors=("White", "Gold", "Silver", "Gray"),
        color_codes=("#FFFFFF", "#FFD700", "#C0C0C0", "#808080"),
        description_en="Metal represents strength, determination, and clarity",
        description_zh="金代表坚强、决断和清明",
    ),
    Element.WOOD: ElementInfo(
        name=Element.WOOD,
        chinese="木",
        symbol="🌳",
        colors=("Green", "Teal", "Emerald", "Forest Green"),
        color_codes=("#228B22", "#008080", "#50C878", "#228B22"),
        description_en="Wood represents growth, vitality, and creativity",
        description_zh="木代表成长、活力和创造力",
    ),
    Element.WATER: ElementInfo(
        name=Element.WATER,
        chinese="水",
        symbol="💧",
        colors=("Blue", "Black", "Navy", "Dark Blue"),
        color_codes=("#0000FF", "#000000", "#000080", "#00008B"),
        description_en="Water represents wisdom, flexibility, and intuition",
        description_zh="水代表智慧、灵活和直觉",
    ),
    Element.FIRE: ElementInfo(
        name=Element.FIRE,
        chinese="火",
        symbol="🔥",
        colors=("Red", "Orange", "Pink", "Purple"),
        color_codes=("#FF0000", "#FFA500", "#FFC0CB", "#800080"),
        description_en="Fire represents passion, energy, and transformation",
        description_zh="火代表热情、能量和变化",
    ),
    Element.EARTH: ElementInfo(
        name=Element.EARTH,
        chinese="土",
        symbol="🌍",
        colors=("Yellow", "Brown", "Beige", "Tan"),
        color_codes=("#FFFF00", "#8B4513", "#F5F5DC", "#D2B48C"),
        description_en="Earth represents stability, nourishment, and balance",
        description_zh="土代表稳定、滋养和平衡",
    ),
}

# 相生: Key 生 Value
GENERATES = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# 相克: Key 克 Value
CONTROLS = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}

# 反向查找 (Value 生/克 Key)
GENERATED_BY = {v: k for k, v in GENERATES.items()}
CONTROLLED_BY = {v: k for k, v in CONTROLS.items()}


def get_element_colors(elements: Iterable[Element]) -> List[ColorRecommendation]:
    """Expand each element into its catalog colors, keeping catalog order."""
    colors = []
    for element in elements:
        info = ELEMENTS[element]
        for color, code in zip(info.colors, info.color_codes):
            colors.append(ColorRecommendation(color=color, code=code, element=element))
    return colors
