import re

import pytest

from bazi_utils import (
    DIRECTIONS,
    DIRECTIONS_BY_CODE,
    WEALTH_CORNER_TEMPLATES,
    DirectionalRecommender,
    PaletteChartGenerator,
)
from elements import Element
from logic import calculate_bazi

STRONG_WOOD = ((Element.EARTH, Element.METAL, Element.FIRE), (Element.WATER, Element.WOOD))
WEAK_WOOD = ((Element.WATER, Element.WOOD), (Element.EARTH, Element.METAL))


@pytest.fixture
def recommender():
    return DirectionalRecommender()


def test_bagua_elements():
    assert [d.code for d in DIRECTIONS] == ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
    expected = {
        "N": Element.WATER, "NE": Element.EARTH, "E": Element.WOOD, "SE": Element.WOOD,
        "S": Element.FIRE, "SW": Element.EARTH, "W": Element.METAL, "NW": Element.METAL,
    }
    assert {code: d.element for code, d in DIRECTIONS_BY_CODE.items()} == expected
    assert DIRECTIONS_BY_CODE["SE"].trigram == "巽 Xun"


def test_strength_tiers(recommender):
    assert recommender.get_strength_tier(120) == "excellent"
    assert recommender.get_strength_tier(100) == "excellent"
    assert recommender.get_strength_tier(99) == "good"
    assert recommender.get_strength_tier(70) == "good"
    assert recommender.get_strength_tier(69) == "moderate"
    assert recommender.get_strength_tier(-50) == "moderate"


def test_scores_cover_all_directions_sorted(recommender):
    scored = recommender.score_directions(*STRONG_WOOD)
    assert len(scored) == 8
    assert {s.direction.code for s in scored} == set(DIRECTIONS_BY_CODE)
    assert [s.score for s in scored] == sorted((s.score for s in scored), reverse=True)
    categories = {s.direction.code: s.category for s in scored}
    assert categories["NE"] == categories["SW"] == "primary"
    assert categories["S"] == "lucky"
    assert categories["N"] == "unlucky"


def test_neutral_score_without_luck(recommender):
    scored = recommender.score_directions((), ())
    assert all(s.score == 30 and s.category == "neutral" for s in scored)
    # ties keep compass order
    assert [s.direction.code for s in scored] == [d.code for d in DIRECTIONS]


def test_sitting_direction_strong_wood(recommender):
    rec = recommender.recommend_sitting_direction(*STRONG_WOOD)
    scores = {s.direction.code: s.score for s in rec.scores}
    assert scores == {"N": -30, "NE": 100, "E": -30, "SE": -50, "S": 70, "SW": 100, "W": 70, "NW": 70}
    assert rec.primary_direction.code == "NE"
    assert [d.code for d in rec.alternate_directions] == ["SW", "S", "W"]
    assert rec.element == Element.EARTH
    assert rec.strength == "excellent"
    assert rec.reason.startswith("Facing Northeast (艮 Gen) draws on Earth energy")


def test_desk_position_strong_wood(recommender):
    rec = recommender.recommend_desk_position(*STRONG_WOOD)
    assert rec.primary_direction.code == "NE"
    assert [d.code for d in rec.alternate_directions] == ["SW", "NW", "S"]
    assert rec.scores[0].score == 115
    assert rec.strength == "excellent"


def test_weak_wood_prefers_north(recommender):
    sitting = recommender.recommend_sitting_direction(*WEAK_WOOD)
    assert sitting.primary_direction.code == "N"
    assert sitting.scores[0].score == 120
    assert [d.code for d in sitting.alternate_directions] == ["E", "SE", "S"]

    desk = recommender.recommend_desk_position(*WEAK_WOOD)
    assert desk.primary_direction.code == "N"
    assert [d.code for d in desk.alternate_directions] == ["E", "SE", "S"]


@pytest.mark.parametrize("lucky, template", [
    ((Element.WATER, Element.WOOD), "wood"),
    ((Element.METAL, Element.WATER), "water"),
    ((Element.FIRE, Element.EARTH), "fire"),
    ((Element.EARTH, Element.METAL), "generic"),
])
def test_wealth_corner_templates(recommender, lucky, template):
    corner = recommender.get_wealth_corner(lucky)
    assert corner.direction.code == "SE"
    assert corner.element == Element.WOOD
    assert corner.template == template
    assert corner.items == WEALTH_CORNER_TEMPLATES[template]["items"]
    assert corner.enhancement_colors[0].element == WEALTH_CORNER_TEMPLATES[template]["element"]


def test_analysis_to_dict(recommender):
    data = recommender.analyze(*STRONG_WOOD).to_dict()
    assert set(data) == {"sittingDirection", "deskPosition", "wealthCorner"}
    assert data["sittingDirection"]["primaryDirection"] == "Northeast"
    assert data["sittingDirection"]["alternateDirections"] == ["Southwest", "South", "West"]
    assert data["deskPosition"]["scores"]["NE"] == 115
    assert data["wealthCorner"]["direction"] == "Southeast"
    assert data["wealthCorner"]["template"] == "fire"


def test_palette_svg(strong_oracle):
    analysis = calculate_bazi("2000-02-10", oracle=strong_oracle)
    svg = PaletteChartGenerator().generate_palette(analysis)
    assert svg.startswith("<svg")
    assert "Lucky Colors" in svg
    assert "Colors to Avoid" in svg
    # earth bars use Brown, so Yellow only appears as a swatch
    assert len(re.findall(r'fill="#FFFF00"', svg)) == 1
    assert "Yellow" in svg and "Navy" in svg
    assert "33" in svg
