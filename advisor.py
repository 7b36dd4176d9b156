"""
Feng Shui advisor: outfit / workspace image analysis, reports and speech scripts.

Prompts are built from a Bazi profile's lucky/unlucky colors and sent to an
OpenAI-compatible chat client (Gemini through its OpenAI endpoint). The client
is passed in, never created at import time.
"""
from __future__ import annotations

import time
from typing import Any, Iterable, List, Optional

from openai import OpenAIError

from errors import AdvisorError
from llm_client import LLM_MODEL
from logic import log_perf
from text_utils import clean_text_for_speech, extract_json_object, strip_data_url_prefix

FENGSHUI_2026_KNOWLEDGE = """
## 2026 Year of the Fire Horse (火马年) - Workspace Feng Shui Guide

### Flying Stars Chart for 2026 (九宫飞星图):
| Direction | Star | Theme | Auspicious Element/Colors |
|-----------|------|-------|---------------------------|
| East (E) | 8 White Star (八白) | Wealth Position (财位) - Build Good Relationships | Fire: Red, Orange |
| West (W) | 3 Jade Star (三碧) | Gain Wealth and Profit | Water: Blue, Black |
| Southeast (SE) | 9 Purple Star (九紫) | Celebration (喜庆) - Explore Proactively | Wood: Green |
| Northeast (NE) | 4 Dark Green Star (四绿) | Academic/Peach Blossom (文昌/桃花) - Advance Steadily | Water: Blue, Black |
| Southwest (SW) | 7 Scarlet Star (七赤) | Stay Composed and Focused | Water: Blue, Black |
| South (S) | 5 Yellow Star (五黄) | DISASTER STAR - Pay Attention to Safety | Metal: White, Gold (to weaken) |
| North (N) | 6 White Star (六白) | Nobleman (贵人) - Keep Calm and Be Patient | Water: Blue, Black |
| Northwest (NW) | 2 Black Star (二黑) | Illness Star - Treat Others Sincerely | Metal: White, Gold (to weaken) |
| Center | 1 White Star (一白) | Career Growth Potential | |

### Workspace Feng Shui Principles:
1. **Desk Position**: Back should face a solid wall (support), front should have open view (bright future)
2. **Avoid**: Sitting with back to door, under beams, facing sharp corners
3. **Wealth Corner**: Keep clean and bright, place water features or plants
4. **Colors by Element**:
   - Metal (金): White, Gold, Silver - precision, clarity
   - Wood (木): Green, Teal - growth, vitality
   - Water (水): Blue, Black - wisdom, flow
   - Fire (火): Red, Orange, Pink - passion, energy
   - Earth (土): Yellow, Brown, Beige - stability, grounding

### Remedies:
- Place salt lamp or metal objects in South to neutralize Five Yellow
- Use plants or water features in East for wealth
- Keep North area clean and quiet
"""

OUTFIT_FALLBACK = {
    "analysis": "",
    "detectedColors": [],
    "colorMatch": "neutral",
    "suggestions": ["Unable to parse detailed suggestions"],
    "elementAlignment": "Analysis in progress",
}

WORKSPACE_FALLBACK = {
    "analysis": "",
    "detectedColors": [],
    "colorMatch": "neutral",
    "reason": "Unable to determine alignment",
    "flyingStarNotes": "Analysis complete",
    "suggestions": ["Please try again for detailed suggestions"],
    "elementAlignment": "Mixed elements detected",
}


def color_names(colors: Optional[Iterable[Any]]) -> str:
    """Join color names from ColorRecommendation objects or ``{"color": ...}`` dicts."""
    names = []
    for c in colors or []:
        names.append(c["color"] if isinstance(c, dict) else c.color)
    return ", ".join(names) or "Not specified"


def build_directional_context(directional_analysis) -> str:
    if not directional_analysis:
        return ""
    if hasattr(directional_analysis, "to_dict"):
        directional_analysis = directional_analysis.to_dict()
    sitting = (directional_analysis.get("sittingDirection") or {}).get("primaryDirection") or "Not specified"
    desk = (directional_analysis.get("deskPosition") or {}).get("primaryDirection") or "Not specified"
    corner = (directional_analysis.get("wealthCorner") or {}).get("direction") or "Not specified"
    return f"""
User's Personal Feng Shui Directions:
- Best Sitting Direction: Face {sitting}
- Best Desk Position: {desk} sector
- Wealth Corner: {corner}
"""


def build_outfit_prompt(lucky_colors, unlucky_colors) -> str:
    return f"""You are a Feng Shui fashion advisor analyzing an outfit photo.

The user's lucky colors based on their BaZi (八字) analysis are: {color_names(lucky_colors)}
The colors they should avoid are: {color_names(unlucky_colors)}

Please analyze the outfit in the image and provide:
1. A brief description of the colors visible in the outfit
2. How well the outfit aligns with their lucky colors (excellent/good/neutral/poor)
3. Specific suggestions for improvement based on Five Elements (五行) principles
4. Which element (Metal/Wood/Water/Fire/Earth) the outfit currently represents

Respond in JSON format:
{{
  "analysis": "Brief friendly analysis of the outfit",
  "detectedColors": ["color1", "color2"],
  "colorMatch": "excellent|good|neutral|poor",
  "suggestions": ["suggestion1", "suggestion2"],
  "elementAlignment": "Description of element alignment"
}}"""


def build_workspace_prompt(lucky_colors, unlucky_colors, directional_analysis=None) -> str:
    return f"""You are a professional Feng Shui consultant analyzing a workspace photo based on 2026 Flying Star Feng Shui principles.

{FENGSHUI_2026_KNOWLEDGE}

## User's BaZi Profile:
- Lucky Colors: {color_names(lucky_colors)}
- Colors to Avoid: {color_names(unlucky_colors)}
{build_directional_context(directional_analysis)}

## Your Task:
Analyze this workspace photo and provide Feng Shui recommendations based on:

1. **Visible Elements Analysis**: Identify colors, objects, plants, furniture arrangement visible in the workspace
2. **2026 Flying Star Assessment**: Assess if the workspace aligns with 2026 auspicious positions
3. **Color Harmony**: How well do the workspace colors match the user's lucky colors?
4. **Feng Shui Issues**: Identify any visible Feng Shui problems (clutter, sharp corners pointing at desk, blocked energy flow)
5. **Specific Recommendations**: Give 2-3 actionable tips based on 2026 Feng Shui

Respond in JSON format:
{{
  "analysis": "Brief overall workspace Feng Shui assessment (2-3 sentences)",
  "detectedColors": ["color1", "color2", "color3"],
  "colorMatch": "excellent|good|neutral|poor",
  "reason": "Brief reason for the rating (max 15 words)",
  "flyingStarNotes": "Brief note about 2026 Flying Star relevance (1 sentence)",
  "suggestions": ["Suggestion 1", "Suggestion 2", "Suggestion 3"],
  "elementAlignment": "Which Five Elements are dominant in this workspace"
}}

IMPORTANT: Keep analysis concise. Focus on practical, actionable Feng Shui advice."""


def build_report_prompt(lucky_colors, unlucky_colors, day_master: Optional[str] = None) -> str:
    return f"""You are a master Feng Shui consultant who combines ancient Chinese wisdom with modern science. Generate an entertaining yet educational outfit analysis report.

## User's BaZi Profile:
- Day Master: {day_master or 'Unknown'}
- Lucky Colors: {color_names(lucky_colors)}
- Colors to Avoid: {color_names(unlucky_colors)}

## Your Task:
Analyze the outfit in this image and write a FUN, ENGAGING report that:

1. **Opens with personality** - Start with a witty observation about the outfit
2. **Explains the basics** - The Five Elements (五行) and the colors that belong to each
3. **Analyzes what you see** - Describe the colors in the outfit and which elements they represent
4. **Gives the verdict** - How well does this outfit align with the user's elemental needs?
5. **Practical tips** - Give 2-3 specific, actionable suggestions
6. **Fun closing** - End with an encouraging or humorous note

## Format Guidelines:
- Use markdown formatting with headers
- Keep paragraphs short and punchy
- Total length: 300-400 words

Write the report now:"""


def build_speech_script_prompt(report: str, kind: str = "outfit") -> str:
    subject = "workspace" if kind == "workspace" else "outfit"
    return f"""You are a fun, lively Feng Shui consultant from Singapore! Convert this {subject} Feng Shui report into a SINGLISH speech script - entertaining, humorous, and full of personality!

## Style:
- Use Singlish particles naturally: "lah", "lor", "leh", "mah", "sia", "hor"
- Be warm but also funny, like a friend who teases you lovingly
- Keep it 60-90 seconds (about 150-200 words)
- Highlight 3-4 most important findings and give 2-3 recommendations
- Do NOT use markdown, bullet points, or special characters
- Do NOT say "according to the report" - you ARE the expert!

## Report to convert:
{report}

## Your entertaining Singlish speech script:"""


class OutfitAdvisor:
    """Feng Shui advisor backed by an OpenAI-compatible chat client."""

    def __init__(self, client, model: str = LLM_MODEL, temperature: float = 0.7):
        self.client = client
        self.model = model
        self.temperature = temperature

    def _complete(self, prompt: str, image_b64: Optional[str] = None, task: str = "advisor") -> str:
        content: List[dict] = [{"type": "text", "text": prompt}]
        if image_b64:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/jpeg;base64,{strip_data_url_prefix(image_b64)}"},
            })

        start_time = time.monotonic()
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": content}],
                temperature=self.temperature,
            )
        except OpenAIError as e:
            print(f"ERROR: {task} request failed: {e}", flush=True)
            raise AdvisorError(f"Failed to {task}") from e

        log_perf(f"[PERF] {task} model={self.model} total_ms={int((time.monotonic() - start_time) * 1000)}")
        return response.choices[0].message.content or ""

    def analyze_outfit(self, image_b64: str, lucky_colors, unlucky_colors) -> dict:
        text = self._complete(build_outfit_prompt(lucky_colors, unlucky_colors), image_b64, task="analyze outfit")
        parsed = extract_json_object(text)
        if parsed is not None:
            return parsed
        return {**OUTFIT_FALLBACK, "analysis": text}

    def analyze_workspace(self, image_b64: str, lucky_colors, unlucky_colors, directional_analysis=None) -> dict:
        prompt = build_workspace_prompt(lucky_colors, unlucky_colors, directional_analysis)
        text = self._complete(prompt, image_b64, task="analyze workspace")
        parsed = extract_json_object(text)
        if parsed is not None:
            return parsed
        return {**WORKSPACE_FALLBACK, "analysis": text.strip()}

    def write_report(self, image_b64: str, lucky_colors, unlucky_colors, day_master: Optional[str] = None) -> str:
        prompt = build_report_prompt(lucky_colors, unlucky_colors, day_master)
        return self._complete(prompt, image_b64, task="generate report")

    def write_speech_script(self, report: str, kind: str = "outfit") -> str:
        text = self._complete(build_speech_script_prompt(report, kind), task="generate script")
        return clean_text_for_speech(text)
