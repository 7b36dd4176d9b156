
import sys
import os

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from advisor import build_report_prompt, build_speech_script_prompt, build_workspace_prompt


def test_speech_script_tone():
    prompt = build_speech_script_prompt(report="## Verdict\nGreen is great", kind="workspace")

    print("Checking for Tone Guidelines...")
    assert "SINGLISH" in prompt
    assert "lah" in prompt
    assert "Do NOT use markdown" in prompt
    assert "workspace Feng Shui report" in prompt
    assert "Green is great" in prompt

    print("SUCCESS: Tone Guidelines found in prompt.")
    print("-" * 20)
    print(prompt[:500] + "...")


def test_speech_script_defaults_to_outfit():
    assert "outfit Feng Shui report" in build_speech_script_prompt("report", kind="anything")


def test_report_prompt_content():
    prompt = build_report_prompt(
        lucky_colors=[{"color": "Yellow"}, {"color": "Brown"}],
        unlucky_colors=[{"color": "Blue"}],
        day_master="甲",
    )
    assert "Day Master: 甲" in prompt
    assert "Lucky Colors: Yellow, Brown" in prompt
    assert "Colors to Avoid: Blue" in prompt
    assert "300-400 words" in prompt


def test_workspace_prompt_includes_flying_stars_and_directions():
    directions = {
        "sittingDirection": {"primaryDirection": "Northeast"},
        "deskPosition": {"primaryDirection": "Northwest"},
        "wealthCorner": {"direction": "Southeast"},
    }
    prompt = build_workspace_prompt([], [], directions)
    assert "2026 Year of the Fire Horse" in prompt
    assert "Lucky Colors: Not specified" in prompt
    assert "Best Sitting Direction: Face Northeast" in prompt
    assert "Best Desk Position: Northwest sector" in prompt
    assert "Wealth Corner: Southeast" in prompt

    assert "Personal Feng Shui Directions" not in build_workspace_prompt([], [])


if __name__ == "__main__":
    test_speech_script_tone()
