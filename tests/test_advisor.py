import pytest
from openai import OpenAIError

import llm_client
from advisor import OUTFIT_FALLBACK, OutfitAdvisor, build_outfit_prompt, color_names
from elements import Element, get_element_colors
from errors import AdvisorError
from text_utils import clean_text_for_speech, extract_json_object, strip_data_url_prefix


# --- text_utils ---

def test_strip_data_url_prefix():
    assert strip_data_url_prefix("data:image/png;base64,AAAA") == "AAAA"
    assert strip_data_url_prefix("AAAA") == "AAAA"


def test_extract_json_object_from_fenced_reply():
    reply = 'Sure!\n```json\n{"colorMatch": "good", "suggestions": ["a"]}\n```'
    assert extract_json_object(reply) == {"colorMatch": "good", "suggestions": ["a"]}


@pytest.mark.parametrize("reply", ["", "no json here", "{not json}", "[1, 2]"])
def test_extract_json_object_returns_none(reply):
    assert extract_json_object(reply) is None


def test_clean_text_for_speech():
    text = "## Verdict 🔥\n\n**Great** choice lah!\n- Wear *more* green\n1. Add a plant\n\n\n\nBye"
    assert clean_text_for_speech(text) == "Verdict\n\nGreat choice lah!\nWear more green\nAdd a plant\n\nBye"
    assert clean_text_for_speech("") == ""


# --- prompts ---

def test_color_names_accepts_objects_and_dicts():
    assert color_names(get_element_colors([Element.EARTH])[:2]) == "Yellow, Brown"
    assert color_names([{"color": "Red"}]) == "Red"
    assert color_names(None) == "Not specified"


def test_outfit_prompt_lists_colors():
    prompt = build_outfit_prompt([{"color": "Green"}], [{"color": "White"}])
    assert "lucky colors based on their BaZi" in prompt
    assert ": Green" in prompt
    assert "avoid are: White" in prompt
    assert '"colorMatch": "excellent|good|neutral|poor"' in prompt


# --- OutfitAdvisor ---

def test_analyze_outfit_parses_json(make_llm_client):
    client = make_llm_client(reply='{"analysis": "Nice", "colorMatch": "excellent"}')
    advisor = OutfitAdvisor(client, model="test-model")
    result = advisor.analyze_outfit("data:image/jpeg;base64,QUJD", [{"color": "Green"}], [])
    assert result == {"analysis": "Nice", "colorMatch": "excellent"}

    request = client.completions.requests[0]
    assert request["model"] == "test-model"
    assert request["temperature"] == 0.7
    content = request["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,QUJD"


def test_analyze_outfit_falls_back_on_plain_text(make_llm_client):
    advisor = OutfitAdvisor(make_llm_client(reply="Looks lovely in green."))
    result = advisor.analyze_outfit("QUJD", [], [])
    assert result["analysis"] == "Looks lovely in green."
    assert result["colorMatch"] == OUTFIT_FALLBACK["colorMatch"]
    assert OUTFIT_FALLBACK["analysis"] == ""


def test_workspace_fallback(make_llm_client):
    advisor = OutfitAdvisor(make_llm_client(reply="  Too cluttered.  "))
    result = advisor.analyze_workspace("QUJD", [], [], None)
    assert result["analysis"] == "Too cluttered."
    assert result["flyingStarNotes"] == "Analysis complete"


def test_write_report_returns_markdown(make_llm_client):
    advisor = OutfitAdvisor(make_llm_client(reply="# Report\nGreen!"))
    assert advisor.write_report("QUJD", [], [], day_master="甲") == "# Report\nGreen!"


def test_speech_script_is_cleaned_and_text_only(make_llm_client):
    client = make_llm_client(reply="**Wah** lah! 😀")
    advisor = OutfitAdvisor(client)
    assert advisor.write_speech_script("report", kind="outfit") == "Wah lah!"
    content = client.completions.requests[0]["messages"][0]["content"]
    assert len(content) == 1


def test_client_error_becomes_advisor_error(make_llm_client):
    error = OpenAIError("upstream unavailable")
    advisor = OutfitAdvisor(make_llm_client(error=error))
    with pytest.raises(AdvisorError, match="Failed to analyze outfit"):
        advisor.analyze_outfit("QUJD", [], [])


# --- llm_client ---

def test_llm_client_requires_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        llm_client.get_llm_client()
    with pytest.raises(RuntimeError):
        llm_client.get_llm_client("replace_me")


def test_llm_client_is_cached():
    first = llm_client.get_llm_client("test-key")
    assert llm_client.get_llm_client("test-key") is first
    assert str(first.base_url).rstrip("/") == llm_client.LLM_BASE_URL.rstrip("/")
