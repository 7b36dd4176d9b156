import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


class FakeOracle:
    """
    Stand-in lunar calendar: returns fixed pillars and records every call.
    Pillars are given as two-character strings, e.g. year="甲寅".
    """

    def __init__(self, year, month, day, hour=None, fail=False):
        self.pillars = {"year": year, "month": month, "day": day, "hour": hour}
        self.fail = fail
        self.calls = []

    def _chars(self, names):
        if self.fail:
            raise Exception("wrong solar year")
        chars = {}
        for name in names:
            chars[f"{name}_stem"] = self.pillars[name][0]
            chars[f"{name}_branch"] = self.pillars[name][1]
        return chars

    def solar_to_lunar(self, year, month, day):
        self.calls.append(("date", year, month, day))
        return self._chars(["year", "month", "day"])

    def solar_to_lunar_with_time(self, year, month, day, hour):
        self.calls.append(("time", year, month, day, hour))
        return self._chars(["year", "month", "day", "hour"])


class FakeCompletions:
    def __init__(self, reply, error=None):
        self.reply = reply
        self.error = error
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = type("Message", (), {"content": self.reply})()
        choice = type("Choice", (), {"message": message})()
        return type("Completion", (), {"choices": [choice]})()


class FakeLLMClient:
    """Mimics ``client.chat.completions.create`` of the OpenAI SDK."""

    def __init__(self, reply="", error=None):
        self.completions = FakeCompletions(reply, error)
        self.chat = type("Chat", (), {"completions": self.completions})()


@pytest.fixture
def strong_oracle():
    # 甲木日主, 寅月得令, 满盘甲寅
    return FakeOracle("甲寅", "甲寅", "甲寅", hour="丙寅")


@pytest.fixture
def weak_oracle():
    # 甲木日主, 申月官杀当令
    return FakeOracle("庚申", "庚申", "甲申", hour="甲申")


@pytest.fixture
def make_oracle():
    return FakeOracle


@pytest.fixture
def make_llm_client():
    return FakeLLMClient
