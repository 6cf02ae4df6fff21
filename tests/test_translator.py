import json

import pytest

from odia_roll.config import AIConfig, Config, TranslationConfig
from odia_roll.exceptions import ConfigurationError, DataPersistenceError
from odia_roll.utils.translator import (
    GoogleTranslateBackend,
    NullTranslateBackend,
    TranslationCache,
    create_backend,
    normalize_text,
    romanize,
)

from conftest import FakeBackend, FakeClock

NAME = "ରମେଶ ସାହୁ"


def _cache(answers=None, interval=0.0, clock=None):
    clock = clock or FakeClock()
    return TranslationCache(
        FakeBackend(answers),
        min_interval_sec=interval,
        clock=clock,
        sleep=clock.sleep,
    )


def test_empty_text():
    cache = _cache()
    assert cache.translate_to_english("") == ""
    assert cache.translate_to_english("   ") == ""
    assert cache.backend.calls == []


def test_latin_and_short_text_pass_through():
    cache = _cache()

    assert cache.translate_to_english("  Ramesh,   Sahu ") == "Ramesh Sahu"
    assert cache.translate_to_english("ରା") == "ରା"
    assert cache.backend.calls == []
    assert cache.usage.skipped == 2


def test_equal_normalized_text_calls_backend_once():
    cache = _cache({NAME: "Ramesh Sahu"})

    assert cache.translate_to_english(NAME) == "Ramesh Sahu"
    assert cache.translate_to_english("  ରମେଶ    ସାହୁ, ") == "Ramesh Sahu"

    assert cache.backend.calls == [NAME]
    assert NAME in cache
    assert cache.usage.hits == 1
    assert cache.usage.external_calls == 1


def test_failure_degrades_to_transliteration_and_is_not_cached():
    cache = _cache()

    first = cache.translate_to_english("ରମେଶ")
    second = cache.translate_to_english("ରମେଶ")

    assert first == second == romanize("ରମେଶ")
    assert first == "Ramesha"
    assert len(cache.backend.calls) == 2
    assert len(cache) == 0
    assert cache.usage.failures == 2


def test_null_backend_always_transliterates():
    cache = TranslationCache(NullTranslateBackend(), min_interval_sec=0)
    assert cache.translate_to_english("ଗୀତା") == "Gita"


def test_rate_gate_spaces_calls():
    clock = FakeClock()
    cache = _cache({"ରମେଶ": "Ramesh", "ଗୀତା": "Gita"}, interval=0.3, clock=clock)

    cache.translate_to_english("ରମେଶ")
    cache.translate_to_english("ଗୀତା")
    cache.translate_to_english("ରମେଶ")  # cached, no wait

    assert clock.sleeps == [pytest.approx(0.3)]


def test_rate_gate_no_wait_after_interval():
    clock = FakeClock()
    cache = _cache({"ରମେଶ": "Ramesh", "ଗୀତା": "Gita"}, interval=0.3, clock=clock)

    cache.translate_to_english("ରମେଶ")
    clock.now += 1.0
    cache.translate_to_english("ଗୀତା")

    assert clock.sleeps == []


def test_batch_translates_unique_texts():
    answers = {"ରମେଶ": "Ramesh", "ଗୀତା": "Gita", "ହରି ଦାସ": "Hari Das"}
    cache = _cache(answers)
    cache.max_concurrent = 3

    result = cache.translate_batch(["ରମେଶ", "ଗୀତା", "ରମେଶ", "ହରି ଦାସ", ""])

    assert result == answers
    assert sorted(cache.backend.calls) == sorted(answers)


def test_save_and_load(tmp_path):
    path = tmp_path / "cache" / "translations.json"
    cache = _cache({NAME: "Ramesh Sahu"})
    cache.translate_to_english(NAME)

    assert cache.save(path) == 1
    assert json.loads(path.read_text(encoding="utf-8")) == [[NAME, "Ramesh Sahu"]]

    fresh = _cache()
    assert fresh.load(path) == 1
    assert fresh.translate_to_english(NAME) == "Ramesh Sahu"
    assert fresh.backend.calls == []

    fresh.clear()
    assert len(fresh) == 0


def test_load_missing_and_invalid(tmp_path):
    cache = _cache()
    assert cache.load(tmp_path / "missing.json") == 0

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(DataPersistenceError):
        cache.load(bad)


def test_normalize_text():
    assert normalize_text("  ରମେଶ,\n ସାହୁ!! ") == NAME


def test_create_backend():
    assert isinstance(create_backend(Config(translation=TranslationConfig(engine="none"))), NullTranslateBackend)
    assert isinstance(create_backend(Config(translation=TranslationConfig(engine="google"))), GoogleTranslateBackend)
    with pytest.raises(ConfigurationError):
        create_backend(Config(translation=TranslationConfig(engine="babelfish")))


def test_ai_backend_requires_api_key():
    config = Config(translation=TranslationConfig(engine="ai"), ai=AIConfig(api_key=""))
    with pytest.raises(ConfigurationError):
        create_backend(config)


class _Response:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class _Session:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append(params)
        return _Response(self.payload)


def test_google_backend_joins_segments():
    session = _Session([[["Ramesh ", NAME, None], ["Sahu", "", None]], None, "or"])
    backend = GoogleTranslateBackend(session=session)

    assert backend.translate(NAME, "or", "en") == "Ramesh Sahu"
    assert session.requests[0]["sl"] == "or"
    assert session.requests[0]["tl"] == "en"
    assert session.requests[0]["q"] == NAME
