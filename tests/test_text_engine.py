from types import SimpleNamespace

import pytest

import text_engine
from text_engine import TextEngine, TextEngineError


class FakeModels:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(text=outcome)


def _install_gemini(monkeypatch, outcomes):
    models = FakeModels(outcomes)
    created = {}

    class FakeClient:
        def __init__(self, api_key, http_options):
            created["api_key"] = api_key
            self.models = models

    monkeypatch.setattr(text_engine.genai, "Client", FakeClient)
    monkeypatch.setattr(text_engine.time, "sleep", lambda seconds: None)
    return models, created


def test_without_keys_engine_is_unavailable():
    engine = TextEngine()
    assert engine.initialize() is False
    assert engine.is_ready is False
    with pytest.raises(TextEngineError):
        engine.generate("hello")


def test_from_config_reads_keys():
    engine = TextEngine.from_config({"GEMINI_API_KEY": "g", "MASTER_DEEPSEEK_API_KEY": "d"})
    assert engine.gemini_api_key == "g"
    assert engine.deepseek_api_key == "d"
    assert engine.gemini_model == text_engine.GEMINI_MODEL_NAME


def test_gemini_generation(monkeypatch):
    models, created = _install_gemini(monkeypatch, ["  결과 텍스트  "])
    engine = TextEngine(gemini_api_key="key")

    assert engine.initialize() is True
    assert engine.provider == "gemini"
    assert created["api_key"] == "key"
    assert engine.generate("prompt", temperature=0.5, max_tokens=100) == "결과 텍스트"
    assert models.calls[0]["model"] == text_engine.GEMINI_MODEL_NAME
    assert models.calls[0]["config"].max_output_tokens == 100


def test_gemini_retries_on_503(monkeypatch):
    models, _ = _install_gemini(monkeypatch, [Exception("503 UNAVAILABLE"), "ok"])
    engine = TextEngine(gemini_api_key="key")
    engine.initialize()

    assert engine.generate("prompt") == "ok"
    assert len(models.calls) == 2


def test_gemini_gives_up_after_retries(monkeypatch):
    models, _ = _install_gemini(monkeypatch, [Exception("503 UNAVAILABLE")] * 3)
    engine = TextEngine(gemini_api_key="key")
    engine.initialize()

    with pytest.raises(TextEngineError):
        engine.generate("prompt")
    assert len(models.calls) == text_engine.MAX_RETRIES + 1


def test_other_errors_are_not_retried(monkeypatch):
    models, _ = _install_gemini(monkeypatch, [ValueError("400 bad request"), "unused"])
    engine = TextEngine(gemini_api_key="key")
    engine.initialize()

    with pytest.raises(TextEngineError, match="400 bad request"):
        engine.generate("prompt")
    assert len(models.calls) == 1


def test_empty_response_is_an_error(monkeypatch):
    _install_gemini(monkeypatch, ["   "])
    engine = TextEngine(gemini_api_key="key")
    engine.initialize()

    with pytest.raises(TextEngineError, match="empty"):
        engine.generate("prompt")


def test_deepseek_used_without_gemini_key(monkeypatch):
    calls = []

    class FakeCompletions:
        def create(self, **kwargs):
            calls.append(kwargs)
            message = SimpleNamespace(content="딥시크 응답")
            return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    class FakeOpenAI:
        def __init__(self, api_key, base_url, timeout):
            assert base_url == text_engine.DEEPSEEK_BASE_URL
            self.chat = SimpleNamespace(completions=FakeCompletions())

    monkeypatch.setattr(text_engine, "OpenAI", FakeOpenAI)
    engine = TextEngine(deepseek_api_key="key")

    assert engine.initialize() is True
    assert engine.provider == "deepseek"
    assert engine.generate("prompt") == "딥시크 응답"
    assert calls[0]["model"] == text_engine.DEEPSEEK_MODEL_NAME

    engine.shutdown()
    assert engine.is_ready is False
