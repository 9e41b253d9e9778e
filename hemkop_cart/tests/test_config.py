import pytest

from hemkop_cart.config import DEFAULT_EXCLUDED_INGREDIENTS, DEFAULT_SHOPPING_LIST, Config


def test_defaults_without_env():
    cfg = Config.load_from_env({})
    assert cfg.ollama_url == "http://localhost:11434"
    assert cfg.excluded_ingredients == DEFAULT_EXCLUDED_INGREDIENTS
    assert cfg.shopping_list == DEFAULT_SHOPPING_LIST
    assert cfg.headless is False


def test_env_overrides():
    cfg = Config.load_from_env({
        "OLLAMA_URL": "http://gpu-box:11434/",
        "OLLAMA_MODEL": "mistral",
        "OLLAMA_TEMPERATURE": "0.4",
        "EXCLUDED_INGREDIENTS": "salt, peppar ,",
        "SHOPPING_LIST": "2,5 kg potatis; 1 gurka",
        "HEADLESS": "true",
    })
    assert cfg.ollama_url == "http://gpu-box:11434"
    assert cfg.ollama_model == "mistral"
    assert cfg.temperature == 0.4
    assert cfg.excluded_ingredients == ("salt", "peppar")
    assert cfg.shopping_list == ("2,5 kg potatis", "1 gurka")
    assert cfg.headless is True


def test_bad_number_names_the_variable():
    with pytest.raises(RuntimeError, match="OLLAMA_TEMPERATURE"):
        Config.load_from_env({"OLLAMA_TEMPERATURE": "warm"})
