from __future__ import annotations

import json
import os

import pytest

from GalleryTranslator.util.config import configuration
from GalleryTranslator.util.config.configuration import (
    AI_LM_STUDIO,
    AI_OLLAMA,
    MANUAL_PLACEMENT_BELOW,
    OFF,
    Ai,
    Config,
    Detector,
    Overlay,
    load_config,
)


def test_ai_defaults_target_local_ollama():
    cfg = Ai()
    assert cfg.provider == AI_OLLAMA
    assert cfg.ollama_url == "http://localhost:11434"
    assert cfg.ollama_model == "qwen3-vl:8b"
    assert cfg.temperature == 0.1
    assert cfg.is_configured()


@pytest.mark.parametrize(("alias", "expected"), [("ollama", AI_OLLAMA), ("lm_studio", AI_LM_STUDIO), ("LM Studio", AI_LM_STUDIO)])
def test_ai_normalizes_provider_aliases(alias: str, expected: str):
    assert Ai(provider=alias).provider == expected


def test_ai_clears_backup_model_when_same_as_primary_or_off():
    assert Ai(ollama_model="qwen3-vl:8b", ollama_backup_model="qwen3-vl:8b").ollama_backup_model == ""
    assert Ai(gemini_backup_model=OFF).gemini_backup_model == ""
    assert Ai(groq_backup_model=" llama ").groq_backup_model == "llama"


def test_ai_strips_trailing_slash_from_ollama_url():
    assert Ai(ollama_url="http://gpu-box:11434/").ollama_url == "http://gpu-box:11434"


def test_remote_provider_needs_api_key():
    assert not Ai(provider="Gemini").is_configured()
    assert Ai(provider="Gemini", gemini_api_key="key").is_configured()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"processing_scale": 0},
        {"processing_scale": 1.5},
        {"tile_size": 1},
        {"busy_ratio": -0.1},
    ],
)
def test_detector_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        Detector(**kwargs)


def test_overlay_normalizes_placement_and_quality():
    overlay = Overlay(manual_placement="sideways", selection_jpeg_quality=400, frame_jpeg_quality=0)
    assert overlay.manual_placement == MANUAL_PLACEMENT_BELOW
    assert overlay.selection_jpeg_quality == 100
    assert overlay.frame_jpeg_quality == 1


def test_overlay_rejects_invalid_band_ratio():
    with pytest.raises(ValueError):
        Overlay(fallback_width_ratio=0)


def test_save_and_load_preserve_changes(tmp_path):
    path = str(tmp_path / "config.json")
    config = Config.new()
    config.general.target_language = "Spanish"
    config.detector.tile_size = 16
    config.save(path)

    loaded = load_config(path)

    assert loaded.general.target_language == "Spanish"
    assert loaded.detector.tile_size == 16
    assert isinstance(loaded.overlay, Overlay)


def test_missing_file_is_created_with_defaults(tmp_path):
    path = str(tmp_path / "config.json")
    config = load_config(path)

    assert config.ai.provider == AI_OLLAMA
    with open(path, encoding="utf-8") as file:
        assert json.load(file)["general"]["target_language"] == "English"


def test_corrupt_file_is_backed_up_and_replaced(tmp_path):
    path = str(tmp_path / "config.json")
    with open(path, "w", encoding="utf-8") as file:
        file.write("{not json")

    config = load_config(path)

    assert config.detector.tile_size == 20
    assert os.path.exists(path + ".bak")
    with open(path + ".bak", encoding="utf-8") as file:
        assert file.read() == "{not json"


def test_invalid_section_value_is_treated_as_corrupt(tmp_path):
    path = str(tmp_path / "config.json")
    with open(path, "w", encoding="utf-8") as file:
        json.dump({"detector": {"tile_size": 0}}, file)

    config = load_config(path)

    assert config.detector.tile_size == 20
    assert os.path.exists(path + ".bak")


def test_get_config_is_cached_until_reload(monkeypatch, tmp_path):
    monkeypatch.setattr(configuration, "get_config_path", lambda: str(tmp_path / "config.json"))
    monkeypatch.setattr(configuration, "config_instance", None)

    first = configuration.get_config()
    assert configuration.get_config() is first
    assert configuration.reload_config() is not first


def test_older_file_with_ocr_language_still_loads(tmp_path):
    path = str(tmp_path / "config.json")
    with open(path, "w", encoding="utf-8") as file:
        json.dump({"general": {"target_language": "Korean", "ocr_language": "jpn"}}, file)

    config = load_config(path)

    assert config.general.target_language == "Korean"
    assert not hasattr(config.general, "ocr_language")
    assert not os.path.exists(path + ".bak")
