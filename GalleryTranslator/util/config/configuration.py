import json
import os
import shutil
from dataclasses import dataclass, field
from dataclasses_json import dataclass_json
from os.path import expanduser
from sys import platform
from typing import Optional

from GalleryTranslator.util.logging_config import logger

AI_OLLAMA = 'Ollama'
AI_OPENAI = 'OpenAI'
AI_LM_STUDIO = 'LM Studio'
AI_GEMINI = 'Gemini'
AI_GROQ = 'Groq'

OFF = 'OFF'

MANUAL_PLACEMENT_BELOW = 'below'
MANUAL_PLACEMENT_OVER = 'over'


def is_windows():
    return platform == 'win32'


def sanitize_and_resolve_path(input_path: str) -> str:
    return os.path.normpath(expanduser(input_path.strip().strip('"')))


@dataclass_json
@dataclass
class General:
    target_language: str = 'English'

    def __post_init__(self):
        self.target_language = str(self.target_language or '').strip() or 'English'


@dataclass_json
@dataclass
class Ai:
    provider: str = AI_OLLAMA
    ollama_url: str = 'http://localhost:11434'
    ollama_model: str = 'qwen3-vl:8b'
    ollama_backup_model: str = ''
    open_ai_url: str = ''
    open_ai_model: str = ''
    open_ai_backup_model: str = ''
    open_ai_api_key: str = ''
    lm_studio_url: str = 'http://localhost:1234/v1'
    lm_studio_model: str = ''
    lm_studio_backup_model: str = ''
    lm_studio_api_key: str = 'lm-studio'
    gemini_model: str = 'gemini-2.5-flash'
    gemini_backup_model: str = ''
    gemini_api_key: str = ''
    groq_model: str = 'meta-llama/llama-4-scout-17b-16e-instruct'
    groq_backup_model: str = ''
    groq_api_key: str = ''
    temperature: float = 0.1
    top_p: float = 0.9
    max_output_tokens: int = 4096
    timeout_s: float = 120.0

    def __post_init__(self):
        provider_alias_map = {
            "ollama": AI_OLLAMA,
            "openai": AI_OPENAI,
            "lm_studio": AI_LM_STUDIO,
            "lm studio": AI_LM_STUDIO,
            "gemini": AI_GEMINI,
            "groq": AI_GROQ,
        }
        provider_key = str(self.provider or "").strip().lower()
        if provider_key in provider_alias_map:
            self.provider = provider_alias_map[provider_key]

        self.ollama_url = str(self.ollama_url or "").strip().rstrip("/")
        for name in ('ollama', 'open_ai', 'lm_studio', 'gemini', 'groq'):
            model = str(getattr(self, f"{name}_model") or "").strip()
            backup = str(getattr(self, f"{name}_backup_model") or "").strip()
            if backup in (OFF, model):
                backup = ''
            setattr(self, f"{name}_model", model)
            setattr(self, f"{name}_backup_model", backup)

    def is_configured(self) -> bool:
        if self.provider == AI_OLLAMA and self.ollama_model and self.ollama_url:
            return True
        if self.provider == AI_OPENAI and self.open_ai_api_key and self.open_ai_model and self.open_ai_url:
            return True
        if self.provider == AI_LM_STUDIO and self.lm_studio_model and self.lm_studio_url:
            return True
        if self.provider == AI_GEMINI and self.gemini_api_key and self.gemini_model:
            return True
        if self.provider == AI_GROQ and self.groq_api_key and self.groq_model:
            return True
        return False


@dataclass_json
@dataclass
class Detector:
    """Tuning knobs for the visual-density region detector."""
    processing_scale: float = 0.5
    tile_size: int = 20
    edge_threshold: float = 15.0
    busy_ratio: float = 0.05
    min_component_width: int = 2  # in tiles, components must be wider than this
    min_component_height: int = 1

    def __post_init__(self):
        if not 0.0 < self.processing_scale <= 1.0:
            raise ValueError("processing_scale must be within (0.0, 1.0]")
        if self.tile_size < 2:
            raise ValueError("tile_size must be at least 2")
        if self.busy_ratio < 0.0:
            raise ValueError("busy_ratio must not be negative")


@dataclass_json
@dataclass
class Overlay:
    row_tolerance: int = 50
    fallback_bottom_margin: int = 100
    fallback_height: int = 80
    fallback_width_ratio: float = 0.8
    manual_gap: int = 5
    manual_result_height: int = 60
    manual_placement: str = MANUAL_PLACEMENT_BELOW
    selection_jpeg_quality: int = 95
    frame_jpeg_quality: int = 85

    def __post_init__(self):
        if self.manual_placement not in (MANUAL_PLACEMENT_BELOW, MANUAL_PLACEMENT_OVER):
            logger.warning(f"Unknown manual_placement '{self.manual_placement}', using '{MANUAL_PLACEMENT_BELOW}'")
            self.manual_placement = MANUAL_PLACEMENT_BELOW
        if not 0.0 < self.fallback_width_ratio <= 1.0:
            raise ValueError("fallback_width_ratio must be within (0.0, 1.0]")
        self.selection_jpeg_quality = max(1, min(100, int(self.selection_jpeg_quality)))
        self.frame_jpeg_quality = max(1, min(100, int(self.frame_jpeg_quality)))


@dataclass_json
@dataclass
class Config:
    general: General = field(default_factory=General)
    ai: Ai = field(default_factory=Ai)
    detector: Detector = field(default_factory=Detector)
    overlay: Overlay = field(default_factory=Overlay)

    @classmethod
    def new(cls):
        return cls()

    def save(self, path: Optional[str] = None):
        path = path or get_config_path()
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(self.to_dict(), file, indent=4)
        logger.debug(f"Saved configuration to {path}")


def get_app_directory():
    if is_windows():
        appdata_dir = os.getenv('APPDATA')
    else:
        appdata_dir = sanitize_and_resolve_path('~/.config')
    config_dir = os.path.join(appdata_dir, 'GalleryTranslator')
    os.makedirs(config_dir, exist_ok=True)
    return config_dir


def get_config_path():
    return os.path.join(get_app_directory(), 'config.json')


def load_config(path: Optional[str] = None) -> Config:
    config_path = path or get_config_path()

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as file:
                return Config.from_dict(json.load(file))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error parsing {config_path}, saving backup and returning new config: {e}")
            shutil.copy(config_path, config_path + '.bak')

    config = Config.new()
    config.save(config_path)
    return config


config_instance: Optional[Config] = None


def get_config() -> Config:
    global config_instance
    if config_instance is None:
        config_instance = load_config()
    return config_instance


def reload_config() -> Config:
    global config_instance
    config_instance = load_config()
    return config_instance
