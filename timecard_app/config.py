"""
Configuration module for Time Card OCR App.

Handles settings for LLM providers, API keys, page preparation,
template export and application-wide settings with validation.
"""

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

from timecard_app.models import ReconcileProfile

# Load environment variables from .env file
load_dotenv()


class LLMProvider(Enum):
    """Supported vision LLM providers for time card extraction."""
    GEMINI = "gemini"
    OLLAMA = "ollama"
    LM_STUDIO = "lm_studio"


@dataclass
class GeminiConfig:
    """Configuration for the Gemini cloud API."""
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.5-flash"
    api_key: str = field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
    )
    temperature: float = 0.0
    timeout: int = 120

    def validate_api_key(self) -> tuple[bool, str]:
        """Validate Gemini API key is set."""
        if not self.api_key:
            return False, (
                "Gemini API key not set.\n"
                "Set it via environment variable: GEMINI_API_KEY=your_key\n"
                "Or enter it in the settings panel."
            )
        if len(self.api_key) < 20:
            return False, "Gemini API key appears to be invalid (too short)"
        return True, "Gemini API key is configured"


@dataclass
class OllamaConfig:
    """Configuration for Ollama local vision models."""
    base_url: str = "http://localhost:11434"
    vision_model: str = "llava:13b"
    temperature: float = 0.0
    timeout: int = 240  # Vision models are slow on CPU
    context_length: int = 8192


@dataclass
class LMStudioConfig:
    """Configuration for LM Studio (OpenAI-compatible API)."""
    base_url: str = "http://localhost:1234/v1"
    vision_model: str = "qwen3-vl-4b-instruct"
    api_key: str = "not-needed"  # LM Studio doesn't require API key
    temperature: float = 0.0
    timeout: int = 180
    max_tokens: int = 8192


@dataclass
class ProcessingConfig:
    """Settings for page preparation and LLM calls."""
    pdf_dpi: int = 200
    max_image_size: int = 2048  # Longest side in pixels
    max_file_size_mb: int = 20
    max_retries: int = 3
    retry_base_delay: float = 2.0  # Seconds; the n-th retry waits n times this


@dataclass
class TemplateConfig:
    """Where records are written inside a template worksheet."""
    header_row: int = 1
    first_column: int = 1
    write_headers: bool = True


@dataclass
class AppConfig:
    """Main application configuration."""
    llm_provider: LLMProvider = LLMProvider.GEMINI

    # Provider-specific configs
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    lm_studio: LMStudioConfig = field(default_factory=LMStudioConfig)

    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    template: TemplateConfig = field(default_factory=TemplateConfig)

    # Roster, work patterns and merge options
    profile: ReconcileProfile = field(default_factory=ReconcileProfile)

    # Roster workbook layout
    roster_column: str = "A"
    roster_skip_header: bool = True

    def get_active_llm_config(self) -> dict:
        """Get configuration for the currently selected LLM provider."""
        if self.llm_provider == LLMProvider.GEMINI:
            return {
                "provider": "gemini",
                "base_url": self.gemini.base_url,
                "model": self.gemini.model,
                "api_key": self.gemini.api_key,
                "temperature": self.gemini.temperature,
                "timeout": self.gemini.timeout,
            }
        elif self.llm_provider == LLMProvider.OLLAMA:
            return {
                "provider": "ollama",
                "base_url": self.ollama.base_url,
                "model": self.ollama.vision_model,
                "temperature": self.ollama.temperature,
                "timeout": self.ollama.timeout,
            }
        elif self.llm_provider == LLMProvider.LM_STUDIO:
            return {
                "provider": "lm_studio",
                "base_url": self.lm_studio.base_url,
                "model": self.lm_studio.vision_model,
                "api_key": self.lm_studio.api_key,
                "temperature": self.lm_studio.temperature,
                "timeout": self.lm_studio.timeout,
            }
        else:
            raise ValueError(f"Unknown LLM provider: {self.llm_provider}")


def validate_system_requirements() -> dict:
    """
    Validate all system requirements on startup.

    Returns:
        Dictionary with validation results for each requirement.
    """
    import requests

    results = {}

    # Poppler is needed by pdf2image to rasterize PDFs
    poppler_path = shutil.which("pdftoppm") or shutil.which("pdfinfo")
    results["poppler"] = {
        "installed": poppler_path is not None,
        "path": poppler_path,
    }

    config = get_config()
    gemini_valid, gemini_msg = config.gemini.validate_api_key()
    results["gemini"] = {
        "configured": gemini_valid,
        "message": gemini_msg,
    }

    # Check Ollama
    ollama_available = False
    ollama_models = []
    try:
        response = requests.get(f"{config.ollama.base_url}/api/tags", timeout=5)
        if response.status_code == 200:
            ollama_available = True
            models_data = response.json().get("models", [])
            ollama_models = [m.get("name", "") for m in models_data]
    except requests.exceptions.RequestException:
        pass

    results["ollama"] = {
        "available": ollama_available,
        "models": ollama_models,
    }

    # Check LM Studio
    lm_studio_available = False
    lm_studio_models = []
    try:
        response = requests.get(f"{config.lm_studio.base_url}/models", timeout=5)
        if response.status_code == 200:
            lm_studio_available = True
            models_data = response.json().get("data", [])
            lm_studio_models = [m.get("id", "") for m in models_data]
    except requests.exceptions.RequestException:
        pass

    results["lm_studio"] = {
        "available": lm_studio_available,
        "models": lm_studio_models,
    }

    # Check Python dependencies
    try:
        import openpyxl
        import pdf2image
        import PIL
        import tenacity
        results["python_deps"] = {
            "installed": True,
            "message": "All Python dependencies installed"
        }
    except ImportError as e:
        results["python_deps"] = {
            "installed": False,
            "message": f"Missing Python dependency: {e.name}"
        }

    return results


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig()
        provider = os.getenv("TIMECARD_LLM_PROVIDER")
        if provider:
            _config.llm_provider = LLMProvider(provider)
    return _config


def update_config(**kwargs) -> AppConfig:
    """Update configuration with new values."""
    global _config
    config = get_config()
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
    return config


def reset_config() -> None:
    """Drop the global configuration so the next get_config() rebuilds it."""
    global _config
    _config = None
