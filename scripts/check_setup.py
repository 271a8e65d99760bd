#!/usr/bin/env python3
"""
Setup validation script for Time Card OCR.

Checks all system requirements and provides guidance for missing components.
"""

import os
import shutil
import sys
from pathlib import Path


def print_header(text: str):
    """Print a formatted header."""
    print(f"\n{'=' * 60}")
    print(f"  {text}")
    print('=' * 60)


def print_check(name: str, status: bool, message: str = ""):
    """Print a check result."""
    icon = "✅" if status else "❌"
    print(f"{icon} {name}: {message}")


def print_warning(message: str):
    """Print a warning message."""
    print(f"⚠️  {message}")


def print_info(message: str):
    """Print an info message."""
    print(f"ℹ️  {message}")


def check_python_version():
    """Check Python version."""
    print_header("Python Version")

    version = sys.version_info
    required = (3, 9)

    is_ok = version >= required
    print_check(
        "Python",
        is_ok,
        f"{version.major}.{version.minor}.{version.micro} "
        f"({'OK' if is_ok else f'requires {required[0]}.{required[1]}+'})"
    )

    return is_ok


def check_poppler():
    """Check Poppler installation (for PDF support)."""
    print_header("Poppler (PDF Support)")

    poppler_cmd = shutil.which("pdftoppm") or shutil.which("pdfinfo")

    if poppler_cmd:
        print_check("Poppler", True, f"Found: {poppler_cmd}")
        return True
    else:
        print_check("Poppler", False, "Not found (PDF upload will not work)")
        print_info("Install with:")
        print_info("  macOS: brew install poppler")
        print_info("  Ubuntu: sudo apt install poppler-utils")
        return False


def check_gemini():
    """Check the Gemini API key."""
    print_header("Gemini (Cloud LLM)")

    from dotenv import load_dotenv
    load_dotenv()

    if os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"):
        print_check("Gemini API Key", True, "Configured")
        return True

    print_check("Gemini API Key", False, "Not set")
    print_info("Add GEMINI_API_KEY=your_key to .env")
    return False


def check_ollama():
    """Check Ollama server and vision models."""
    print_header("Ollama (Local LLM)")

    try:
        import requests
        response = requests.get("http://localhost:11434/api/tags", timeout=5)
        if response.status_code != 200:
            print_check("Ollama Server", False, "Not responding correctly")
            return False

        model_names = [m.get("name", "") for m in response.json().get("models", [])]
        print_check("Ollama Server", True, "Running")

        vision_models = [m for m in model_names if "llava" in m.lower() or "vision" in m.lower() or "vl" in m.lower()]
        if vision_models:
            print_info(f"Vision models available: {', '.join(vision_models)}")
            return True

        print_warning("No vision models. Run: ollama pull llava:13b")
        return False
    except ImportError:
        print_warning("requests library not installed - cannot check Ollama server")
        return False
    except Exception:
        print_check("Ollama Server", False, "Not running")
        print_info("Start with: ollama serve")
        return False


def check_lm_studio():
    """Check LM Studio server."""
    print_header("LM Studio (Local LLM)")

    try:
        import requests
        response = requests.get("http://localhost:1234/v1/models", timeout=5)
        if response.status_code == 200:
            print_check("LM Studio Server", True, "Running at localhost:1234")
            return True
        print_check("LM Studio Server", False, "Not responding correctly")
        return False
    except ImportError:
        print_warning("requests library not installed - cannot check LM Studio")
        return False
    except Exception:
        print_check("LM Studio Server", False, "Not running")
        print_info("Load a vision model and start the local server")
        return False


def check_python_packages():
    """Check required Python packages."""
    print_header("Python Packages")

    # import name -> distribution name
    packages = {
        "streamlit": "streamlit",
        "PIL": "Pillow",
        "pdf2image": "pdf2image",
        "openpyxl": "openpyxl",
        "pandas": "pandas",
        "requests": "requests",
        "tenacity": "tenacity",
        "dotenv": "python-dotenv",
    }

    all_ok = True
    for import_name, display_name in packages.items():
        try:
            __import__(import_name)
            print_check(display_name, True, "Installed")
        except ImportError:
            print_check(display_name, False, "Not installed")
            all_ok = False

    if not all_ok:
        print_info("\nInstall missing packages with:")
        print_info("  pip install -e .")

    return all_ok


def main():
    """Run all checks."""
    print("\n" + "=" * 60)
    print("  Time Card OCR - Setup Validation")
    print("=" * 60)

    results = {
        "python": check_python_version(),
        "poppler": check_poppler(),
        "gemini": check_gemini(),
        "ollama": check_ollama(),
        "lm_studio": check_lm_studio(),
        "packages": check_python_packages(),
    }

    print_header("Summary")

    llm_ok = results["gemini"] or results["ollama"] or results["lm_studio"]
    ready = results["python"] and results["packages"] and llm_ok

    if ready:
        print("✅ System is ready to run the application!")
        print("\nStart with:")
        print(f"  streamlit run {Path('timecard_app') / 'main.py'}")
    else:
        print("❌ Some requirements are missing:")
        if not results["python"]:
            print("  - Python 3.9+ required")
        if not llm_ok:
            print("  - At least one LLM provider (Gemini, Ollama or LM Studio) required")
        if not results["packages"]:
            print("  - Some Python packages missing (run: pip install -e .)")
    if not results["poppler"]:
        print("  - Poppler missing: only image uploads will work")

    print()
    return 0 if ready else 1


if __name__ == "__main__":
    sys.exit(main())
