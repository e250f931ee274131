# -*- coding: utf-8 -*-
"""Application constants."""

APP_NAME = "ElectroRescue.ai"
APP_SLUG = "electrorescue"
APP_VERSION = "0.1.0"
APP_TAGLINE = "Don't Throw - Re-Grow"

DEFAULT_SETTINGS_FILE = "settings.json"

ANALYSIS_PROVIDERS = ("gemini", "openrouter")

SUPPORTED_MIME_TYPES = (
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "image/heif",
)

IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.webp *.heic *.heif)"

INVALID_IMAGE_MESSAGE = "Invalid image format."
DEFAULT_ERROR_MESSAGE = "Failed to analyze the PCB image."

FEATURE_CARDS = (
    ("Component ID", "Instantly detects ICs, resistors, capacitors, and connectors."),
    ("Datasheet Logic", "Reads text markings and estimates component function."),
    ("Safety Notes", "Provides voltage warnings and handling usage suggestions."),
)

ANALYSIS_PROMPT = """You are an expert electronics engineer and repair technician.
Analyze the attached photograph of a printed circuit board (PCB).

Write a report in Markdown with these sections:
## Overview
What the board most likely is and what device it came from.
## Identified Components
ICs, resistors, capacitors, connectors and other notable parts. Decode any
visible text markings (part numbers, manufacturer logos, resistor codes) and
explain each component's function.
## Safety Notes
Voltage warnings (mains, charged capacitors, batteries) and handling advice.
## Reuse & Repair
Which parts are worth salvaging and how the board could be repaired or reused.

Also count the visible components by category (for example "Resistors",
"Capacitors", "ICs", "Connectors", "Transistors", "Other").

Return ONLY a JSON object of the form:
{"markdownReport": "<markdown report>", "componentStats": [{"category": "<name>", "count": <integer>}]}
"""
