"""Prompt templates for handwriting recognition."""

from .recognition_prompt import RECOGNITION_PROMPT, get_recognition_prompt

__all__ = [
    "RECOGNITION_PROMPT",
    "get_recognition_prompt",
]
