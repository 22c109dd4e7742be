from __future__ import annotations


def build_region_prompt(target_language: str) -> str:
    return f"""Transcribe text in image and translate to {target_language}.
Output strictly valid JSON:
{{ "originalText": "...", "translation": "..." }}"""


def build_page_prompt(target_language: str) -> str:
    return f"""Find all text blocks. Transcribe and translate to {target_language}.
Order top-to-bottom.
Output strictly valid JSON Array:
[ {{ "originalText": "...", "translation": "..." }} ]"""


def build_text_translation_prompt(text: str, target_language: str) -> str:
    return f"""Translate the following text to {target_language}.
Output valid JSON only: {{ "translation": "..." }}
Do not output any other text.

Text to translate:
{text}"""
