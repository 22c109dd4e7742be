from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional

import regex

from GalleryTranslator.ocr.models import RecognizedItem
from GalleryTranslator.util.logging_config import logger

ORIGINAL_KEYS = ("originalText", "original_text", "text", "original")
TRANSLATION_KEYS = ("translation", "translatedText", "translated_text")
WRAPPER_KEYS = ("items", "results", "regions", "blocks", "texts")

EMPTY_RESPONSE = "Empty response from model"
UNPARSEABLE_RESPONSE = "Could not parse JSON structure"

_FENCE_RE = regex.compile(r"```(?:json|JSON)?")
_REGION_KEY_RE = regex.compile(r"^region[_ ]?(\d+)$", regex.IGNORECASE)
_STRING_BODY = r'"((?:[^"\\]|\\.)*)"'


def _field_pattern(keys) -> "regex.Pattern":
    names = "|".join(regex.escape(k) for k in keys)
    return regex.compile(r'"(?:' + names + r')"\s*:\s*' + _STRING_BODY)


_ORIGINAL_FIELD_RE = _field_pattern(ORIGINAL_KEYS)
_TRANSLATION_FIELD_RE = _field_pattern(TRANSLATION_KEYS)


def strip_fences(raw_text: str) -> str:
    return _FENCE_RE.sub("", raw_text or "").strip()


def _unescape(fragment: str) -> str:
    try:
        return json.loads(f'"{fragment}"')
    except ValueError:
        return fragment


def _first_present(entry: dict, keys) -> Optional[str]:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return str(value)
    return None


def _item_from_object(entry: Any) -> Optional[RecognizedItem]:
    if isinstance(entry, str):
        return RecognizedItem(original_text="", translated_text=entry)
    if not isinstance(entry, dict):
        return None
    original = _first_present(entry, ORIGINAL_KEYS)
    translation = _first_present(entry, TRANSLATION_KEYS)
    if original is None and translation is None:
        return None
    return RecognizedItem(original_text=original or "", translated_text=translation or "")


def _region_number(key: str) -> Optional[int]:
    match = _REGION_KEY_RE.match(key.strip())
    return int(match.group(1)) if match else None


@dataclass
class RecognitionParser:
    """
    Normalises whatever a vision model returned into ``RecognizedItem`` objects.

    Decoding degrades in three steps: strict JSON after removing Markdown fences,
    then the first ``{...}``/``[...]`` span or a field-by-field pattern scan, and
    finally a labeled failure item. Parsing never raises.
    """

    lenient: bool = True

    def parse_many(self, raw_text: str) -> List[RecognizedItem]:
        cleaned = strip_fences(raw_text)
        if not cleaned:
            logger.warning("Model returned an empty response")
            return [RecognizedItem.failure(EMPTY_RESPONSE)]

        payload = self._decode(cleaned)
        if payload == []:
            # a decoded empty array means the model found no text
            return []
        if payload is not None:
            items = self.items_from_payload(payload)
            if items:
                return items

        if self.lenient:
            items = self._extract_fields(cleaned)
            if items:
                logger.warning("Recovered model output by field extraction")
                return items

        logger.error(f"Could not parse model response: {cleaned[:200]!r}")
        return [RecognizedItem.failure(UNPARSEABLE_RESPONSE)]

    def parse_single(self, raw_text: str) -> RecognizedItem:
        items = self.parse_many(raw_text)
        if not items:
            return RecognizedItem.failure("No text found")
        return items[0]

    def parse_translation(self, raw_text: str) -> str:
        """Pull the ``translation`` field out of a text-translation reply, or return the reply itself."""
        cleaned = strip_fences(raw_text)
        payload = self._decode(cleaned) if cleaned else None
        if isinstance(payload, dict):
            translation = _first_present(payload, TRANSLATION_KEYS)
            if translation:
                return translation
        match = _TRANSLATION_FIELD_RE.search(cleaned)
        if match:
            return _unescape(match.group(1))
        return cleaned

    def _decode(self, cleaned: str) -> Any:
        try:
            return json.loads(cleaned)
        except ValueError:
            pass
        if not self.lenient:
            return None

        logger.debug("Strict JSON parse failed, trying to extract an embedded JSON span")
        spans = []
        for opener, closer in (("{", "}"), ("[", "]")):
            start, end = cleaned.find(opener), cleaned.rfind(closer)
            if start != -1 and end > start:
                spans.append((start, cleaned[start:end + 1]))
        for _, span in sorted(spans):
            try:
                return json.loads(span)
            except ValueError:
                continue
        return None

    def items_from_payload(self, payload: Any) -> List[RecognizedItem]:
        if isinstance(payload, list):
            items = []
            for entry in payload:
                item = _item_from_object(entry)
                if item is not None:
                    items.append(item)
            return items

        if not isinstance(payload, dict):
            return []

        if "error" in payload and _first_present(payload, ORIGINAL_KEYS + TRANSLATION_KEYS) is None:
            return [RecognizedItem.failure(str(payload["error"]))]

        for key in WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                return self.items_from_payload(payload[key])

        regions = [(n, value) for n, value in ((_region_number(k), v) for k, v in payload.items()) if n is not None]
        if regions:
            items = []
            for _, value in sorted(regions, key=lambda pair: pair[0]):
                item = _item_from_object(value)
                if item is not None:
                    items.append(item)
            return items

        item = _item_from_object(payload)
        return [item] if item is not None else []

    @staticmethod
    def _extract_fields(cleaned: str) -> List[RecognizedItem]:
        originals = [_unescape(m) for m in _ORIGINAL_FIELD_RE.findall(cleaned)]
        translations = [_unescape(m) for m in _TRANSLATION_FIELD_RE.findall(cleaned)]
        count = max(len(originals), len(translations))
        return [
            RecognizedItem(
                original_text=originals[i] if i < len(originals) else "",
                translated_text=translations[i] if i < len(translations) else "",
            )
            for i in range(count)
        ]
