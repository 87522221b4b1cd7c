"""XML to JSON conversion for the structured-data views.

Mirrors the usual xml2js options the views are written against: the root element
is dropped, single children are not wrapped in arrays and attributes are ignored.
Text-only elements become strings, empty elements become "", and text mixed with
child elements is kept under "_".
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any


CHAR_KEY = "_"
ParseError = ET.ParseError
AT_PREFIX = "at-"


def _element_to_data(el: ET.Element) -> Any:
    children = list(el)
    text = (el.text or "") + "".join(c.tail or "" for c in children)
    if not children:
        return text
    data: dict = {}
    for child in children:
        value = _element_to_data(child)
        if child.tag in data:
            if not isinstance(data[child.tag], list):
                data[child.tag] = [data[child.tag]]
            data[child.tag].append(value)
        else:
            data[child.tag] = value
    if text.strip():
        data[CHAR_KEY] = text
    return data


def xml_to_data(xml_text: str) -> Any:
    root = ET.fromstring(xml_text)
    return _element_to_data(root)


def rename_at_keys(data: Any) -> Any:
    """Keys written as `at-type` in XML become JSON-LD style `@type`."""
    if isinstance(data, dict):
        return {
            ("@" + k[len(AT_PREFIX):] if k.startswith(AT_PREFIX) else k): rename_at_keys(v)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [rename_at_keys(v) for v in data]
    return data


def unwrap_entity(data: Any) -> Any:
    if isinstance(data, dict) and list(data) == ["entity"]:
        return data["entity"]
    return data


def convert(xml_text: str) -> Any:
    return unwrap_entity(rename_at_keys(xml_to_data(xml_text)))


def dumps_min(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def dumps_pretty(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"
