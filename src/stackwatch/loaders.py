"""Load stack tags and parameters from JSON files."""

import json
import logging
from pathlib import Path

from stackwatch.errors import InputFileError

logger = logging.getLogger(__name__)

TAGS_DOCS = (
    "https://docs.aws.amazon.com/AWSCloudFormation/latest/UserGuide/"
    "aws-properties-resource-tags.html"
)
PARAMETERS_DOCS = (
    "https://aws.amazon.com/blogs/devops/"
    "passing-parameters-to-cloudformation-stacks-with-the-aws-cli-and-powershell/"
)


def _load_pairs(
    path: str | Path,
    key_field: str,
    value_field: str,
    message: str,
) -> list[dict[str, str]]:
    path = Path(path)
    if not path.is_file():
        logger.debug("%s not found, using no entries", path)
        return []

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InputFileError(message) from exc

    if not isinstance(data, list):
        raise InputFileError(message)

    pairs = []
    for entry in data:
        if not isinstance(entry, dict):
            raise InputFileError(message)
        key = entry.get(key_field)
        value = entry.get(value_field)
        if not isinstance(key, str) or not isinstance(value, str):
            raise InputFileError(message)
        pairs.append({key_field: key, value_field: value})

    return pairs


def load_tags(path: str | Path) -> list[dict[str, str]]:
    """Read ``[{"Key": ..., "Value": ...}]`` from ``path``; a missing file means no tags."""
    message = (
        "Unable to load tags. Tags must be valid JSON and only of type string.\n"
        f"See {TAGS_DOCS}"
    )
    return _load_pairs(path, "Key", "Value", message)


def load_parameters(path: str | Path) -> list[dict[str, str]]:
    """Read ``[{"ParameterKey": ..., "ParameterValue": ...}]``; a missing file means none."""
    message = (
        "Unable to load parameters. Parameters must be valid JSON and only of type string.\n"
        f"See {PARAMETERS_DOCS}"
    )
    return _load_pairs(path, "ParameterKey", "ParameterValue", message)
