"""
Training corpus import, dood!

Converts exported moderation data into TrainingExample lists. Supported
layouts:

- {"blacklist": [...], "whitelist": [...]} - teacher moderation export, items
  are objects with a "word" (or "text") field or plain strings
- {"profane": [...], "clean": [...]} - phrase lists
- ["word", ...] - basic filter word list, everything is profane
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from .exceptions import TrainingDataError
from .models import Category, TrainingExample

logger = logging.getLogger(__name__)

# key => label
CORPUS_SECTIONS = (
    ("blacklist", Category.PROFANE),
    ("whitelist", Category.CLEAN),
    ("profane", Category.PROFANE),
    ("clean", Category.CLEAN),
)


def _itemText(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        for key in ("word", "text"):
            value = item.get(key)
            if isinstance(value, str):
                return value
    return None


def _parseItems(items: Iterable[Any], label: Category, section: str) -> List[TrainingExample]:
    ret: List[TrainingExample] = []
    for i, item in enumerate(items):
        text = _itemText(item)
        try:
            if text is None:
                raise ValueError("item has no 'word' or 'text' field")
            ret.append(TrainingExample(text=text.strip(), label=label.value))
        except ValueError as e:
            logger.warning(f"Skipping {section}[{i}]: {e}")
    return ret


def parseTrainingCorpus(data: Union[dict, list]) -> List[TrainingExample]:
    """
    Convert a corpus document into training examples

    Args:
        data: Parsed JSON document

    Returns:
        Training examples in document order (blacklist/profane before whitelist/clean)

    Raises:
        TrainingDataError: If the document is neither an object nor a list
    """
    if isinstance(data, list):
        return _parseItems(data, Category.PROFANE, "words")

    if not isinstance(data, dict):
        raise TrainingDataError(f"Training corpus must be an object or a list, got {type(data).__name__}")

    examples: List[TrainingExample] = []
    for section, label in CORPUS_SECTIONS:
        items = data.get(section)
        if items is None:
            continue
        if not isinstance(items, list):
            logger.warning(f"Training corpus section '{section}' is not a list, skipping")
            continue
        examples.extend(_parseItems(items, label, section))

    if not examples:
        logger.warning("Training corpus contains no usable examples")
    return examples


def loadTrainingCorpusFile(path: Union[str, Path]) -> List[TrainingExample]:
    """
    Read a JSON corpus file and convert it into training examples

    Raises:
        TrainingDataError: If the file cannot be read or parsed
    """
    try:
        # Exports from Windows tools often start with a BOM
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise TrainingDataError(f"Failed to read training corpus {path}: {e}") from e

    examples = parseTrainingCorpus(data)
    logger.info(f"Loaded {len(examples)} training examples from {path}")
    return examples
