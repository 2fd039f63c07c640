#!/usr/bin/env python3

import logging
import re
from collections.abc import Sequence

logger = logging.getLogger(__name__)

# Body of a :61: or :86: tag, ending right before the next :NN: or :NNA: tag.
SEGMENT_PATTERN = re.compile(
    r"(?<=:61:).*?(?=:[0-9]{2}[A-Z]?:)|(?<=:86:).*?(?=:[0-9]{2}[A-Z]?:)",
    flags=re.DOTALL,
)


def extract_segments(text: str) -> list[str]:
    """Returns the raw :61: and :86: bodies of a statement in source order."""
    segments = SEGMENT_PATTERN.findall(text)
    logger.debug(f"Found {len(segments)} :61:/:86: segments")
    return segments


def pair_segments(segments: Sequence[str]) -> list[tuple[str, str]]:
    """Groups segments into (detail, narrative) pairs.

    A trailing segment without partner is dropped.
    """
    if len(segments) % 2:
        logger.warning(
            f"Dropping unpaired trailing segment {segments[-1]!r}"
        )
    return [
        (segments[i], segments[i + 1]) for i in range(0, len(segments) - 1, 2)
    ]


def extract_pairs(text: str) -> list[tuple[str, str]]:
    return pair_segments(extract_segments(text))
