"""
Splitting user-entered transaction descriptions into text and #tags.
"""
import re
import logging

from ..models.schema import DescriptionAndTags, Tagged

logger = logging.getLogger(__name__)

# A tag starts with "#" at the beginning of the text or after whitespace and runs
# to the next whitespace. A bare "#" is not a tag.
TAG_PATTERN = re.compile(r"(?:^|(?<=\s))#(\S+)")
TAG_BODY_PATTERN = re.compile(r"^(\S+?)(?:-(\d{4,}))?$")


def parse_tag(body: str) -> Tagged:
    """
    Parse the part of a tag after "#".

    Args:
        body: Tag text without the leading "#", e.g. "travel" or "travel-2025"

    Returns:
        Tagged with the name and, for a "-YYYY" suffix, the year
    """
    match = TAG_BODY_PATTERN.match(body)
    name, year = match.group(1), match.group(2)
    return Tagged(name=name, year=int(year) if year else None)


def parse_description_and_tags(description: str) -> DescriptionAndTags:
    """
    Separate a description from the tags written inline with it.

    Example:
        "lunch #work dinner #trip-2025" -> description "lunch dinner",
        tags work and trip (2025)

    Args:
        description: Raw description text

    Returns:
        DescriptionAndTags with the remaining text joined by single spaces
    """
    parts = []
    tagged = []
    position = 0

    for match in TAG_PATTERN.finditer(description):
        parts.append(description[position:match.start()].strip())
        tagged.append(parse_tag(match.group(1)))
        position = match.end()

    parts.append(description[position:].strip())

    return DescriptionAndTags(
        description=" ".join(part for part in parts if part),
        tagged=tagged,
    )
