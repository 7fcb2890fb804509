"""
Source detection from YAML templates.
"""
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
import logging

from rapidfuzz import fuzz

from .page import Page, Statement

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def find_anchor(page: Page, target: str, fuzzy_threshold: float = 85) -> Optional[float]:
    """
    Find how well a page contains a piece of anchor text.

    Args:
        page: Page to search
        target: Text to look for
        fuzzy_threshold: Minimum confidence score (0-100)

    Returns:
        Best confidence score at or above the threshold, None if no text qualifies
    """
    best_confidence = None
    target = target.lower()

    for text in page.texts:
        value = text.text.lower()
        if value == target:
            return 100.0

        # Partial ratio matches the target inside longer runs of text only
        if len(value) < len(target):
            continue
        confidence = fuzz.partial_ratio(value, target)
        if confidence >= fuzzy_threshold and (best_confidence is None or confidence > best_confidence):
            best_confidence = confidence

    return best_confidence


class SourceDetector:
    """Detects which source pipeline a statement belongs to."""

    def __init__(self, templates_dir: Path = None):
        self.templates_dir = templates_dir or DEFAULT_TEMPLATES_DIR
        self.templates: Dict[str, Dict[str, Any]] = {}
        self._load_templates()

    def _load_templates(self):
        """Load all available templates."""
        if not self.templates_dir.exists():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return

        for yaml_file in sorted(self.templates_dir.glob("*.yaml")):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    template_data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Error loading template {yaml_file}: {e}")
                continue

            template_id = (template_data or {}).get('template_id')
            if template_id:
                self.templates[template_id] = template_data
                logger.debug(f"Loaded template: {template_id}")
            else:
                logger.warning(f"Template {yaml_file} has no 'template_id'")

    def matches(self, statement: Statement, template_config: Dict[str, Any]) -> bool:
        """
        Check if a statement matches a template configuration.

        Every `must_contain` anchor has to be found on one single page.

        Args:
            statement: Statement to check
            template_config: Template configuration

        Returns:
            True if template matches, False otherwise
        """
        page_match = template_config.get('page_match', {})
        must_contain = page_match.get('must_contain', [])
        fuzzy_threshold = page_match.get('fuzzy_threshold', 85)

        if not must_contain:
            logger.warning(f"Template {template_config.get('template_id')} has no 'must_contain' requirements")
            return False

        for page in statement.pages:
            found = [target for target in must_contain if find_anchor(page, target, fuzzy_threshold) is not None]
            if len(found) == len(must_contain):
                logger.debug(f"All required anchors found on page {page.page_number}")
                return True
            logger.debug(f"Page {page.page_number}: found {len(found)}/{len(must_contain)} required anchors")

        return False

    def detect_template(self, statement: Statement) -> Optional[str]:
        """
        Detect which template matches the statement.

        Returns:
            Template ID of the first matching template, None otherwise
        """
        for template_id, template_config in self.templates.items():
            if self.matches(statement, template_config):
                logger.info(f"Statement matches template: {template_id}")
                return template_id

        logger.warning("No matching template found")
        return None

    def detect_source(self, statement: Statement) -> Optional[str]:
        """Source ID of the matching template, None if no template matches."""
        template_id = self.detect_template(statement)
        if template_id is None:
            return None
        return self.templates[template_id].get('source')

    def get_template(self, template_id: str) -> Optional[Dict[str, Any]]:
        """Get template configuration by ID."""
        return self.templates.get(template_id)

    def list_templates(self) -> List[str]:
        """List all available template IDs."""
        return list(self.templates.keys())


def detect_source(statement: Statement, templates_dir: Path = None) -> Optional[str]:
    """
    Convenience function to detect the source of a statement.

    Args:
        statement: Statement to check
        templates_dir: Directory of YAML templates, defaults to the bundled ones

    Returns:
        Source ID if found, None otherwise
    """
    return SourceDetector(templates_dir).detect_source(statement)
