# backend/tutorlink/services/template_service.py
"""Jinja2 rendering for transactional email bodies."""

from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateService:
    """Renders templates under ``tutorlink/templates`` with common context."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "frontend_url": settings.frontend_url.rstrip("/"),
            "year": datetime.now(timezone.utc).year,
        }

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render ``template_name``; raises TemplateNotFound for unknown names."""
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            logger.error(f"Email template not found: {template_name}")
            raise
        return template.render(**{**self.common_context(), **context})
