"""
SQL template loading and rendering utilities using Jinja2.
"""

import logging
from pathlib import Path

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
)

from rvtools_inventory.exceptions import QueryBuildError
from rvtools_inventory.store.tables import quote_identifier, quote_literal

logger = logging.getLogger(__name__)

# Templates shipped with the package
PACKAGE_TEMPLATES = Path(__file__).parent.parent / "templates"


class TemplateLoader:
    """
    Loads and renders the SQL templates used for schema creation and ingestion.

    Rendering is strict: a template referencing an undefined variable fails
    instead of producing partial SQL.
    """

    def __init__(self):
        self.template_dir = PACKAGE_TEMPLATES
        self._env: Environment | None = None
        self._template_cache: dict[str, Template] = {}

    @property
    def env(self) -> Environment:
        """
        Get or create the Jinja2 environment (cached).

        Returns:
            Cached Jinja2 Environment configured for SQL rendering
        """
        if self._env is None:
            if not self.template_dir.exists():
                raise FileNotFoundError(f"Template directory not found: {self.template_dir}")

            self._env = Environment(
                loader=FileSystemLoader(str(self.template_dir)),
                undefined=StrictUndefined,
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=False,
            )
            self._env.filters["ident"] = quote_identifier
            self._env.filters["literal"] = quote_literal

        return self._env

    def load_template(self, template_name: str) -> Template:
        """
        Load a Jinja2 template with caching.

        Args:
            template_name: Template name (e.g., "sql/create_schema.sql.j2")

        Returns:
            Cached Jinja2 Template object
        """
        if template_name not in self._template_cache:
            self._template_cache[template_name] = self.env.get_template(template_name)

        return self._template_cache[template_name]

    def render(self, template_name: str, **context) -> str:
        """
        Render a SQL template to text.

        Args:
            template_name: Template name (e.g., "sql/create_schema.sql.j2")
            **context: Template variables

        Returns:
            Rendered SQL with surrounding whitespace stripped

        Raises:
            QueryBuildError: If the template is missing or references an
                undefined variable
        """
        try:
            rendered = self.load_template(template_name).render(**context)
        except TemplateError as e:
            logger.error(f"Failed to render {template_name}: {e}")
            raise QueryBuildError(template_name, str(e)) from e
        return rendered.strip()
