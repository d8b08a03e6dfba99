"""Fill CSSD worksheet PDF templates with guideline results.

Uses PyPDF2 to copy a fillable template and set its text fields. Field
values come from ``worksheet_fields``. Fields that the template does not
define are logged and skipped so that template revisions never block a
calculation from being rendered.
"""

from collections.abc import Mapping
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import structlog
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError

from .config import CssdConfig, configure_logging
from .exceptions import ConfigurationError, TemplateError
from .models import FinalResult
from .worksheet_fields import build_worksheet_a_fields

logger = structlog.get_logger()


class WorksheetPdfFiller:
    """Write worksheet field values into fillable PDF templates."""

    def __init__(self, config: Optional[CssdConfig] = None):
        self.config = config or CssdConfig()
        configure_logging(self.config)

    def _open_template(self, template_path: Path) -> PdfReader:
        if not template_path.is_file():
            raise TemplateError(
                "Worksheet template not found",
                template=str(template_path),
            )
        try:
            return PdfReader(str(template_path))
        except (PdfReadError, OSError) as e:
            raise TemplateError(
                f"Worksheet template could not be read: {e}",
                template=str(template_path),
            ) from e

    def fill(
        self,
        template_path: Union[str, Path],
        fields: Mapping[str, str],
    ) -> bytes:
        """
        Fill a template's text fields and return the resulting PDF.

        Args:
            template_path: Fillable PDF template
            fields: Field name to display value

        Returns:
            The filled PDF document as bytes

        Raises:
            TemplateError: Template is missing, unreadable, or has no form fields
        """
        path = Path(template_path)
        reader = self._open_template(path)

        available = set((reader.get_fields() or {}).keys())
        if not available:
            raise TemplateError(
                "Worksheet template has no fillable fields",
                template=str(path),
            )

        values = {}
        for name, value in fields.items():
            if name not in available:
                logger.warning("worksheet_field_missing", field=name, template=str(path))
                continue
            values[name] = value

        writer = PdfWriter()
        writer.clone_reader_document_root(reader)
        for page in writer.pages:
            writer.update_page_form_field_values(page, values)

        buffer = BytesIO()
        writer.write(buffer)

        logger.info(
            "worksheet_pdf_filled",
            template=str(path),
            fields_filled=len(values),
            fields_skipped=len(fields) - len(values),
        )
        return buffer.getvalue()

    def fill_worksheet_a(
        self,
        result: FinalResult,
        template_path: Optional[Union[str, Path]] = None,
        parent_a_name: str = "Parent A",
        parent_b_name: str = "Parent B",
    ) -> bytes:
        """
        Render Worksheet A for a calculation result.

        Args:
            result: Completed guideline calculation
            template_path: Override for the configured Worksheet A template
            parent_a_name: Name for the mother column
            parent_b_name: Name for the father column

        Raises:
            ConfigurationError: No template path given or configured
            TemplateError: Template cannot be filled
        """
        path = template_path or self.config.worksheet_a_template_path
        if path is None:
            raise ConfigurationError(
                "No Worksheet A template configured",
                config_key="CSSD_WORKSHEET_A_TEMPLATE",
                expected="Path to a fillable Worksheet A PDF",
            )

        fields = build_worksheet_a_fields(result, parent_a_name, parent_b_name)
        return self.fill(path, fields)
