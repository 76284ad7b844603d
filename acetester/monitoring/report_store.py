"""
Report persistence for AceTester.

Writes synthesized testing reports to disk as Markdown documents.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Template

from acetester.core.interfaces import ReportStore
from acetester.core.types import PersistenceResult, PersistenceStatus
from acetester.error_handling import PersistenceError
from acetester.monitoring.logger import get_logger

logger = get_logger(__name__)


MARKDOWN_REPORT_TEMPLATE = """# {{ title }}

**Generated:** {{ generated_at }}
{% if url %}**URL:** {{ url }}
{% endif %}{% if run_id %}**Run ID:** {{ run_id }}
{% endif %}
{% if instruction %}## Instruction

{{ instruction }}

{% endif %}## Report

{{ report }}
{% if action_log %}
## Action Log

```
{{ action_log }}
```
{% endif %}"""


class FileReportStore(ReportStore):
    """Saves reports as Markdown files."""

    def __init__(self, title: str = "AceTester Testing Report"):
        self.title = title
        self._template = Template(MARKDOWN_REPORT_TEMPLATE)

    def render(self, report: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Render the Markdown document for a report."""
        metadata = metadata or {}
        return self._template.render(
            title=metadata.get("title", self.title),
            generated_at=datetime.now(timezone.utc).isoformat(),
            url=metadata.get("url"),
            run_id=metadata.get("run_id"),
            instruction=metadata.get("instruction"),
            report=report,
            action_log=metadata.get("action_log"),
        )

    async def save(
        self,
        path: Path,
        report: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PersistenceResult:
        """
        Write the report to ``path``.

        Args:
            path: Destination file; parent directories are created
            report: Report body
            metadata: Optional url, instruction, run_id and action_log

        Returns:
            PersistenceResult describing where the report went or why it failed
        """
        path = Path(path)
        try:
            content = self.render(report, metadata)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except (OSError, ValueError) as e:
            error = PersistenceError(
                f"Failed to save report: {e}", path=str(path), cause=e
            )
            logger.warning(error.message, extra={"error_code": error.error_code, "path": str(path)})
            return PersistenceResult(
                status=PersistenceStatus.FAILED,
                path=path,
                error=error.message,
            )

        logger.info("Report saved", extra={"path": str(path), "size": len(content)})
        return PersistenceResult(status=PersistenceStatus.SUCCEEDED, path=path)
