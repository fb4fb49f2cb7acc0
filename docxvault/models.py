from pydantic import BaseModel, Field

from docxvault.reconcile.models import ReconciliationReport, Rename


class ImportReport(BaseModel):
    markdown_path: str
    media_dir: str
    reconciliation: ReconciliationReport
    renamed_files: list[Rename] = Field(default_factory=list)
    written: bool = True
    duration: float = 0.0
