"""
SmartParking - Export Service
Export des sessions en fichiers téléchargeables (CSV, Excel).

Les formats sont résolus par un registre; un format connu sans exportateur
enregistré (pdf) est refusé par le routeur avec 501.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional
import csv
import io
import logging

from openpyxl import Workbook

from models.session import Session
from utils.helpers import utcnow

# Configure logging
logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    """Formats d'export demandables."""
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"


@dataclass
class ExportFile:
    """Fichier produit par un exportateur."""
    content: bytes
    media_type: str
    filename: str


class ExportNotSupportedError(Exception):
    """Aucun exportateur enregistré pour ce format."""


EXPORT_COLUMNS = [
    "session_id",
    "plate",
    "vehicle_type",
    "space_number",
    "zone",
    "entry_time",
    "exit_time",
    "duration",
    "status",
    "amount",
    "payment_method",
]


def session_row(session: Session) -> List:
    """Ligne d'export d'une session, dans l'ordre de EXPORT_COLUMNS."""
    return [
        session.session_id,
        session.vehicle.plate,
        session.vehicle.type,
        session.space_number,
        session.space.zone if session.space else "",
        session.entry_time.isoformat() if session.entry_time else "",
        session.exit_time.isoformat() if session.exit_time else "",
        session.duration if session.duration is not None else "",
        session.status,
        session.amount if session.amount is not None else "",
        session.payment_method or "",
    ]


def export_csv(sessions: List[Session]) -> ExportFile:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_COLUMNS)
    for session in sessions:
        writer.writerow(session_row(session))

    return ExportFile(
        content=output.getvalue().encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        filename=f"sessions-{utcnow():%Y%m%d-%H%M%S}.csv",
    )


def export_excel(sessions: List[Session]) -> ExportFile:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Sessions"
    sheet.append(EXPORT_COLUMNS)
    for session in sessions:
        sheet.append(session_row(session))

    output = io.BytesIO()
    workbook.save(output)

    return ExportFile(
        content=output.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=f"sessions-{utcnow():%Y%m%d-%H%M%S}.xlsx",
    )


Exporter = Callable[[List[Session]], ExportFile]

# Exportateurs enregistrés, pas encore de PDF
EXPORTERS: Dict[ExportFormat, Exporter] = {
    ExportFormat.CSV: export_csv,
    ExportFormat.EXCEL: export_excel,
}


def get_exporter(export_format: ExportFormat) -> Optional[Exporter]:
    return EXPORTERS.get(ExportFormat(export_format))


def export_sessions(sessions: List[Session], export_format: ExportFormat) -> ExportFile:
    """
    Produit le fichier d'export.

    Raises:
        ExportNotSupportedError: si aucun exportateur n'est enregistré
    """
    exporter = get_exporter(export_format)
    if exporter is None:
        raise ExportNotSupportedError(
            f"Export {ExportFormat(export_format).value} non disponible"
        )

    exported = exporter(sessions)
    logger.info(f"Export {ExportFormat(export_format).value}: {len(sessions)} sessions")
    return exported
