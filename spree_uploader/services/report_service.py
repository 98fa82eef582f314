"""Сервис отчётов о загрузке фида.

JSON-отчёт одного запуска:
    {"name": <имя фида>, "totalUploaded": <created + updated>,
     "products": [{"productName", "sourceUrl", "destinationUrl", "status"}]}

Файл лежит в report_dir под именем "<фид>_<YYYYmmdd_HHMMSS>.json"
и после каждого товара перечитывается, дополняется и атомарно
перезаписывается. Дополнительно отчёт можно выгрузить в Excel.
"""

import json
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from spree_uploader.config import ReportSettings, get_logger
from spree_uploader.models import SubmissionStatus, UploadResult

logger = get_logger("report_service")

# Столбцы Excel-отчёта: (заголовок, ширина в символах)
REPORT_COLUMNS: list[tuple[str, int]] = [
    ("#", 6),
    ("SKU", 20),
    ("Product", 45),
    ("Status", 10),
    ("Source URL", 50),
    ("Destination URL", 50),
    ("Error", 50),
]

STATUS_FILLS: dict[SubmissionStatus, str] = {
    SubmissionStatus.CREATED: "C6EFCE",
    SubmissionStatus.UPDATED: "DDEBF7",
    SubmissionStatus.FAILED: "FFC7CE",
}


def count_uploaded(entries: Sequence[dict[str, Any]]) -> int:
    """Количество успешно созданных или обновлённых товаров."""
    successful = {SubmissionStatus.CREATED.value, SubmissionStatus.UPDATED.value}
    return sum(1 for entry in entries if entry.get("status") in successful)


class ReportService:
    """Ведёт JSON-отчёт (и опционально Excel) для одного запуска.

    Attributes:
        _settings: Каталог отчётов и флаг Excel-выгрузки.
        _feed_name: Имя фида, попадает в поле name и в имя файла.
        _stamp: Метка времени запуска для имени файла.
    """

    def __init__(
        self,
        settings: ReportSettings,
        feed_name: str,
        started_at: datetime | None = None,
    ) -> None:
        self._settings = settings
        self._feed_name = feed_name
        self._stamp = (started_at or datetime.now()).strftime("%Y%m%d_%H%M%S")

    @property
    def report_path(self) -> Path:
        return Path(self._settings.report_dir) / f"{self._feed_name}_{self._stamp}.json"

    @property
    def xlsx_path(self) -> Path:
        return self.report_path.with_suffix(".xlsx")

    @property
    def backup_path(self) -> Path:
        return self.report_path.with_name(self.report_path.name + ".corrupt")

    def read(self) -> dict[str, Any]:
        """Читает текущий отчёт.

        Отсутствующий файл даёт пустой отчёт. Битый файл (не JSON или
        неверная структура) переименовывается в backup_path, чтобы
        следующая запись не затёрла его содержимое.

        Raises:
            OSError: Файл существует, но не читается.
        """
        empty: dict[str, Any] = {
            "name": self._feed_name,
            "totalUploaded": 0,
            "products": [],
        }
        path = self.report_path
        if not path.exists():
            return empty

        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self._back_up_corrupt(path, error=str(e))
            return empty

        if not isinstance(document, dict) or not isinstance(
            document.get("products"), list
        ):
            self._back_up_corrupt(path, error="invalid_shape")
            return empty
        return document

    def _back_up_corrupt(self, path: Path, error: str) -> None:
        backup = self.backup_path
        path.replace(backup)
        logger.warning(
            "report_corrupt_backed_up",
            path=str(path),
            backup=str(backup),
            error=error,
        )

    def append(self, result: UploadResult) -> Path:
        """Добавляет запись о товаре: чтение, слияние, перезапись файла.

        Returns:
            Путь к JSON-отчёту.
        """
        document = self.read()
        products: list[dict[str, Any]] = document["products"]
        products.append(result.to_report_entry())
        return self._write(products)

    def _write(self, products: list[dict[str, Any]]) -> Path:
        document = {
            "name": self._feed_name,
            "totalUploaded": count_uploaded(products),
            "products": products,
        }

        path = self.report_path
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_text(
            json.dumps(document, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        tmp_path.replace(path)

        logger.debug(
            "report_written",
            path=str(path),
            products=len(products),
            total_uploaded=document["totalUploaded"],
        )
        return path

    def export_xlsx(self, results: Sequence[UploadResult]) -> str:
        """Выгружает результаты запуска в Excel.

        Returns:
            Абсолютный путь к файлу или пустая строка, если результатов нет.
        """
        if not results:
            logger.warning("no_results_to_export")
            return ""

        wb = Workbook()
        ws = wb.active
        if ws is None:
            ws = wb.create_sheet()
        ws.title = self._feed_name[:31] or "Upload"

        self._write_header(ws)
        for row_index, result in enumerate(results, start=2):
            self._write_row(ws, row_index, result)

        for col_index, (_, width) in enumerate(REPORT_COLUMNS, start=1):
            ws.column_dimensions[get_column_letter(col_index)].width = width
        last_col = get_column_letter(len(REPORT_COLUMNS))
        ws.auto_filter.ref = f"A1:{last_col}{len(results) + 1}"
        ws.freeze_panes = "A2"

        path = self.xlsx_path
        path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(str(path))
        absolute_path = str(path.resolve())

        logger.info("xlsx_report_saved", path=absolute_path, rows=len(results))
        return absolute_path

    def _write_header(self, ws: Worksheet) -> None:
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        for col_index, (title, _) in enumerate(REPORT_COLUMNS, start=1):
            cell = ws.cell(row=1, column=col_index, value=title)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")

    def _write_row(self, ws: Worksheet, row_index: int, result: UploadResult) -> None:
        values: list[str | int] = [
            result.feed_index,
            result.sku,
            result.product_name,
            result.status.value,
            result.source_url,
            result.destination_url or "",
            result.error,
        ]
        for col_index, value in enumerate(values, start=1):
            ws.cell(row=row_index, column=col_index, value=value)

        status_color = STATUS_FILLS[result.status]
        ws.cell(row=row_index, column=4).fill = PatternFill(
            start_color=status_color, end_color=status_color, fill_type="solid"
        )

        if result.destination_url:
            link_cell = ws.cell(row=row_index, column=6)
            link_cell.hyperlink = result.destination_url
            link_cell.font = Font(color="0563C1", underline="single")
