"""SQLite-реализация журнала загрузок.

Хранит запуски и результаты в двух таблицах. Результаты только
добавляются (INSERT), что заменяет перезапись JSON-отчёта целиком
и позволяет продолжить прерванную загрузку фида.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from spree_uploader.config import get_logger
from spree_uploader.models import SubmissionStatus, UploadResult
from spree_uploader.repositories.base import BaseUploadRepository

logger = get_logger("sqlite_repository")


class SQLiteUploadRepository(BaseUploadRepository):
    """Журнал загрузок на базе SQLite.

    Attributes:
        _db_path: Путь к файлу базы данных (":memory:" — в памяти).
        _connection: Активное соединение с SQLite.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._connection: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Возвращает соединение, создавая его (и каталог БД) при первом вызове.

        Raises:
            RuntimeError: Если не удалось установить соединение.
        """
        if self._connection is None:
            try:
                if self._db_path != ":memory:":
                    Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

                self._connection = sqlite3.connect(self._db_path)
                self._connection.row_factory = sqlite3.Row
                self._connection.execute("PRAGMA foreign_keys=ON")

                logger.info("database_connected", db_path=self._db_path)
            except sqlite3.Error as e:
                logger.error(
                    "database_connection_failed",
                    exc_info=True,
                    db_path=self._db_path,
                    error=str(e),
                )
                raise RuntimeError(
                    f"Не удалось подключиться к БД: {self._db_path}"
                ) from e
        return self._connection

    def initialize(self) -> None:
        """Создаёт таблицы и индексы, если они ещё не существуют."""
        conn = self._get_connection()

        create_runs_table = """
        CREATE TABLE IF NOT EXISTS upload_runs (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            feed_name   TEXT NOT NULL,
            started_at  TEXT NOT NULL
        )
        """

        create_results_table = """
        CREATE TABLE IF NOT EXISTS upload_results (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            run_id           INTEGER NOT NULL REFERENCES upload_runs (id),
            feed_index       INTEGER NOT NULL,
            sku              TEXT NOT NULL,
            product_name     TEXT NOT NULL,
            source_url       TEXT DEFAULT '',
            destination_url  TEXT,
            status           TEXT NOT NULL,
            error            TEXT DEFAULT '',
            created_at       TEXT NOT NULL
        )
        """

        create_index_run = """
        CREATE INDEX IF NOT EXISTS idx_results_run
        ON upload_results (run_id)
        """

        create_index_feed = """
        CREATE INDEX IF NOT EXISTS idx_runs_feed
        ON upload_runs (feed_name)
        """

        try:
            conn.execute(create_runs_table)
            conn.execute(create_results_table)
            conn.execute(create_index_run)
            conn.execute(create_index_feed)
            conn.commit()

            logger.info("database_initialized", db_path=self._db_path)
        except sqlite3.Error as e:
            logger.error("database_init_failed", exc_info=True, error=str(e))
            raise RuntimeError("Не удалось инициализировать таблицы БД") from e

    def _deserialize_datetime(self, value: str) -> datetime:
        dt = datetime.fromisoformat(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    def _row_to_result(self, row: sqlite3.Row) -> UploadResult:
        return UploadResult(
            feed_index=row["feed_index"],
            sku=row["sku"],
            product_name=row["product_name"],
            source_url=row["source_url"],
            destination_url=row["destination_url"],
            status=SubmissionStatus(row["status"]),
            error=row["error"],
            created_at=self._deserialize_datetime(row["created_at"]),
        )

    def start_run(self, feed_name: str) -> int:
        conn = self._get_connection()
        cursor = conn.execute(
            "INSERT INTO upload_runs (feed_name, started_at) VALUES (?, ?)",
            (feed_name, datetime.now(timezone.utc).isoformat()),
        )
        conn.commit()

        run_id = int(cursor.lastrowid or 0)
        logger.info("upload_run_started", run_id=run_id, feed_name=feed_name)
        return run_id

    def append_result(self, run_id: int, result: UploadResult) -> None:
        conn = self._get_connection()

        sql = """
        INSERT INTO upload_results
            (run_id, feed_index, sku, product_name, source_url,
             destination_url, status, error, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """

        try:
            conn.execute(sql, (
                run_id,
                result.feed_index,
                result.sku,
                result.product_name,
                result.source_url,
                result.destination_url,
                result.status.value,
                result.error,
                result.created_at.isoformat(),
            ))
            conn.commit()

            logger.debug(
                "upload_result_saved",
                run_id=run_id,
                sku=result.sku,
                status=result.status.value,
            )
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(
                "upload_result_save_failed",
                exc_info=True,
                run_id=run_id,
                sku=result.sku,
                error=str(e),
            )
            raise

    def get_run_results(self, run_id: int) -> list[UploadResult]:
        conn = self._get_connection()
        rows = conn.execute(
            "SELECT * FROM upload_results WHERE run_id = ? ORDER BY id",
            (run_id,),
        ).fetchall()
        return [self._row_to_result(row) for row in rows]

    def get_last_feed_index(self, feed_name: str) -> int | None:
        conn = self._get_connection()
        row = conn.execute(
            """
            SELECT MAX(r.feed_index) AS last_index
            FROM upload_results r
            JOIN upload_runs u ON u.id = r.run_id
            WHERE u.feed_name = ? AND r.status IN (?, ?)
            """,
            (
                feed_name,
                SubmissionStatus.CREATED.value,
                SubmissionStatus.UPDATED.value,
            ),
        ).fetchone()
        if row is None or row["last_index"] is None:
            return None
        return int(row["last_index"])

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info("database_closed", db_path=self._db_path)
