import os
import logging
import sys
from pathlib import Path

from rq import Worker
from rq.job import Job
from rq.worker import SimpleWorker

from redis_client import init_redis, redis_rq, rq_queue


logger = logging.getLogger(__name__)


ROOT_DIR = Path(__file__).resolve().parents[2]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _attach_file_handler(
    logger_name: str,
    log_file_path: Path,
    level_name: str | None = None,
) -> None:
    logger_level = (level_name or LOG_LEVEL).upper()
    logger_level_value = getattr(logging, logger_level, logging.INFO)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(logger_level_value)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )

    target_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == str(log_file_path)
        for handler in target_logger.handlers
    ):
        target_logger.addHandler(file_handler)
    target_logger.setLevel(logger_level_value)


def _configure_worker_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    library_log = os.getenv("LIBRARY_LOG_FILE", "backend/log/library.log").strip()
    library_log_level = os.getenv("LIBRARY_LOG_LEVEL", "INFO").strip()
    if library_log:
        library_log_path = Path(library_log)
        if not library_log_path.is_absolute():
            library_log_path = ROOT_DIR / library_log_path
        _attach_file_handler("redis_client.worker", library_log_path, level_name=library_log_level)
        _attach_file_handler("operators.library_operator", library_log_path, level_name=library_log_level)
        _attach_file_handler("utils.pdf_utils", library_log_path, level_name=library_log_level)
        _attach_file_handler("rq.worker", library_log_path, level_name=library_log_level)


class LoggingWorker(Worker):
    def handle_exception(self, job: Job, *exc_info) -> None:
        self.log.error("Job failed: %s", job.id, exc_info=exc_info)
        super().handle_exception(job, *exc_info)


class LoggingSimpleWorker(SimpleWorker):
    def handle_exception(self, job: Job, *exc_info) -> None:
        self.log.error("Job failed: %s", job.id, exc_info=exc_info)
        super().handle_exception(job, *exc_info)


def _build_worker() -> Worker:
    queues = [rq_queue]
    override = os.getenv("RQ_WORKER_CLASS", "").strip().lower()
    supports_fork = hasattr(os, "fork") and hasattr(os, "wait4")
    if override == "simple" or not supports_fork:
        return LoggingSimpleWorker(queues, connection=redis_rq)
    return LoggingWorker(queues, connection=redis_rq)


def main():
    _configure_worker_logging()
    logger.info("rq_worker_start python_executable=%s queue=%s", sys.executable, rq_queue.name)
    init_redis()
    worker = _build_worker()
    worker.work()


if __name__ == "__main__":
    main()
