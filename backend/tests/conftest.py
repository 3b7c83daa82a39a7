import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["PUBLISH_LOG_FILE"] = ""

import fitz  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from database.base import Base  # noqa: E402
import database.models  # noqa: E402,F401
from operators.session_operator import clear_sessions  # noqa: E402


def write_pdf(path, pages: int) -> None:
    """Write a PDF whose page N carries the text 'Page N'."""
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page {number}")
    doc.save(str(path))
    doc.close()


def page_texts(contents: bytes) -> list[str]:
    doc = fitz.open(stream=contents, filetype="pdf")
    try:
        return [page.get_text().strip() for page in doc]
    finally:
        doc.close()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, autoflush=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def _reset_sessions():
    yield
    clear_sessions()
