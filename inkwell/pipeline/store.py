"""
SQLite state store tracking which discovered articles have been scraped.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from sqlalchemy import CheckConstraint, Column, MetaData, String, Table, create_engine, select, update
from sqlalchemy.dialects.sqlite import insert

from inkwell.extractors.shared import utc_now_iso
from inkwell.utils.dedupe import dedupe_by_key

STATUS_DISCOVERED = "discovered"
STATUS_SCRAPED = "scraped"
STATUS_FAILED = "failed"

metadata = MetaData()

articles_table = Table(
    "articles",
    metadata,
    Column("url", String, primary_key=True),
    Column("publisher_id", String, nullable=False, index=True),
    Column("discovered_at", String, nullable=False),
    Column("scraped_at", String, nullable=True),
    Column("status", String, nullable=False),
    Column("error", String, nullable=True),
    Column("output_path", String, nullable=True),
    CheckConstraint("status IN ('discovered', 'scraped', 'failed')", name="ck_articles_status"),
)


@dataclass
class ArticleRow:
    url: str
    publisher_id: str
    discovered_at: str
    status: str
    scraped_at: Optional[str] = None
    error: Optional[str] = None
    output_path: Optional[str] = None


class Store:
    def __init__(self, db_path: str = "data/inkwell.db") -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(f"sqlite:///{db_path}", future=True)
        metadata.create_all(self.engine)

    def insert_discovered(self, publisher_id: str, urls: Iterable[str]) -> int:
        """Record newly discovered URLs; already-known URLs are left untouched. Returns the number inserted."""
        now = utc_now_iso()
        inserted = 0
        with self.engine.begin() as conn:
            for url in dedupe_by_key(urls, key_fn=lambda value: value):
                stmt = insert(articles_table).values(
                    url=url,
                    publisher_id=publisher_id,
                    discovered_at=now,
                    status=STATUS_DISCOVERED,
                )
                stmt = stmt.on_conflict_do_nothing(index_elements=["url"])
                inserted += conn.execute(stmt).rowcount
        return inserted

    def get_scrapeable(self, publisher_id: str) -> List[ArticleRow]:
        """Rows still to scrape for a publisher: newly discovered or previously failed."""
        stmt = (
            select(articles_table)
            .where(articles_table.c.publisher_id == publisher_id)
            .where(articles_table.c.status.in_([STATUS_DISCOVERED, STATUS_FAILED]))
            .order_by(articles_table.c.discovered_at, articles_table.c.url)
        )
        with self.engine.connect() as conn:
            return [ArticleRow(**row._mapping) for row in conn.execute(stmt)]

    def mark_scraped(self, url: str, output_path: str) -> None:
        stmt = (
            update(articles_table)
            .where(articles_table.c.url == url)
            .values(status=STATUS_SCRAPED, scraped_at=utc_now_iso(), output_path=output_path, error=None)
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def mark_failed(self, url: str, error: str) -> None:
        stmt = update(articles_table).where(articles_table.c.url == url).values(status=STATUS_FAILED, error=error)
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def get_article(self, url: str) -> Optional[ArticleRow]:
        stmt = select(articles_table).where(articles_table.c.url == url)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return ArticleRow(**row._mapping) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()
