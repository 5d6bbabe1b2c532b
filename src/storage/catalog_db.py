# src/storage/catalog_db.py

"""SQLite-backed store for canonical products and vendor listing links."""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.errors import StorageError, StorageUnavailable
from src.models.product import CanonicalProduct, ListingLink

logger = logging.getLogger("catalog_recon.storage")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS listing_links (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id  INTEGER NOT NULL
                REFERENCES products(id) ON DELETE CASCADE,
    vendor_id   INTEGER NOT NULL,
    price       REAL    NOT NULL,
    image       TEXT    NOT NULL DEFAULT '',
    link        TEXT    NOT NULL DEFAULT '',
    match_score REAL    NOT NULL DEFAULT 0,
    listed_name TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_links_name_vendor
    ON listing_links(listed_name, vendor_id);

CREATE INDEX IF NOT EXISTS idx_links_product_vendor
    ON listing_links(product_id, vendor_id);
"""

_LINK_COLUMNS = (
    "id, product_id, vendor_id, price, image, link, "
    "match_score, listed_name"
)


def _row_to_link(row: tuple[Any, ...]) -> ListingLink:
    return ListingLink(
        id=row[0],
        product_id=row[1],
        vendor_id=row[2],
        price=row[3],
        image=row[4],
        link=row[5],
        match_score=row[6],
        listed_name=row[7],
    )


class CatalogDB:
    """SQLite store for the canonical catalog and its listing links.

    Every operation opens its own short-lived connection and commits or
    rolls back its own transaction, so calls are safe to run from worker
    threads concurrently. ``sqlite3`` errors are re-raised as
    :class:`StorageUnavailable` (operational failures such as a locked or
    unreachable database) or :class:`StorageError`.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self.db_path = db_path or Settings.DB_PATH
        self.timeout = (
            Settings.DB_TIMEOUT if timeout is None else timeout
        )
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
        logger.debug("CatalogDB opened at %s", self.db_path)

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield a fresh connection inside one transaction."""
        try:
            conn = sqlite3.connect(
                str(self.db_path), timeout=self.timeout,
            )
        except sqlite3.Error as exc:
            raise StorageUnavailable(
                f"Cannot open catalog database {self.db_path}: {exc}"
            ) from exc

        try:
            conn.execute("PRAGMA foreign_keys=ON")
            yield conn
            conn.commit()
        except sqlite3.OperationalError as exc:
            conn.rollback()
            raise StorageUnavailable(str(exc)) from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(str(exc)) from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ── Canonical products ───────────────────────────────

    def get_canonical_products(self) -> list[CanonicalProduct]:
        """Return the full catalog as ``(id, name)`` records."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, name FROM products ORDER BY id"
            ).fetchall()
        return [CanonicalProduct(id=r[0], name=r[1]) for r in rows]

    def insert_canonical_product(self, name: str) -> int:
        """Insert a product and return its new id."""
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO products (name) VALUES (?)", (name,),
            )
            product_id = cur.lastrowid
        if product_id is None:
            raise StorageError(f"No id assigned to product {name!r}")
        logger.debug("Inserted product %d: %s", product_id, name)
        return product_id

    def search_products(self, term: str) -> list[CanonicalProduct]:
        """Substring search on product names."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, name FROM products "
                "WHERE name LIKE ? ORDER BY id",
                (f"%{term}%",),
            ).fetchall()
        return [CanonicalProduct(id=r[0], name=r[1]) for r in rows]

    # ── Listing links ────────────────────────────────────

    def insert_listing_link(self, link: ListingLink) -> int:
        """Insert a vendor listing link and return its row id."""
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO listing_links "
                "(product_id, vendor_id, price, image, link, "
                " match_score, listed_name) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    link.product_id,
                    link.vendor_id,
                    link.price,
                    link.image,
                    link.link,
                    link.match_score,
                    link.listed_name,
                ),
            )
            row_id = cur.lastrowid
        if row_id is None:
            raise StorageError(
                f"No id assigned to link for {link.listed_name!r}"
            )
        logger.debug(
            "Inserted link %d: product=%d vendor=%d price=%.2f",
            row_id,
            link.product_id,
            link.vendor_id,
            link.price,
        )
        return row_id

    def update_listing_price(
        self, listed_name: str, vendor_id: int, price: float,
    ) -> int:
        """Set the price on every link with this name and vendor.

        Returns the number of rows affected.
        """
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE listing_links SET price = ? "
                "WHERE listed_name = ? AND vendor_id = ?",
                (price, listed_name, vendor_id),
            )
            return cur.rowcount

    def get_listing(
        self, product_id: int, vendor_id: int,
    ) -> ListingLink | None:
        """Return the first link for a product/vendor pair, if any."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_LINK_COLUMNS} FROM listing_links "
                "WHERE product_id = ? AND vendor_id = ? "
                "ORDER BY id LIMIT 1",
                (product_id, vendor_id),
            ).fetchone()
        return _row_to_link(row) if row else None

    def get_all_listings(self) -> list[ListingLink]:
        """Return every listing link, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_LINK_COLUMNS} FROM listing_links ORDER BY id"
            ).fetchall()
        return [_row_to_link(r) for r in rows]

    def update_listing(
        self,
        product_id: int,
        vendor_id: int,
        price: float,
        image: str,
        link: str,
    ) -> int:
        """Replace price, image and link on a product/vendor pair.

        Returns the number of rows affected (0 when nothing matched).
        """
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE listing_links "
                "SET price = ?, image = ?, link = ? "
                "WHERE product_id = ? AND vendor_id = ?",
                (price, image, link, product_id, vendor_id),
            )
            affected = cur.rowcount
        if affected:
            logger.info(
                "Updated listing product=%d vendor=%d price=%.2f",
                product_id,
                vendor_id,
                price,
            )
        return affected

    def remove_listing(self, product_id: int, vendor_id: int) -> int:
        """Delete the links for a product/vendor pair. Returns the count."""
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM listing_links "
                "WHERE product_id = ? AND vendor_id = ?",
                (product_id, vendor_id),
            )
            removed = cur.rowcount
        if removed:
            logger.info(
                "Removed %d listing(s) product=%d vendor=%d",
                removed,
                product_id,
                vendor_id,
            )
        return removed
