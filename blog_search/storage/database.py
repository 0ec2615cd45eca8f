"""
Database initialization and connection management for the blog search backend.
"""

import sqlite3
from pathlib import Path
from typing import Optional
import logging

from ..search.scoring import RelevanceScorer
from ..search.text_rank import TextRanker
from config.search_config import SEARCH_CONFIG

logger = logging.getLogger(__name__)


def build_scorer(config: Optional[dict] = None) -> RelevanceScorer:
    """
    Create the relevance scorer described by SEARCH_CONFIG.

    Args:
        config: Overrides for SEARCH_CONFIG keys

    Returns:
        RelevanceScorer
    """
    settings = {**SEARCH_CONFIG, **(config or {})}

    ranker = TextRanker(
        language=settings['language'],
        k1=settings['k1'],
        b=settings['b'],
        title_weight=settings['title_weight']
    )
    return RelevanceScorer(ranker, fuzzy_threshold=settings['fuzzy_threshold'])


class Database:
    """
    Manages SQLite connections and schema.

    Every connection gets the search functions (unaccent, similarity,
    text_rank, search_qualifies) installed. Readers open a connection per
    call with open_connection(); connect() keeps one shared connection for
    schema setup and writes.
    """

    def __init__(self, db_path: str, scorer: Optional[RelevanceScorer] = None):
        """
        Initialize database.

        Args:
            db_path: Path to the SQLite database file
            scorer: Relevance scorer whose functions are registered on connections
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.scorer = scorer or build_scorer()
        self.connection: Optional[sqlite3.Connection] = None

    def open_connection(self) -> sqlite3.Connection:
        """
        Open a new configured connection.

        Returns:
            SQLite connection object
        """
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        self.scorer.register_functions(conn)
        return conn

    def connect(self) -> sqlite3.Connection:
        """
        Return the shared connection, creating it on first use.

        Returns:
            SQLite connection object
        """
        if self.connection is None:
            self.connection = self.open_connection()
        return self.connection

    def initialize_schema(self):
        """Create all database tables and indexes."""
        conn = self.connect()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tags (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL
            )
        """)

        # search_text holds the stemmed lexemes of title, summary and body
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS articles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                image TEXT,
                date DATE NOT NULL,
                summary TEXT,
                category_id INTEGER,
                content TEXT,
                author_id INTEGER,
                search_text TEXT NOT NULL DEFAULT '',
                search_length INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (category_id) REFERENCES categories(id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS article_tags (
                article_id INTEGER NOT NULL,
                tag_id INTEGER NOT NULL,
                PRIMARY KEY (article_id, tag_id),
                FOREIGN KEY (article_id) REFERENCES articles(id) ON DELETE CASCADE,
                FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_articles_category ON articles(category_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_articles_date ON articles(date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_article_tags_tag ON article_tags(tag_id)")

        conn.commit()
        logger.info("Database schema initialized successfully")

    def close(self):
        """Close the shared connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def init_database(db_path: str, scorer: Optional[RelevanceScorer] = None) -> Database:
    """
    Initialize database with schema.

    Args:
        db_path: Path to SQLite database file
        scorer: Relevance scorer to register on connections

    Returns:
        Database instance
    """
    db = Database(db_path, scorer)
    db.initialize_schema()
    return db
