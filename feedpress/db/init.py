"""Database initialization and schema management."""

import logging
from typing import Any, Dict

from psycopg.errors import DatabaseError

from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Feed registrations, one per tenant subscription
CREATE TABLE IF NOT EXISTS feeds (
    id SERIAL PRIMARY KEY,
    tenant_id TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    url TEXT NOT NULL,
    last_fetched_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(tenant_id, url)
);

-- Global fetch cache keyed by URL, shared by every tenant
CREATE TABLE IF NOT EXISTS url_fetches (
    url TEXT PRIMARY KEY,
    last_fetched_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Articles, deduplicated per feed URL
CREATE TABLE IF NOT EXISTS articles (
    id SERIAL PRIMARY KEY,
    primary_feed_id INTEGER NOT NULL REFERENCES feeds(id) ON DELETE RESTRICT,
    feed_url TEXT NOT NULL,
    guid TEXT NOT NULL,
    title TEXT NOT NULL,
    link TEXT NOT NULL DEFAULT '',
    summary TEXT,
    content TEXT,
    author TEXT,
    published_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(feed_url, guid)
);

-- Article <-> feed edges. A feed can't be deleted while any edge names it.
CREATE TABLE IF NOT EXISTS article_sources (
    article_id INTEGER NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    feed_id INTEGER NOT NULL REFERENCES feeds(id) ON DELETE RESTRICT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (article_id, feed_id)
);

-- Generated newsletters. feed_ids is a record, not a reference: feeds may go away later
CREATE TABLE IF NOT EXISTS newsletters (
    id SERIAL PRIMARY KEY,
    tenant_id TEXT NOT NULL,
    suggested_titles TEXT[] NOT NULL,
    suggested_subject_lines TEXT[] NOT NULL,
    body TEXT NOT NULL,
    top_announcements TEXT[] NOT NULL,
    additional_info TEXT,
    start_date TIMESTAMPTZ NOT NULL,
    end_date TIMESTAMPTZ NOT NULL,
    user_input TEXT,
    feed_ids INTEGER[] NOT NULL DEFAULT '{}',
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_feeds_tenant_id ON feeds(tenant_id);
CREATE INDEX IF NOT EXISTS idx_feeds_url ON feeds(url);
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at);
CREATE INDEX IF NOT EXISTS idx_articles_primary_feed_id ON articles(primary_feed_id);
CREATE INDEX IF NOT EXISTS idx_article_sources_feed_id ON article_sources(feed_id);
CREATE INDEX IF NOT EXISTS idx_newsletters_tenant_created ON newsletters(tenant_id, created_at DESC);

-- Seed the URL cache from registrations fetched before it existed
INSERT INTO url_fetches (url, last_fetched_at)
SELECT url, MAX(last_fetched_at)
FROM feeds
WHERE last_fetched_at IS NOT NULL
GROUP BY url
ON CONFLICT (url) DO NOTHING;

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql';

-- Create update triggers
CREATE OR REPLACE TRIGGER update_feeds_updated_at BEFORE UPDATE ON feeds
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_url_fetches_updated_at BEFORE UPDATE ON url_fetches
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_articles_updated_at BEFORE UPDATE ON articles
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_newsletters_updated_at BEFORE UPDATE ON newsletters
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""


async def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        async with get_connection(config) as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1 AS ok")
                result = await cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


async def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        async with get_connection(config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(SCHEMA_SQL)
            await conn.commit()
            logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
