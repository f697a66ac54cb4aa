"""Pipeline services: ingestion, funding extraction, retrieval, querying and crawling."""
