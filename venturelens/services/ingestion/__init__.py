"""Ingestion pipeline for the VentureLens knowledge base.

Pipeline stages overview:

1. **Extract** (text_extractor.py / TextExtractor) -- converts uploaded
   bytes (text, JSON, PDF, DOCX, XLSX, XLS) into plain text.

2. **Chunk** (chunker.py / TextChunker) -- fixed overlapping windows for
   uploaded documents, paragraph-bounded chunks for web content.

3. **Tag** (keyword_extractor.py / KeywordExtractor) -- LLM-derived
   keywords on the leading chunks of each source, used by the hybrid
   retriever at query time.

4. **Store** (via IKnowledgeStore) -- data source upsert, chunk
   replacement, and deal records from the funding extractor.

The IngestionService class orchestrates the stages for uploaded documents
(register_upload / process_document) and for web content
(ingest_web_content).
"""

from venturelens.services.ingestion.chunker import ChunkMode, TextChunker
from venturelens.services.ingestion.ingestion_service import IngestionService
from venturelens.services.ingestion.keyword_extractor import KeywordExtractor
from venturelens.services.ingestion.text_extractor import TextExtractor

__all__ = [
    "ChunkMode",
    "IngestionService",
    "KeywordExtractor",
    "TextChunker",
    "TextExtractor",
]
