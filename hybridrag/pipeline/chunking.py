"""
Recursive Text Chunker
======================

Splits cleaned document text into overlapping chunks, preferring
paragraph boundaries, then lines, then words, then characters.

Usage:
    chunker = TextChunker(chunk_size=1000, chunk_overlap=200)
    chunks = chunker.chunk(document)
"""

import logging
from datetime import datetime, timezone
from typing import List

from langchain_text_splitters import RecursiveCharacterTextSplitter

from hybridrag.pipeline.models import Chunk, Document

logger = logging.getLogger(__name__)

SEPARATORS = ["\n\n", "\n", " ", ""]


class TextChunker:
    """Boundary-preferring splitter producing contiguous chunk indices."""

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        """
        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap}")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=SEPARATORS,
            length_function=len,
        )

    def split(self, text: str) -> List[str]:
        """Split raw text, dropping pieces that are blank."""
        return [piece for piece in self._splitter.split_text(text) if piece.strip()]

    def chunk(self, document: Document, embedding_model: str = "") -> List[Chunk]:
        """
        Split a document into Chunk records.

        Indices are assigned after blank pieces are dropped, so they are
        always ``0..N-1``.
        """
        processed_at = datetime.now(timezone.utc).isoformat()
        chunks = [
            Chunk(
                document_id=document.document_id,
                chunk_index=index,
                content=piece,
                filename=document.filename,
                metadata={
                    "chunk_size": len(piece),
                    "embedding_model": embedding_model,
                    "processed_at": processed_at,
                },
            )
            for index, piece in enumerate(self.split(document.text))
        ]

        logger.debug(
            f"Split {document.filename} into {len(chunks)} chunks "
            f"(size={self.chunk_size}, overlap={self.chunk_overlap})"
        )
        return chunks
