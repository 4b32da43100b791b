"""
Text chunking task using RecursiveCharacterTextSplitter.

Splits documents into retrievable segments of a bounded character budget.

Dependencies: langchain_text_splitters
System role: Third stage of chunk creation
"""

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter


class ChunkingTask:
    """Split documents into text segments."""

    def __init__(
        self,
        chunk_size: int = 2500,
        chunk_overlap: int = 0,
    ) -> None:
        """
        Initialize chunking task with splitter configuration.

        Args:
            chunk_size: Maximum segment size in characters
            chunk_overlap: Overlap between consecutive segments
        """
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
        )

    def chunk(self, documents: list[Document]) -> list[str]:
        """
        Split documents into ordered, non-blank text segments.

        Raises:
            ValueError: When documents list is empty
        """
        if not documents:
            raise ValueError("No documents to chunk")

        pieces = self._splitter.split_documents(documents)
        return [piece.page_content for piece in pieces if piece.page_content.strip()]
