"""
Document parsing task using LangChain document loaders.

Converts PDF (and plain-text) files into LangChain Documents.

Dependencies: langchain_community.document_loaders
System role: Second stage of chunk creation
"""

from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader, TextLoader
from langchain_core.documents import Document

from knowledge_base.core.exceptions import ParsingError, UnsupportedObjectError

LOADERS = {
    ".pdf": PyPDFLoader,
    ".txt": TextLoader,
    ".md": TextLoader,
}


class ParsingTask:
    """Parse documents into LangChain Documents."""

    supported_extensions = tuple(LOADERS)

    def parse(self, file_path: str, address: str | None = None) -> list[Document]:
        """
        Parse document into LangChain Documents.

        Args:
            file_path: Path to the downloaded document
            address: Source address, for error context

        Returns:
            list[Document]: Parsed documents (one per PDF page)

        Raises:
            UnsupportedObjectError: When the file extension has no loader
            ParsingError: When parsing fails or yields no text
        """
        path = Path(file_path)
        if not path.exists():
            raise ParsingError(f"File not found: {file_path}", address)

        suffix = path.suffix.lower()
        loader_cls = LOADERS.get(suffix)
        if loader_cls is None:
            raise UnsupportedObjectError(f"Unsupported file format: {suffix}", address)

        try:
            if loader_cls is TextLoader:
                loader = TextLoader(file_path, autodetect_encoding=True)
            else:
                loader = loader_cls(file_path)
            documents = loader.load()
        except Exception as e:
            raise ParsingError(f"Failed to parse document: {e}", address, file_type=suffix) from e

        if not any(doc.page_content.strip() for doc in documents):
            raise ParsingError("Document contains no extractable text", address, file_type=suffix)

        return documents
