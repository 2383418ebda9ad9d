"""
Word source module.
Reads text from several input formats and turns it into a lazy stream of
filtered, normalized words ready for frequency counting.
"""

import os
import string
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from config import ANALYSIS_CONFIG, STOP_WORDS

# Optional imports with fallback
try:
    import PyPDF2

    HAS_PYPDF2 = True
except ImportError:
    HAS_PYPDF2 = False

try:
    import docx

    HAS_DOCX = True
except ImportError:
    HAS_DOCX = False


class TextExtractor(ABC):
    """Abstract base class for text extractors."""

    @abstractmethod
    def extract_pages(self, source: Union[str, object]) -> Iterator[str]:
        """Yield the source text chunk by chunk."""
        pass


class PDFExtractor(TextExtractor):
    """Extract text from PDF files, one page at a time."""

    def __init__(self, page_range: Optional[Tuple[int, int]] = None):
        """
        Initialize PDF extractor.

        Args:
            page_range: Optional tuple of (start_page, end_page) for page selection
        """
        if not HAS_PYPDF2:
            raise ImportError("PyPDF2 is required for PDF extraction")
        self.page_range = page_range

    def extract_pages(self, source: Union[str, object]) -> Iterator[str]:
        if isinstance(source, str):
            with open(source, "rb") as pdf_file:
                yield from self._pages_from_reader(PyPDF2.PdfReader(pdf_file))
        else:
            yield from self._pages_from_reader(PyPDF2.PdfReader(source))

    def _pages_from_reader(self, pdf_reader) -> Iterator[str]:
        total_pages = len(pdf_reader.pages)

        if self.page_range:
            start_page = max(0, self.page_range[0])
            end_page = min(total_pages, self.page_range[1])
        else:
            start_page = 0
            end_page = total_pages

        for page_num in range(start_page, end_page):
            yield pdf_reader.pages[page_num].extract_text() or ""


class TextFileExtractor(TextExtractor):
    """Extract text from plain text files line by line."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def extract_pages(self, source: Union[str, object]) -> Iterator[str]:
        if not isinstance(source, str):
            # Already a file-like object
            yield from source
            return
        with open(source, "r", encoding=self.encoding) as f:
            yield from f


class DOCXExtractor(TextExtractor):
    """Extract text from DOCX files paragraph by paragraph."""

    def __init__(self):
        if not HAS_DOCX:
            raise ImportError("python-docx is required for DOCX extraction")

    def extract_pages(self, source: Union[str, object]) -> Iterator[str]:
        document = docx.Document(source)
        for paragraph in document.paragraphs:
            yield paragraph.text


class StringExtractor(TextExtractor):
    """Pass-through extractor for in-memory text."""

    def extract_pages(self, source: Union[str, object]) -> Iterator[str]:
        yield str(source)


class TextExtractorFactory:
    """Factory for creating appropriate text extractors."""

    @staticmethod
    def create_extractor(input_type: str, **kwargs) -> TextExtractor:
        """
        Create a text extractor based on input type.

        Args:
            input_type: Type of input ('pdf', 'txt', 'docx', 'string')
            **kwargs: Additional arguments for specific extractors

        Returns:
            Appropriate TextExtractor instance
        """
        extractors = {
            "pdf": PDFExtractor,
            "txt": TextFileExtractor,
            "docx": DOCXExtractor,
            "string": StringExtractor,
        }

        input_type = input_type.lower()
        if input_type not in extractors:
            raise ValueError(f"Unsupported input type: {input_type}")

        extractor_class = extractors[input_type]

        if input_type == "pdf":
            return extractor_class(page_range=kwargs.get("page_range"))
        elif input_type == "txt":
            return extractor_class(encoding=kwargs.get("encoding", "utf-8"))
        else:
            return extractor_class()

    @staticmethod
    def detect_file_type(filepath: str) -> str:
        """Detect file type based on extension, defaulting to plain text."""
        ext = os.path.splitext(filepath)[1].lower()
        type_map = {
            ".pdf": "pdf",
            ".txt": "txt",
            ".text": "txt",
            ".docx": "docx",
        }
        return type_map.get(ext, "txt")


def iter_words(chunks: Iterable[str]) -> Iterator[str]:
    """Split text chunks into candidate words without reading ahead."""
    for chunk in chunks:
        for word in chunk.split():
            if ANALYSIS_CONFIG["strip_punctuation"]:
                word = word.strip(string.punctuation)
            if word:
                yield word


class WordFilter(ABC):
    """Decides whether a word takes part in the cloud."""

    @abstractmethod
    def is_valid_word(self, word: str) -> bool:
        pass


class AlphabeticFilter(WordFilter):
    """Keep only purely alphabetic words."""

    def is_valid_word(self, word: str) -> bool:
        return word.isalpha()


class MinLengthFilter(WordFilter):
    """Drop words shorter than a minimal length."""

    def __init__(self, min_length: Optional[int] = None):
        if min_length is None:
            min_length = ANALYSIS_CONFIG["min_word_length"]
        self.min_length = min_length

    def is_valid_word(self, word: str) -> bool:
        return len(word) >= self.min_length


class StopWordFilter(WordFilter):
    """Drop common function words."""

    def __init__(self, stop_words: Optional[Iterable[str]] = None):
        self.stop_words = {
            w.lower() for w in (STOP_WORDS if stop_words is None else stop_words)
        }

    def is_valid_word(self, word: str) -> bool:
        return word.lower() not in self.stop_words


class WordNormalizer(ABC):
    """Converts a stream of words into their canonical form."""

    @abstractmethod
    def normalize(self, words: Iterable[str]) -> Iterator[str]:
        pass


class LowercaseNormalizer(WordNormalizer):
    def normalize(self, words: Iterable[str]) -> Iterator[str]:
        for word in words:
            yield word.lower()


class IdentityNormalizer(WordNormalizer):
    def normalize(self, words: Iterable[str]) -> Iterator[str]:
        yield from words


FILTERS = {
    "alphabetic": AlphabeticFilter,
    "min-length": MinLengthFilter,
    "stop-words": StopWordFilter,
}

NORMALIZERS = {
    "lowercase": LowercaseNormalizer,
    "identity": IdentityNormalizer,
}


def default_normalizer() -> WordNormalizer:
    """Normalizer matching ANALYSIS_CONFIG["case_sensitive"]."""
    if ANALYSIS_CONFIG["case_sensitive"]:
        return IdentityNormalizer()
    return LowercaseNormalizer()


def read_tokens(
    source: Union[str, object],
    input_type: Optional[str] = None,
    filters: Sequence[WordFilter] = (),
    normalizer: Optional[WordNormalizer] = None,
    **extractor_kwargs,
) -> Iterator[str]:
    """
    Build the lazy token stream for a source.

    Args:
        source: Path to a file, file-like object or text string
        input_type: Type of input (auto-detected if None)
        filters: Filters every word must pass
        normalizer: Word normalizer (case handling from ANALYSIS_CONFIG if None)
        **extractor_kwargs: Additional arguments for text extraction

    Returns:
        Generator of normalized words; nothing is read until iterated
    """
    if input_type is None:
        if isinstance(source, str) and os.path.exists(source):
            input_type = TextExtractorFactory.detect_file_type(source)
        else:
            input_type = "string"

    extractor = TextExtractorFactory.create_extractor(input_type, **extractor_kwargs)
    if normalizer is None:
        normalizer = default_normalizer()

    words = (
        word
        for word in iter_words(extractor.extract_pages(source))
        if all(f.is_valid_word(word) for f in filters)
    )
    return normalizer.normalize(words)
