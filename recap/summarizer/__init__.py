"""Map-reduce summarization for content of any length.

Content is split into overlapping chunks, each chunk is summarized in source
order, and the joined summaries are reduced recursively until they fit a
single chunk.

Example:
    from recap.engine.openai import OpenAIEngine
    from recap.summarizer import SummarizerConfig, summarize

    engine = OpenAIEngine("http://localhost:11434/v1", "llama3.1:8b")
    result = await summarize(long_document, engine, SummarizerConfig(model="llama3.1:8b"))
    print(f"Compression: {result.stats.compression_ratio}%")

"""

from recap.summarizer.adaptive import make_unit_summarizer, summarize
from recap.summarizer.chunking import ChunkingOptions, chunk_text
from recap.summarizer.map_reduce import reduce_content, summarize_large
from recap.summarizer.models import SummarizerConfig, SummaryResult, SummaryStats

__all__ = [
    "ChunkingOptions",
    "SummarizerConfig",
    "SummaryResult",
    "SummaryStats",
    "chunk_text",
    "make_unit_summarizer",
    "reduce_content",
    "summarize",
    "summarize_large",
]
