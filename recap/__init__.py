"""Bounded-length summaries and cancellable streamed chat for size-limited LLM engines."""
