"""Document intake pipeline.

Decides how to get text out of an uploaded PDF or image (native text,
remote OCR, or rasterize-then-OCR) and pulls structured fields such as
amounts, dates, and tax IDs out of the result with rule-based matchers.
"""

__version__ = "2.0.0"
