"""
Lab Report Parser
=================
HTTP service that turns uploaded PDF lab reports into structured lab test records.

Architecture:
    - Validator: Rejects undersized uploads and non-PDF magic numbers
    - Rasterizer: Renders each PDF page to a PNG image (PyMuPDF)
    - Vision Client: Sends each page image to a multimodal model (OpenAI)
    - Response Parser: Pulls the JSON array out of the model's text
    - Extractor: Aggregates per-page records into one result

Version: 1.0.0
"""

__version__ = "1.0.0"
