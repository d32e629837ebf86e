"""
Serving: FastAPI application exposing the document services over HTTP.

Run with ``uvicorn legal_doc_ai.serving.app:app`` or the ``legal-doc-ai``
console script.
"""
