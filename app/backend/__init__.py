"""
PDF Rule Validator Backend Application.

A FastAPI service that checks PDF documents against natural-language
rules using an LLM (Groq, OpenAI-compatible API).
"""

__version__ = "1.0.0"
