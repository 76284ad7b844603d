"""
Model client exports.
"""

from acetester.models.openai_client import OpenAIClient

__all__ = ["OpenAIClient"]
