"""
Comprehend client for sentiment and entity detection.

Dependencies: boto3
System role: Text-analysis collaborator for the NLP stage
"""

from typing import Any

import boto3


class ComprehendClient:
    """Comprehend client for synchronous text analysis."""

    def __init__(self, region: str = "us-east-1", client: Any | None = None) -> None:
        """
        Initialize Comprehend client.

        Args:
            region: AWS region
            client: Pre-built boto3 Comprehend client (tests inject a stub)
        """
        self._region = region
        self._client = client or boto3.client("comprehend", region_name=region)

    def detect_sentiment(self, text: str, language_code: str) -> dict:
        """
        Detect overall sentiment.

        Returns:
            dict: {"Sentiment": ..., "SentimentScore": {...}}

        Raises:
            ClientError: If Comprehend rejects the request
        """
        response = self._client.detect_sentiment(Text=text, LanguageCode=language_code)
        return {
            "Sentiment": response.get("Sentiment"),
            "SentimentScore": response.get("SentimentScore", {}),
        }

    def detect_entities(self, text: str, language_code: str) -> list[dict]:
        """
        Detect named entities.

        Returns:
            list[dict]: Entities with Type, Text, Score and offsets

        Raises:
            ClientError: If Comprehend rejects the request
        """
        response = self._client.detect_entities(Text=text, LanguageCode=language_code)
        return response.get("Entities", [])
