"""
Textract client for document text extraction.

Wraps the asynchronous start/poll pair used for documents stored in S3.
Results are returned as raw Textract blocks.

Dependencies: boto3
System role: Text-extraction collaborator for the OCR stage
"""

from typing import Any

import boto3


class TextractClient:
    """Textract client for text detection."""

    def __init__(self, region: str = "us-east-1", client: Any | None = None) -> None:
        """
        Initialize Textract client.

        Args:
            region: AWS region
            client: Pre-built boto3 Textract client (tests inject a stub)
        """
        self._region = region
        self._client = client or boto3.client("textract", region_name=region)

    def detect_document_text(self, document_bytes: bytes) -> list[dict]:
        """
        Synchronously extract lines from a small in-memory document.

        Args:
            document_bytes: Image or single-page PDF bytes

        Returns:
            list[dict]: LINE blocks as {"text", "confidence"}, in page order

        Raises:
            ClientError: If Textract rejects the document
        """
        response = self._client.detect_document_text(Document={"Bytes": document_bytes})
        return extract_lines(response.get("Blocks", []))

    def start_text_detection(self, bucket: str, key: str) -> str | None:
        """
        Start an asynchronous text-detection job on an S3 object.

        Args:
            bucket: S3 bucket holding the document
            key: S3 object key

        Returns:
            str | None: Textract JobId (None if Textract returned none)

        Raises:
            ClientError: If the job cannot be started
        """
        response = self._client.start_document_text_detection(
            DocumentLocation={"S3Object": {"Bucket": bucket, "Name": key}}
        )
        return response.get("JobId")

    def get_text_detection(
        self,
        job_id: str,
        next_token: str | None = None,
        max_results: int = 1000,
    ) -> dict:
        """
        Fetch status and one page of blocks for a text-detection job.

        Args:
            job_id: Textract JobId
            next_token: Pagination token from the previous page
            max_results: Blocks per page

        Returns:
            dict: Raw response (JobStatus, Blocks, NextToken, StatusMessage)

        Raises:
            ClientError: If the request fails
        """
        params: dict[str, Any] = {"JobId": job_id, "MaxResults": max_results}
        if next_token:
            params["NextToken"] = next_token
        return self._client.get_document_text_detection(**params)


def extract_lines(blocks: list[dict]) -> list[dict]:
    """
    Keep LINE blocks that carry text, in the order Textract returned them.

    Args:
        blocks: Raw Textract blocks

    Returns:
        list[dict]: {"text": str, "confidence": float | None} per line
    """
    return [
        {"text": block["Text"], "confidence": block.get("Confidence")}
        for block in blocks
        if block.get("BlockType") == "LINE" and block.get("Text")
    ]
