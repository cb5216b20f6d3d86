"""AWS collaborators: Textract (text extraction) and Comprehend (text analysis)."""

from docflow.boundary.aws.comprehend_client import ComprehendClient
from docflow.boundary.aws.textract_client import TextractClient, extract_lines

__all__ = ["ComprehendClient", "TextractClient", "extract_lines"]
