"""Prompts for classification and document chat.

The classification system prompt embeds the complete taxonomy and fixes
the answer format to five labelled lines, which the parser reads back.
"""

import json

from taxdoc.taxonomy import TAX_TAXONOMY, Taxonomy, countries, to_jsonable

CLASSIFICATION_TITLE = "Tax Document Classifier"
CHAT_TITLE = "Document Chat"

CHAT_SYSTEM_PROMPT = (
    "You are a helpful assistant analyzing a document. "
    "Please help the user with their question about this document."
)

CLASSIFY_PDF_INSTRUCTION = (
    "Please classify this PDF document. Return the result in the exact format specified."
)
CLASSIFY_IMAGE_INSTRUCTION = (
    "Please classify this image document. Return the result in the exact format specified."
)

_CLASSIFICATION_TEMPLATE = """\
You are a document classification expert. Analyze the provided document and \
classify it according to the following tax schema: {schema}

Your task is to:
1. Identify the country of origin (must be one of: {countries})
2. Determine the document type (must be one of the types listed in the schema for the identified country)
3. Determine the document category (must be either 'CompanyDocuments' or 'EmployeeDocuments')
4. Extract any additional information that might be relevant

Important rules:
- The country must be one of: {countries}
- The document type must be one of the types listed in the schema for the identified country
- The document category must be either 'CompanyDocuments' or 'EmployeeDocuments'
- If you cannot determine the country or document type with high confidence, set them to null
- If you cannot determine the category, default to 'CompanyDocuments'
- Include a confidence score (0-1) based on how certain you are about the classification

You must return the result in the following exact format:
Country of Origin: [country name or null]
Document Type: [document type or null]
Document Category: [CompanyDocuments or EmployeeDocuments]
Document Subtype: [subtype or null]
Confidence Score: [0-1]"""


def build_classification_prompt(taxonomy: Taxonomy = TAX_TAXONOMY) -> str:
    """System prompt with the full taxonomy and the strict output format."""
    return _CLASSIFICATION_TEMPLATE.format(
        schema=json.dumps(to_jsonable(taxonomy), ensure_ascii=False),
        countries=", ".join(countries(taxonomy)),
    )


def build_chat_question(question: str) -> str:
    return f"Here is the document and my question: {question}"
