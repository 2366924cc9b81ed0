"""
LLM prompt templates

Extraction, field extraction, comparison, chat policy selection, chat answer
"""

# =============================================================================
# Document extraction (upload)
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You extract structured data from Australian insurance policy schedules.

STRICT RULES:
- Return ONLY pure JSON.
- NO markdown.
- NO code fences.
- NO explanations.
- JSON must start with '{' and end with '}'.

Extract with this schema:

{
  "tables": {...},
  "text": "Full extracted readable text or summarised text.",
  "metadata": {
    "insurer": "string or null",
    "issued_by": "string or null",
    "wording_version": "string or null",
    "wording_reference": "string or null"
  }
}
If fields are missing, set them to null."""

EXTRACTION_USER_TEMPLATE = """Policy schedule document:
---
{document_text}
---"""

PLAIN_TEXT_SYSTEM_PROMPT = "Extract ONLY plain text. No JSON."


# =============================================================================
# Insurer / wording version
# =============================================================================

FIELDS_SYSTEM_PROMPT = (
    "You extract structured data from Australian insurance policy schedules. "
    "Return strict JSON."
)

FIELDS_USER_TEMPLATE = """From the following policy schedule text, extract:

- insurer: name of the insurer entity (e.g. "DUAL", "DUAL Australia Pty Limited")
- wording_version: the policy wording version or reference (e.g. "11.20", "V11.2", etc.)

Return ONLY JSON in this shape:

{{
  "insurer": "string",
  "wording_version": "string"
}}

Policy schedule text:
---
{ocr_text}
---"""


# =============================================================================
# Schedule vs wording comparison
# =============================================================================

COMPARE_SYSTEM_PROMPT = """You are a senior insurance analyst. Compare an INSURANCE POLICY SCHEDULE (structured JSON)
with the POLICY WORDING (full legal text).

You MUST return STRICT JSON in this exact schema:

{
  "sections": [
    {
      "name": "string",
      "schedule_limit": "string or null",
      "wording_limit": "string or null",
      "match": true/false,
      "notes": "short plain-English explanation"
    }
  ],
  "missing_sections": ["string"],
  "endorsement_differences": [
    {
      "endorsement": "string",
      "in_schedule": true/false,
      "in_wording": true/false
    }
  ],
  "overall_risk_summary": "1-2 sentences."
}

RULES:
- Use the schedule JSON to extract LIMITS, DEDUCTIBLES, SUBLIMITS.
- Use the wording text to determine what is actually covered or excluded.
- NEVER invent limits. If wording has no limit, set "wording_limit": null.
- NEVER output explanations outside the JSON.
- NEVER modify or simplify numbers. Copy schedule values exactly.
- Be strict, precise, and concise."""

COMPARE_USER_TEMPLATE = """---------------- SCHEDULE_JSON ----------------
{schedule_text}

---------------- WORDING_TEXT ----------------
{wording_text}

NOW RETURN ONLY THE JSON."""


# =============================================================================
# Chat
# =============================================================================

SELECT_POLICY_SYSTEM_PROMPT = "You pick which insurance policy a customer is asking about. Return strict JSON."

SELECT_POLICY_USER_TEMPLATE = """A customer asked: "{message}"
{clarification_block}
Here are the available policies (each includes its TRUE UUID):

{policy_listing}

RULES:
- ALWAYS return the exact UUID field shown above.
- NEVER return the index number (1, 2, etc.).
- NEVER return "#1", "Policy 1", or anything except the UUID string.

Return ONLY one JSON object:

If clear:
{{ "policyId": "<UUID>", "needs_clarification": false }}

If unclear:
{{ "policyId": null, "needs_clarification": true,
  "clarification_question": "Which policy are you asking about?" }}"""

POLICY_LISTING_TEMPLATE = (
    'Policy {index}:\n'
    'UUID="{id}"\n'
    'File="{file_name}"\n'
    'Insurer="{insurer}"\n'
    'Version="{wording_version}"'
)

CHAT_SYSTEM_PROMPT = """You are an insurance broker's assistant. Answer questions about ONE customer policy.

RULES:
- Use ONLY the schedule and wording excerpts provided.
- Quote limits, excesses and conditions exactly as written.
- If the excerpts do not answer the question, say so plainly.
- Keep answers short and in plain English."""

CHAT_USER_TEMPLATE = """Policy: {file_name} ({insurer}, wording {wording_version})

---------------- SCHEDULE EXCERPTS ----------------
{schedule_context}

---------------- WORDING EXCERPTS ----------------
{wording_context}

Question: {message}"""
