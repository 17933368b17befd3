import json
import logging
from typing import Optional

from groq import Groq

from config import GROQ_API_KEY, GROQ_MODEL

logger = logging.getLogger(__name__)

# Groq client (optional: without a key the natural-language endpoint is disabled)
client: Optional[Groq] = None
if GROQ_API_KEY:
    client = Groq(api_key=GROQ_API_KEY)


class TranslationError(Exception):
    pass


def is_configured() -> bool:
    return client is not None


def build_prompt(question: str, schema: str) -> str:
    return f"""
Convert this natural language query to SQLite SQL.

Database Schema:
{schema}

Natural Language Query: {question}

You must respond with ONLY a JSON object in this exact format:
{{"sql": "SELECT ..."}}

Use the exact table name from the schema.
Do not include any other text, explanations, or markdown formatting. Only return the JSON object.
"""


def extract_sql(raw: str) -> str:
    """
    Pull the "sql" value out of the model's reply.
    Tolerates prose or code fences around the JSON object.
    """
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None

    if parsed is None:
        # Try to extract only the JSON part: find { ... }
        start = raw.find("{")
        end = raw.rfind("}")
        if start != -1 and end != -1:
            try:
                parsed = json.loads(raw[start : end + 1])
            except ValueError:
                parsed = None

    if not isinstance(parsed, dict) or not str(parsed.get("sql", "")).strip():
        raise TranslationError("failed to parse AI response")
    return str(parsed["sql"]).strip()


def generate_sql(question: str, schema: str) -> str:
    if client is None:
        raise TranslationError("AI service not configured")

    # ---------- GROQ CALL ----------
    try:
        response = client.chat.completions.create(
            model=GROQ_MODEL,
            messages=[{"role": "user", "content": build_prompt(question, schema)}],
            temperature=0,
            max_tokens=1000,
        )
    except Exception as e:
        logger.error("Groq API error: %s", e)
        raise TranslationError(str(e)) from e

    raw = response.choices[0].message.content or ""
    logger.debug("Raw LLM response: %s", raw)
    return extract_sql(raw)


def explain(question: str) -> str:
    return f"Generated SQL query from natural language: '{question}'"
