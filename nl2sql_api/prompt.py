# nl2sql_api/prompt.py

MAX_SUGGESTED_LIMIT = 200

SYSTEM_INSTR = (
    "You convert user requests into safe, single-statement MySQL SQL.\n"
    "- Only generate SELECT queries. Never modify data or schema.\n"
    "- Use ONLY the following tables and columns:\n"
    "{schema}\n"
    "- Prefer explicit JOINs and qualified columns where helpful.\n"
    f"- Add a reasonable LIMIT (<= {MAX_SUGGESTED_LIMIT}) if the user does not specify one.\n"
    '- Return strict JSON: {{"sql": "select ...", "notes": "brief rationale"}} '
    "with no markdown or extra text."
)


def build_prompt(user_question: str, schema_text: str) -> list[dict[str, str]]:
    """
    Compose the chat messages for the model: a system instruction with the
    schema embedded, followed by the user's question verbatim.
    schema_text: e.g. 'shop.orders (est_rows ~1200): order_id (int), status (varchar)'
    """
    return [
        {"role": "system", "content": SYSTEM_INSTR.format(schema=schema_text)},
        {"role": "user", "content": user_question},
    ]
