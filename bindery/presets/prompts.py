# --- Built-in prompt templates ---
# Rendered with str.format; double the braces for literal JSON.

MAYBE_PROMPT_CONTRIBUTION = """
Carry out the instruction above if you can.

Return a JSON object with exactly ONE of these two fields:
- "success": the requested structure, if you have enough information to produce it faithfully.
- "failure": a short explanation, if you do NOT have enough information.

Do NOT invent values to fill gaps. Reporting a failure is better than guessing.
"""

BUILTIN_TEMPLATES = {
    "maybe_prompt_contribution": MAYBE_PROMPT_CONTRIBUTION,
}
