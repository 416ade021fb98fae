"""
Prompts for the one-sentence dashboard headline.
Keeping the prompt in the application layer keeps it next to the rules it
encodes, independent from whichever model SDK serves it.
"""

HEADLINE_SYSTEM_PROMPT = (
    "You are a crypto market analyst. Return exactly one sentence, plain text, "
    "no markdown, max 32 words. Do not repeat dashboard metrics or numbers "
    "(no $, %, or quoted values). Give only: interpretation, one cautious "
    "action, and one brief risk caveat."
)

HEADLINE_USER_TEMPLATE = (
    "From this BTC snapshot, give a non-obvious interpretation that is not "
    "already visible on the dashboard, plus one cautious action and a short "
    "caveat: {snapshot}."
)
