"""Prompt templates sent to the generative text endpoint."""

SUMMARY_PROMPT = "Summarize this legal document: {text}"

BIAS_PROMPT = """Analyze this legal document for potential biases. For each bias found:
1. Identify the type of bias
2. Quote the specific text
3. Calculate confidence score (0-100%)
4. Suggest neutral alternatives

Format as:
Type: [bias type]
Text: "[quoted text]"
Confidence: [X]%
Alternative: [suggestion]

Text to analyze: {text}"""


def summary_prompt(text: str) -> str:
    return SUMMARY_PROMPT.format(text=text)


def bias_prompt(text: str) -> str:
    return BIAS_PROMPT.format(text=text)
