"""LLM prompts for earnings-call signal extraction."""

# Excerpt lengths sent to the analysis service
MANAGEMENT_EXCERPT_CHARS = 2000
QA_EXCERPT_CHARS = 2000
THEMES_EXCERPT_CHARS = 3000

MANAGEMENT_SENTIMENT_SYSTEM_PROMPT = "You are a financial sentiment analyzer. Respond only with valid JSON."

QA_SENTIMENT_SYSTEM_PROMPT = (
    "You are a financial analyst expert at reading Q&A dynamics. Respond only with valid JSON."
)

THEMES_SYSTEM_PROMPT = (
    "You are a business strategy analyst specializing in technology companies. "
    "Extract key strategic themes and respond only with valid JSON."
)

_SENTIMENT_SHAPE = """{{
  "sentiment": "positive" | "neutral" | "negative",
  "score": number between -1 and 1,
  "confidence": number between 0 and 1,
  "keyPhrases": ["phrase1", "phrase2", "phrase3"],
  "reasoning": "{reasoning}"
}}"""


def build_management_sentiment_prompt(management_remarks: str) -> str:
    excerpt = (management_remarks or "")[:MANAGEMENT_EXCERPT_CHARS]
    shape = _SENTIMENT_SHAPE.format(reasoning="brief explanation of the sentiment assessment")
    return f"""Analyze the sentiment of these management prepared remarks from an earnings call.

Text: "{excerpt}..."

Respond with valid JSON only:
{shape}"""


def build_qa_sentiment_prompt(qa_section: str) -> str:
    excerpt = (qa_section or "")[:QA_EXCERPT_CHARS]
    shape = _SENTIMENT_SHAPE.format(reasoning="brief explanation focusing on Q&A dynamics")
    return f"""Analyze the overall tone and sentiment of this Q&A session from an earnings call. Consider both the questions asked and management's responses.

Text: "{excerpt}..."

Respond with valid JSON only:
{shape}"""


def build_themes_prompt(full_transcript: str, company_name: str) -> str:
    excerpt = (full_transcript or "")[:THEMES_EXCERPT_CHARS]
    return f"""Extract 3-5 key strategic themes from this {company_name} earnings call transcript. Focus on business priorities, growth areas, and strategic initiatives.

Text: "{excerpt}..."

Respond with valid JSON only:
{{
  "themes": [
    {{
      "theme": "specific theme name",
      "mentions": number_of_mentions,
      "importance": score_0_to_1,
      "quotes": ["supporting quote 1", "supporting quote 2"],
      "category": "product" | "market" | "technology" | "financial" | "strategic"
    }}
  ]
}}"""


# Analysis service connectivity checks

CONNECTION_CHECK_PROMPT = "Respond with exactly these words: 'Connection successful'"

SENTIMENT_CHECK_SYSTEM_PROMPT = "You are a sentiment analyzer. Respond only with valid JSON."

SENTIMENT_CHECK_PROMPT = """Analyze the sentiment of this text and respond with JSON:

"We had an exceptional quarter with record-breaking revenue growth and strong demand across all our product lines."

Format: {"sentiment": "positive|neutral|negative", "confidence": 0.0-1.0, "reasoning": "brief explanation"}"""

THEMES_CHECK_SYSTEM_PROMPT = (
    "Extract key strategic themes from earnings call transcripts. Respond only with valid JSON."
)

THEMES_CHECK_PROMPT = """Extract 3 key strategic themes from this transcript excerpt:

"Our AI and data center business continues to see unprecedented demand. We're expanding our automotive partnerships and seeing strong growth in gaming. Cloud computing remains a key focus area."

Format: {"themes": [{"theme": "theme name", "category": "product|market|technology", "mentions": number}]}"""
