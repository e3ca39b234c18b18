"""
LLM Prompts for VeriScope
"""

def get_base_analysis_prompt():
    return """
Analyze the provided input.
1. Authenticity/Source Check:
   - If it's media, detect if it is AI-generated (0-100 likelihood).
   - If it's text or a claim, assess if the statement itself sounds synthetic or like misinformation/propaganda.
2. Fact-Checking: Extract specific factual claims.
   For each claim, you MUST provide:
   - 'id': A short identifier, unique within this report (e.g. "c1", "c2").
   - 'statement': A concise summary of the claim.
   - 'originalSentence': The exact words used.
   - 'timestamp': The approximate time (MM:SS) it appears (return 'N/A' for images or text).
   - 'status': 'Correct', 'Wrong', or 'Unverifiable' based on web grounding.
   - 'confidence': 0-100.
   - 'explanation': Brief reasoning behind the verification.
Always fill every required field of the response schema. Return an empty 'claims' list when no factual claims are present.
"""


def get_text_verification_prompt(text_body):
    return f"""Statement to verify: "{text_body}".
{get_base_analysis_prompt()}
Use Google Search to verify this specific statement/claim deeply."""


def get_link_research_prompt(reference_url):
    return f"""Link: {reference_url}.
{get_base_analysis_prompt()}
Use Google Search to research this specific link/content."""
