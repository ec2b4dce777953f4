"""Prompt construction for website generation."""

from typing import Dict, List, Sequence, Union

from ..domain.models import Language

# Existing code at or under this length is treated as no code at all.
MIN_CODE_LENGTH = 50

HISTORY_WINDOW = 3

LANGUAGE_NAMES: Dict[str, str] = {
    "he": "Hebrew (עברית)",
    "en": "English",
    "fr": "French",
    "it": "Italian",
    "de": "German",
    "pl": "Polish",
    "da": "Danish",
    "nl": "Dutch",
    "es": "Spanish",
}

SYSTEM_INSTRUCTION_TEMPLATE = """
You are AVAN, a High-End Senior Frontend Architect.
You create ONLY Premium, Award-Winning, Modern websites. No basic designs.

CRITICAL RULE - LANGUAGE:
You MUST respond and generate content in **{language}**.
If the user's UI language is {language}, your conversational response AND the generated website text (H1, p, buttons) MUST be in {language}.

RULES:
1.  **Output**: Return a SINGLE HTML file with embedded CSS (Tailwind) and JS, as exactly ONE code block.
2.  **Style**: Use Tailwind CSS via CDN. Design must be Apple/Stripe quality.
    *   Use gradients, glassmorphism, large typography, whitespace, and subtle animations.
    *   Use Lucide Icons (via unpkg/lucide) or FontAwesome.
    *   Use Unsplash for images.
3.  **Iterative Workflow**:
    *   If provided with "Current Code", YOU MUST MODIFY IT based on the user request.
    *   Do not remove features unless asked. IMPROVE them.
4.  **Format**:
    *   ALWAYS wrap the code in ```html ... ``` blocks.
    *   Keep your conversational response VERY SHORT (e.g., "Updated the design to dark mode.").

Technical Stack:
<script src="https://cdn.tailwindcss.com"></script>
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@300;400;600;800&family=Heebo:wght@300;400;700&display=swap" rel="stylesheet">
<script src="https://unpkg.com/lucide@latest"></script>
<script>tailwind.config = {{ theme: {{ extend: {{ fontFamily: {{ sans: ['Heebo', 'Inter', 'sans-serif'] }} }} }} }}</script>
"""


def language_name(language: Union[Language, str]) -> str:
    code = language.value if isinstance(language, Language) else language
    return LANGUAGE_NAMES.get(code, "English")


def build_system_instruction(language: Union[Language, str]) -> str:
    """System instruction asking for output in the given language."""
    return SYSTEM_INSTRUCTION_TEMPLATE.format(language=language_name(language))


def is_existing_code(current_code: str) -> bool:
    return bool(current_code) and len(current_code) > MIN_CODE_LENGTH


def build_user_prompt(request: str, current_code: str = "") -> str:
    """Wrap the user's request with create-new or modify-existing instructions."""
    prompt = f"User Request: {request}\n\n"
    if is_existing_code(current_code):
        prompt += f"--- CURRENT CODE (MODIFY THIS) ---\n{current_code}\n----------------------------------\n"
        prompt += (
            "INSTRUCTIONS: Apply the user's request to the code above. "
            "Return the FULL updated code. Remember to write content in the requested language."
        )
    else:
        prompt += "INSTRUCTIONS: Create a brand new PREMIUM website based on the request."
    return prompt


def build_contents(request: str, history: Sequence[str] = (), current_code: str = "") -> List[dict]:
    """Role-tagged turns for the model: prior texts, then the built prompt.

    Prior texts are all sent as user turns regardless of who wrote them.
    """
    contents = [{"role": "user", "parts": [text]} for text in history]
    contents.append({"role": "user", "parts": [build_user_prompt(request, current_code)]})
    return contents


def recent_history(texts: Sequence[str]) -> List[str]:
    """The last few message texts sent along with a new request."""
    return list(texts[-HISTORY_WINDOW:]) if texts else []
