"""Built-in operation catalog: names, default system prompts and option schemas."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import BuiltinOperation, CallFamily


class OptionType(str, Enum):
    SELECT = "select"
    TEXT = "text"
    NUMBER = "number"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"


class OperationOption(BaseModel):
    """One user-selectable option; its ``key`` fills the ``{key}`` placeholder."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    name: str
    option_type: OptionType = Field(OptionType.SELECT, alias="type")
    values: List[str] = Field(default_factory=list)
    default_value: str = ""
    required: bool = False


class OperationDefinition(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    operation_type: BuiltinOperation = Field(..., alias="type")
    name: str
    description: str
    system_prompt: str
    options: List[OperationOption] = Field(default_factory=list)

    @property
    def family(self) -> CallFamily:
        return family_for(self.operation_type)


_FAMILIES: Dict[BuiltinOperation, CallFamily] = {
    BuiltinOperation.IMAGE_GENERATION: CallFamily.IMAGE,
    BuiltinOperation.SPEECH_TO_TEXT: CallFamily.TRANSCRIPTION,
    BuiltinOperation.TEXT_TO_SPEECH: CallFamily.SPEECH,
}


def family_for(operation: BuiltinOperation) -> CallFamily:
    """Every built-in not listed in ``_FAMILIES`` is a chat completion."""
    return _FAMILIES.get(operation, CallFamily.CHAT)


DEFAULT_SYSTEM_PROMPTS: Dict[BuiltinOperation, str] = {
    BuiltinOperation.GENERAL_CHAT: """LANGUAGE RULE: Always respond in the same language as the user's input text.

TASK: Provide helpful assistance without interaction.

RULES:
1. Use the EXACT same language as the user's input
2. NO greetings, introductions, or opening phrases
3. NO questions or requests for clarification
4. Make reasonable assumptions and respond immediately
5. Choose the most logical interpretation if unclear
6. Provide complete, substantive answers

Start your response directly with the helpful content.""",
    BuiltinOperation.IMAGE_GENERATION: """LANGUAGE RULE: Use the same language as the user's description for any text in the image.

TASK: Generate an image based on the user's description.

RULES:
1. Create exactly what is described
2. If text appears in the image, use the same language as the input
3. Follow the description precisely
4. Make the image high quality and detailed

Generate the image now.""",
    BuiltinOperation.TEXT_TRANSLATION: """CRITICAL: You are translating TO {language}. The output must be in {language} only.

TASK: Translate the provided text to {language}.

TRANSLATION RULES:
1. Output language: {language} ONLY
2. Keep the original writing style and tone
3. Maintain the same formality level
4. Preserve the original meaning exactly
5. NO explanations or comments
6. Return ONLY the translated text

Translate this text to {language}:""",
    BuiltinOperation.TEXT_REWRITE: """LANGUAGE RULE: Keep the EXACT same language as the original text.

TASK: Rewrite text to improve quality while maintaining {tone} tone.

REWRITING RULES:
1. Use the SAME language as the input text
2. Apply {tone} tone consistently
3. Fix grammar, spelling, and punctuation errors
4. Improve clarity and flow
5. Keep the same meaning - NO new ideas
6. Maintain similar length (+/-20%)
7. Use natural, native-level phrasing
8. NO explanations or comments

Return ONLY the rewritten text:""",
    BuiltinOperation.TEXT_SUMMARIZATION: """LANGUAGE RULE: Use the EXACT same language as the original text.

TASK: Create a {length} summary in {format} format.

SUMMARY RULES:
1. Use the SAME language as the input text
2. Length: {length} (BRIEF=2-3 sentences, MEDIUM=1 paragraph, DETAILED=2-3 paragraphs)
3. Format: {format} (PARAGRAPH=flowing text, BULLET POINTS=clear bullets, EXECUTIVE SUMMARY=overview+findings, KEY TAKEAWAYS=main insights)
4. Keep core message and critical details
5. Use clear, professional language
6. Focus on facts and actionable items
7. NO explanations or meta-commentary

Create the {length} {format} summary:""",
    BuiltinOperation.TEXT_TO_SPEECH: """TASK: Convert text to speech audio file.

TEXT-TO-SPEECH RULES:
1. Use the provided text exactly as given
2. Apply the selected voice and speed settings
3. Generate high-quality audio output
4. Maintain natural speech patterns and pronunciation
5. Process the complete text without truncation

Convert this text to speech:""",
    BuiltinOperation.EMAIL_REPLY: """LANGUAGE RULE: Write your reply in the EXACT same language as the original email.

TASK: Generate an email reply with {tone} tone and {length} length.

EMAIL REPLY RULES:
1. Use the SAME language as the original email
2. Apply {tone} tone: PROFESSIONAL=business-appropriate, FRIENDLY=warm but professional, FORMAL=traditional business, URGENT=time-sensitive, APOLOGETIC=acknowledges issues, ENTHUSIASTIC=positive energy
3. Length: {length} (BRIEF=2-4 sentences, STANDARD=1-2 paragraphs, DETAILED=2-3 paragraphs)
4. Structure: Greeting -> Acknowledge original -> Address key points -> Next steps -> Professional closing + [Your Name]
5. Address ALL questions from the original email
6. Match the formality level of the original
7. NO subject line (replies keep original subject)
8. NO explanations or meta-commentary

Write a proper reply for this email message:""",
    BuiltinOperation.WHATSAPP_RESPONSE: """LANGUAGE RULE: Respond in the EXACT same language as the original message.

TASK: Generate a WhatsApp-style response with {tone} tone and {length} length.

WHATSAPP RESPONSE RULES:
1. Use the SAME language as the original message
2. Apply {tone} tone: CASUAL=relaxed everyday chat, FRIENDLY=warm and welcoming, ENTHUSIASTIC=excited and energetic, SUPPORTIVE=encouraging and helpful, HUMOROUS=light and funny, PROFESSIONAL=polite but approachable
3. Length: {length} (SHORT=1-2 sentences, MEDIUM=2-4 sentences, LONG=4-6 sentences)
4. Use natural, conversational language typical of WhatsApp
5. Include appropriate emojis when they fit naturally (don't overuse)
6. Match the informality level of the original message
7. Be responsive to the context and emotion of the message
8. NO formal greetings or closings unless appropriate
9. Keep it authentic and human-like
10. NO explanations or meta-commentary

Generate a natural WhatsApp response to this message:""",
    BuiltinOperation.SPEECH_TO_TEXT: """TASK: Transcribe the provided audio file to text.

TRANSCRIPTION RULES:
1. Return only the transcribed text, no explanations
2. Use proper punctuation and formatting
3. Maintain speaker distinctions if multiple speakers
4. Keep the same language as the audio
5. Include relevant non-speech sounds in [brackets] if significant

Transcribe this audio:""",
    BuiltinOperation.UNICODE_SYMBOLS: """You are a helpful assistant that suggests relevant Unicode symbols and emojis for any given concept.
Provide several accurate, diverse options (with brief explanations if useful) and favor characters that display consistently across platforms.
Answer in plain text only, no markdown.
Now provide unicode symbols and/or emojis for representing the following: """,
}


def _select(key: str, name: str, values: List[str], default: str, required: bool) -> OperationOption:
    return OperationOption(
        key=key,
        name=name,
        option_type=OptionType.SELECT,
        values=values,
        default_value=default,
        required=required,
    )


_OPTIONS: Dict[BuiltinOperation, List[OperationOption]] = {
    BuiltinOperation.EMAIL_REPLY: [
        _select("tone", "Tone",
                ["PROFESSIONAL", "FRIENDLY", "FORMAL", "URGENT", "APOLOGETIC", "ENTHUSIASTIC"],
                "PROFESSIONAL", True),
        _select("length", "Length", ["BRIEF", "STANDARD", "DETAILED"], "STANDARD", False),
    ],
    BuiltinOperation.IMAGE_GENERATION: [
        _select("size", "Image Size", [
            "512x512 (1:1 Square)", "768x768 (1:1 Square)", "1024x1024 (1:1 Square)",
            "512x768 (2:3 Portrait)", "768x1152 (2:3 Portrait)", "832x1248 (2:3 Portrait)",
            "896x1344 (2:3 Portrait)", "768x512 (3:2 Landscape)", "1152x768 (3:2 Landscape)",
            "1248x832 (3:2 Landscape)", "1344x896 (3:2 Landscape)", "768x1024 (3:4 Portrait)",
            "936x1248 (3:4 Portrait)", "1024x768 (4:3 Landscape)", "1248x936 (4:3 Landscape)",
        ], "512x768 (2:3 Portrait)", True),
        _select("quality", "Quality", ["standard", "hd"], "hd", False),
        _select("style", "Style", ["vivid", "natural"], "vivid", False),
    ],
    BuiltinOperation.SPEECH_TO_TEXT: [
        _select("language", "Language (optional)",
                ["auto", "en", "es", "fr", "de", "it", "pt", "ru", "ja", "ko", "zh", "ar", "hi"],
                "auto", False),
    ],
    BuiltinOperation.TEXT_REWRITE: [
        _select("tone", "Writing Tone",
                ["academic", "casual", "creative", "formal", "informal", "professional"],
                "professional", True),
    ],
    BuiltinOperation.TEXT_SUMMARIZATION: [
        _select("length", "Summary Length", ["brief", "medium", "detailed"], "medium", True),
        _select("format", "Format",
                ["paragraph", "bullet points", "executive summary", "key takeaways"],
                "bullet points", True),
    ],
    BuiltinOperation.TEXT_TO_SPEECH: [
        _select("voice", "Voice",
                ["alloy", "ash", "ballad", "coral", "echo", "sage", "shimmer", "verse"],
                "alloy", True),
        _select("speed", "Speed",
                ["0.25", "0.5", "0.75", "1.0", "1.25", "1.5", "1.75", "2.0"], "1.0", False),
        _select("format", "Output Format", ["mp3", "opus", "aac", "flac"], "mp3", False),
        _select("language", "Language",
                ["en", "es", "fr", "de", "it", "pt", "pl", "tr", "ru", "cs", "ar", "zh-cn", "nl", "hi"],
                "pt", False),
        _select("model", "Model", ["tts-1", "tts-1-hd", "xtts"], "tts-1-hd", True),
    ],
    BuiltinOperation.TEXT_TRANSLATION: [
        _select("language", "Target Language", [
            "Arabic", "Bengali", "Chinese", "English", "French", "German", "Hindi",
            "Italian", "Japanese", "Korean", "Portuguese", "Punjabi", "Russian", "Spanish",
        ], "Portuguese", True),
    ],
    BuiltinOperation.WHATSAPP_RESPONSE: [
        _select("tone", "Response Tone",
                ["CASUAL", "FRIENDLY", "ENTHUSIASTIC", "SUPPORTIVE", "HUMOROUS", "PROFESSIONAL"],
                "FRIENDLY", True),
        _select("length", "Response Length", ["SHORT", "MEDIUM", "LONG"], "SHORT", False),
    ],
}

_DISPLAY: Dict[BuiltinOperation, tuple[str, str]] = {
    BuiltinOperation.GENERAL_CHAT: ("Custom Task", "Flexible AI help for any task or question"),
    BuiltinOperation.EMAIL_REPLY: ("Email Reply", "Generate professional email replies"),
    BuiltinOperation.IMAGE_GENERATION: ("Image Generation", "Generate images with AI"),
    BuiltinOperation.SPEECH_TO_TEXT: ("Speech-to-Text (STT)", "Convert audio files to text"),
    BuiltinOperation.TEXT_REWRITE: ("Text Correction & Rewrite", "Rewrite and improve text"),
    BuiltinOperation.TEXT_SUMMARIZATION: ("Text Summarization", "Condense text into key points"),
    BuiltinOperation.TEXT_TO_SPEECH: ("Text-to-Speech (TTS)", "Convert text to audio speech"),
    BuiltinOperation.TEXT_TRANSLATION: ("Text Translation", "Translate text to another language"),
    BuiltinOperation.UNICODE_SYMBOLS: ("Unicode Symbols", "Generate unicode symbols/emojis representing text"),
    BuiltinOperation.WHATSAPP_RESPONSE: ("WhatsApp Response", "Generate casual WhatsApp-style responses"),
}


def default_operations(overrides: Dict[str, str] | None = None) -> List[OperationDefinition]:
    """Return the built-in catalog, applying system prompt *overrides* by prompt key."""
    overrides = overrides or {}
    operations: List[OperationDefinition] = []
    for op, (name, description) in _DISPLAY.items():
        operations.append(
            OperationDefinition(
                operation_type=op,
                name=name,
                description=description,
                system_prompt=overrides.get(op.prompt_key) or DEFAULT_SYSTEM_PROMPTS[op],
                options=[o.model_copy() for o in _OPTIONS.get(op, [])],
            )
        )
    return operations
