"""Localized system messages spoken by the IVR."""
from typing import Dict

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "error": "An error occurred. Please try again.",
        "invalid_input": "Invalid selection. Please try again.",
        "too_many_attempts": "We did not receive a valid selection. Thank you for calling {service}. Goodbye.",
        "goodbye": "Thank you for calling {service}. Goodbye.",
        "no_information": "No information is available at this time.",
    },
    "ne": {
        "error": "त्रुटि भयो। कृपया पुनः प्रयास गर्नुहोस्।",
        "invalid_input": "गलत छनोट। कृपया पुनः प्रयास गर्नुहोस्।",
        "too_many_attempts": "मान्य छनोट प्राप्त भएन। {service} मा कल गर्नुभएकोमा धन्यवाद।",
        "goodbye": "{service} मा कल गर्नुभएकोमा धन्यवाद।",
        "no_information": "अहिले कुनै जानकारी उपलब्ध छैन।",
    },
}

DEFAULT_LANGUAGE = "en"


def get_message(key: str, language: str = DEFAULT_LANGUAGE, **params: str) -> str:
    """Message text for the language, falling back to English."""
    catalogue = MESSAGES.get(language, MESSAGES[DEFAULT_LANGUAGE])
    template = catalogue.get(key) or MESSAGES[DEFAULT_LANGUAGE][key]
    return template.format(**params) if params else template
