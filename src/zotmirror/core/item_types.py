"""Catalogue of supported Zotero item types.

Remote records carry a camelCase ``itemType`` (``journalArticle``); rows store
the canonical PascalCase variant (``JournalArticle``).
"""

ITEM_TYPES: tuple[str, ...] = (
    "Annotation",
    "Artwork",
    "Attachment",
    "AudioRecording",
    "Bill",
    "BlogPost",
    "Book",
    "BookSection",
    "Case",
    "ComputerProgram",
    "ConferencePaper",
    "Dataset",
    "DictionaryEntry",
    "Document",
    "Email",
    "EncyclopediaArticle",
    "Film",
    "ForumPost",
    "Hearing",
    "InstantMessage",
    "Interview",
    "JournalArticle",
    "Letter",
    "MagazineArticle",
    "Manuscript",
    "Map",
    "NewspaperArticle",
    "Note",
    "Patent",
    "Podcast",
    "Preprint",
    "Presentation",
    "RadioBroadcast",
    "Report",
    "Standard",
    "Statute",
    "Thesis",
    "TvBroadcast",
    "VideoRecording",
    "Webpage",
)

ATTACHMENT_TYPE = "Attachment"

# Lowercased lookup; the catalogue has no case-colliding names.
_BY_LOWER: dict[str, str] = {}
for _name in ITEM_TYPES:
    _BY_LOWER.setdefault(_name.lower(), _name)


def canonical_item_type(value: str | None) -> str | None:
    """Return the canonical variant matching ``value`` case-insensitively."""
    if not isinstance(value, str) or not value:
        return None
    return _BY_LOWER.get(value.lower())


__all__ = ["ITEM_TYPES", "ATTACHMENT_TYPE", "canonical_item_type"]
