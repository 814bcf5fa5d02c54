"""Destination table column declarations.

Column names follow the remote field names so most of them map one-to-one.
"""

# Type-specific descriptive fields, all stored as text.
ITEM_FIELD_COLUMNS: tuple[str, ...] = (
    "title",
    "abstractNote",
    "artworkMedium",
    "artworkSize",
    "date",
    "shortTitle",
    "archive",
    "archiveLocation",
    "libraryCatalog",
    "callNumber",
    "url",
    "accessDate",
    "rights",
    "extra",
    "audioRecordingFormat",
    "seriesTitle",
    "numberOfVolumes",
    "volume",
    "place",
    "label",
    "runningTime",
    "ISBN",
    "billNumber",
    "code",
    "codeVolume",
    "section",
    "codePages",
    "legislativeBody",
    "session",
    "history",
    "blogTitle",
    "websiteType",
    "series",
    "seriesNumber",
    "edition",
    "publisher",
    "numPages",
    "bookTitle",
    "pages",
    "court",
    "dateDecided",
    "docketNumber",
    "reporter",
    "reporterVolume",
    "firstPage",
    "versionNumber",
    "system",
    "company",
    "programmingLanguage",
    "proceedingsTitle",
    "conferenceName",
    "DOI",
    "dictionaryTitle",
    "subject",
    "encyclopediaTitle",
    "distributor",
    "genre",
    "caseName",
    "videoRecordingFormat",
    "forumTitle",
    "postType",
    "committee",
    "documentNumber",
    "interviewMedium",
    "publicationTitle",
    "issue",
    "seriesText",
    "journalAbbreviation",
    "ISSN",
    "letterType",
    "manuscriptType",
    "mapType",
    "scale",
    "note",
    "country",
    "assignee",
    "issuingAuthority",
    "patentNumber",
    "filingDate",
    "applicationNumber",
    "priorityNumbers",
    "issueDate",
    "references",
    "legalStatus",
    "episodeNumber",
    "audioFileType",
    "presentationType",
    "meetingName",
    "programTitle",
    "network",
    "reportNumber",
    "reportType",
    "institution",
    "nameOfAct",
    "codeNumber",
    "publicLawNumber",
    "dateEnacted",
    "thesisType",
    "university",
    "studio",
    "websiteTitle",
    # File attachment fields
    "linkMode",
    "contentType",
    "filename",
    "md5",
    "mtime",
    "charset",
)

ITEM_COLUMNS: tuple[str, ...] = (
    "key",
    "version",
    "itemType",
    *ITEM_FIELD_COLUMNS,
    "dateAdded",
    "dateModified",
    "fullTextPDF",
    "PDFCoverPageImage",
    "deleted",
    "languageName",
    "groupExternalId",
    "parentItem",
    "tags",
    "collections",
    "relations",
)

COLLECTION_COLUMNS: tuple[str, ...] = (
    "key",
    "version",
    "name",
    "groupExternalId",
    "parentCollection",
    "numCollections",
    "numItems",
    "relations",
    "deleted",
)

GROUP_COLUMNS: tuple[str, ...] = (
    "externalId",
    "version",
    "name",
    "type",
    "description",
    "url",
    "numItems",
    "itemsVersion",
)

ITEM_TO_COLLECTION_COLUMNS: tuple[str, ...] = ("itemKey", "collectionKey")

LANGUAGE_COLUMNS: tuple[str, ...] = ("name",)

__all__ = [
    "ITEM_FIELD_COLUMNS",
    "ITEM_COLUMNS",
    "COLLECTION_COLUMNS",
    "GROUP_COLUMNS",
    "ITEM_TO_COLLECTION_COLUMNS",
    "LANGUAGE_COLUMNS",
]
