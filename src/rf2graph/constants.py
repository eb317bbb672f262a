"""Shared constants for RF2 release identifiers and file naming."""

from __future__ import annotations

# Well-known SNOMED CT concept identifiers consulted while filtering rows.
IS_A = "116680003"
FSN = "900000000000003001"
SYNONYM = "900000000000013009"
STATED_RELATIONSHIP = "900000000000010007"
INFERRED_RELATIONSHIP = "900000000000011006"

ACTIVE = "1"
FIELD_DELIMITER = "\t"
RELEASE_FILE_SUFFIX = ".txt"

# Filenames carrying this token belong to the International Edition; all
# others are treated as extension content layered on top of it.
INTERNATIONAL_MARKER = "_INT_"

CONCEPT_SNAPSHOT_PREFIX = "sct2_Concept_Snapshot"
DESCRIPTION_SNAPSHOT_PREFIX = "sct2_Description_Snapshot"
TEXT_DEFINITION_SNAPSHOT_PREFIX = "sct2_TextDefinition_Snapshot"
RELATIONSHIP_SNAPSHOT_PREFIX = "sct2_Relationship_Snapshot"
REFSET_PREFIX = "der2_"

ALL_REFSETS = "*"
