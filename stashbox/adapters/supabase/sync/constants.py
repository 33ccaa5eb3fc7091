"""Constants for the Supabase push."""

OWNER_FIELD = "user_id"
PRIMARY_KEY = "id"

# Remote collections; the local tables share these names.
FOLDERS = "folders"
TAGS = "tags"
ITEMS = "items"
ITEM_FOLDERS = "item_folders"
ITEM_TAGS = "item_tags"

DEFAULT_PROFILE_NAME = "User"

RECORD_ERROR_TEMPLATE = "Failed to sync {entity}: {record_id} — {cause}"
PHASE_ERROR_TEMPLATE = "Sync aborted during {phase}: {cause}"
