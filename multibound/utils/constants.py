STARBOUND_APPID = "211820"

INSTANCE_CONFIG_FILE = "instance.json"
BOOT_CONFIG_FILE = "sbinit.config"

INSTANCE_PREFIX = "inst:"
GAME_PREFIX = "game:"
WORKSHOP_PREFIX = "workshop:"

WORKSHOP_SOURCE_TYPE = "workshop"

DEFAULT_SAVE_PATH = "inst:/storage/"
DEFAULT_ASSET_SOURCES = ["inst:/mods/"]

# Steam "filetype" values for children of a collection
WORKSHOP_FILETYPE_ITEM = 0
WORKSHOP_FILETYPE_COLLECTION = 2
