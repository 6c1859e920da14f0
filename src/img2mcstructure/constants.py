"""
Block Format Constants

Values shared by the conversion engine and the command generator.
"""

# Block state version written into every structure palette entry
BLOCK_VERSION = 18153475

# Block used when no palette entry can be resolved for a pixel
DEFAULT_BLOCK = "minecraft:air"

# Block returned for transparent pixels; these cells are left unset
MASK_BLOCK = "minecraft:structure_void"

# Pixels with alpha below this value are masked
MASK_ALPHA = 128

# Frame bounds
MAX_WIDTH = 256
MAX_HEIGHT = 256
MAX_DEPTH = 256

# .mcstructure document
FORMAT_VERSION = 1
DEFAULT_STRUCTURE_NAME = "img2mcstructure"

# Unset grid cell
EMPTY_CELL = -1
