"""Shared constants for moonsync.

For environment-based configuration (sync folder, tracking options), use the env module:
    from common.env import env
    sync_path = env.sync_path()
"""

# Layout of the Moon+ Reader sync folder
MOON_DIR = ".Moon+"
CACHE_DIR = "Cache"
COVER_DIR = "Cover"
BOOKS_SYNC_FILE = "books.sync"

# File suffixes inside the sync folder
ANNOTATION_SUFFIX = ".an"
POSITION_SUFFIX = ".po"
COVER_SUFFIX = "_2.png"

# E-book extensions Moon+ Reader embeds in cache filenames
EBOOK_EXTENSIONS: tuple[str, ...] = ("epub", "mobi", "pdf", "azw", "azw3", "fb2", "txt")

# Marker line that opens every highlight block in an annotation file
BLOCK_MARKER = "#"

# Shortest sync-metadata book name accepted as a real title
MIN_BOOK_NAME_LENGTH = 3
